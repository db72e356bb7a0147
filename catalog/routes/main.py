from flask import Blueprint

from catalog import hierarchy
from catalog.models.product import Product
from catalog.routes.responses import api_response
from catalog.services import category_service

bp = Blueprint("main", __name__)


@bp.route("/")
def summary():
    snapshot = category_service.load_snapshot()
    report = hierarchy.integrity_report(snapshot)
    data = {
        "categoryCount": len(snapshot),
        "categoriesByLevel": {
            str(level): count
            for level, count in category_service.count_by_level().items()
        },
        "productCount": Product.query.count(),
        "integrity": {
            "consistent": report.is_consistent,
            "dangling": report.dangling,
            "unresolved": report.unresolved,
            "levelMismatches": [list(m) for m in report.level_mismatches],
        },
    }
    return api_response(data)
