from flask import Flask
from sqlalchemy.exc import OperationalError

from config import config
from catalog.errors import CategoryNotFound, CorruptHierarchy, ProductNotFound
from catalog.extensions import db, migrate


def create_app(config_name=None):
    if config_name is None:
        import os

        config_name = os.environ.get("FLASK_CONFIG", "default")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can detect them
    from catalog import models  # noqa: F401

    from catalog.routes import register_blueprints

    register_blueprints(app)
    register_error_handlers(app)

    return app


def register_error_handlers(app):
    from catalog.routes.responses import api_error

    @app.errorhandler(400)
    def bad_request(e):
        return api_error(e.description or "Bad request", status=400)

    @app.errorhandler(404)
    def not_found(e):
        return api_error("Resource not found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error("Method not allowed", status=405)

    @app.errorhandler(CategoryNotFound)
    def category_not_found(e):
        return api_error(
            f"Category {e.category_id} not found",
            errors=["category not found"],
            status=404,
        )

    @app.errorhandler(ProductNotFound)
    def product_not_found(e):
        return api_error(
            f"Product {e.product_id} not found",
            errors=["product not found"],
            status=404,
        )

    @app.errorhandler(CorruptHierarchy)
    def corrupt_hierarchy(e):
        app.logger.exception("Corrupt category hierarchy at %s: %s", e.category_id, e.reason)
        return api_error("An internal error occurred", status=500)

    @app.errorhandler(OperationalError)
    def store_unavailable(e):
        db.session.rollback()
        app.logger.exception("Category store unavailable")
        return api_error("Service temporarily unavailable", status=503)

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.exception("Internal server error")
        return api_error("An internal error occurred", status=500)
