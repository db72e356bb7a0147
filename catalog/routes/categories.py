import math

from flask import Blueprint, current_app, request

from catalog import hierarchy
from catalog.hierarchy import CategorySnapshot
from catalog.routes.responses import (
    api_error,
    api_response,
    bounded_int_arg,
    iso,
    json_payload,
    optional_int,
    optional_str,
)
from catalog.services import category_service

bp = Blueprint("categories", __name__)


def _load_snapshot() -> CategorySnapshot:
    snapshot = category_service.load_snapshot()
    report = hierarchy.integrity_report(snapshot)
    if not report.is_consistent:
        current_app.logger.warning(
            "Category integrity issues: dangling=%s unresolved=%s level_mismatches=%s",
            report.dangling, report.unresolved, report.level_mismatches,
        )
    return snapshot


def _category_dto(snapshot: CategorySnapshot, category_id: int, path=None) -> dict:
    record = snapshot.require(category_id)
    if path is None:
        path = hierarchy.tree_path(snapshot, category_id)
    count = hierarchy.counts_for(snapshot)[category_id]
    return {
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "parentId": record.parent_id,
        "level": len(path) - 1 if path else record.level,
        "sortOrder": record.sort_order,
        "fullPath": hierarchy.PATH_SEPARATOR.join(r.name for r in path) if path else None,
        "productCount": count.transitive,
        "directProductCount": count.direct,
        "hasChildren": snapshot.has_children(category_id),
        "integrityIssue": not path or path[0].parent_id is not None,
        "createdAt": iso(record.created_at),
        "updatedAt": iso(record.updated_at),
    }


@bp.route("/")
def list_categories():
    keyword = request.args.get("searchKeyword", "")
    page = request.args.get("page", 1, type=int)
    if page < 1:
        page = 1
    page_size = bounded_int_arg(
        request.args,
        "pageSize",
        current_app.config["CATEGORY_PAGE_SIZE"],
        current_app.config["CATEGORY_MAX_PAGE_SIZE"],
    )
    current_app.logger.info(
        "List categories: keyword=%r page=%s page_size=%s", keyword, page, page_size
    )

    snapshot = _load_snapshot()
    matches = hierarchy.search(snapshot, keyword)
    total = len(matches)
    total_pages = math.ceil(total / page_size)
    window = matches[(page - 1) * page_size : page * page_size]

    data = {
        "categories": [_category_dto(snapshot, r.id) for r in window],
        "paging": {
            "currentPage": page,
            "pageSize": page_size,
            "totalCount": total,
            "totalPages": total_pages,
            "hasPreviousPage": page > 1,
            "hasNextPage": page < total_pages,
        },
        "searchKeyword": keyword or None,
    }
    return api_response(data, f"{total} categories found")


@bp.route("/all")
def all_categories():
    snapshot = _load_snapshot()
    records = sorted(snapshot, key=lambda r: (r.name, r.id))
    data = [
        {
            "id": r.id,
            "name": r.name,
            "description": r.description,
            "createdAt": iso(r.created_at),
            "updatedAt": iso(r.updated_at),
        }
        for r in records
    ]
    return api_response(data, f"{len(data)} categories")


@bp.route("/tree")
def category_tree():
    root_id = request.args.get("rootId", type=int)
    snapshot = _load_snapshot()
    roots = hierarchy.build_tree(snapshot, root_id)
    counts = hierarchy.counts_for(snapshot)
    return api_response([node.to_dict(counts) for node in roots])


@bp.route("/suggestions")
def suggestions():
    term = request.args.get("term", "")
    limit = bounded_int_arg(
        request.args,
        "limit",
        current_app.config["CATEGORY_SUGGESTION_LIMIT"],
        current_app.config["CATEGORY_MAX_SUGGESTION_LIMIT"],
    )
    current_app.logger.info("Category suggestions: term=%r limit=%s", term, limit)
    if not term.strip():
        return api_response([], "Empty search term, no suggestions")

    names = hierarchy.suggestions(category_service.load_snapshot(), term, limit)
    return api_response(names, f"{len(names)} suggestions")


@bp.route("/parent-options")
def parent_options():
    exclude_id = request.args.get("excludeId", type=int)
    snapshot = _load_snapshot()
    if exclude_id is not None:
        snapshot.require(exclude_id)
    data = [
        {
            "id": choice.id,
            "name": choice.name,
            "level": choice.level,
            "displayName": choice.display_name,
        }
        for choice in hierarchy.parent_choices(snapshot, exclude_id)
    ]
    return api_response(data)


@bp.route("/<int:category_id>")
def category_detail(category_id):
    current_app.logger.info("Category detail: id=%s", category_id)
    snapshot = _load_snapshot()
    path = hierarchy.ancestor_path(snapshot, category_id)
    data = _category_dto(snapshot, category_id, path)

    data["breadcrumb"] = [
        {"id": r.id, "name": r.name, "level": i, "isLast": i == len(path) - 1}
        for i, r in enumerate(path)
    ]
    data["children"] = [
        {"id": r.id, "name": r.name, "sortOrder": r.sort_order}
        for r in snapshot.children_of(category_id)
    ]
    return api_response(data)


@bp.route("/<int:category_id>/can-delete")
def can_delete(category_id):
    snapshot = category_service.load_snapshot()
    blockers = hierarchy.delete_blockers(snapshot, category_id)
    return api_response({"canDelete": not blockers, "reasons": blockers})


@bp.route("/validate-hierarchy", methods=["POST"])
def validate_hierarchy():
    payload = json_payload()
    parent_id = optional_int(payload, "parentId")
    current_id = optional_int(payload, "currentId")

    snapshot = category_service.load_snapshot()
    result = hierarchy.validate_hierarchy(snapshot, parent_id, current_id)
    return api_response(result.to_dict())


@bp.route("/", methods=["POST"])
def create_category():
    payload = json_payload()
    category, result = category_service.create_category(
        optional_str(payload, "name"),
        description=optional_str(payload, "description") or None,
        parent_id=optional_int(payload, "parentId"),
        sort_order=optional_int(payload, "sortOrder") or 0,
    )
    if not result.valid:
        return api_error("Category could not be created", errors=result.errors)

    snapshot = category_service.load_snapshot()
    return api_response(
        _category_dto(snapshot, category.id), "Category created", status=201
    )


@bp.route("/<int:category_id>", methods=["PUT"])
def update_category(category_id):
    payload = json_payload()
    changes = {}
    if "name" in payload:
        changes["name"] = optional_str(payload, "name")
    if "description" in payload:
        changes["description"] = optional_str(payload, "description") or None
    if "parentId" in payload:
        changes["parent_id"] = optional_int(payload, "parentId")
    if "sortOrder" in payload:
        changes["sort_order"] = optional_int(payload, "sortOrder") or 0

    _, result = category_service.update_category(category_id, **changes)
    if not result.valid:
        return api_error("Category could not be updated", errors=result.errors)

    snapshot = category_service.load_snapshot()
    return api_response(_category_dto(snapshot, category_id), "Category updated")


@bp.route("/<int:category_id>", methods=["DELETE"])
def delete_category(category_id):
    result = category_service.delete_category(category_id)
    if not result.valid:
        return api_error("Category could not be deleted", errors=result.errors)
    return api_response({"id": category_id}, "Category deleted")
