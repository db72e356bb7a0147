from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from catalog import hierarchy
from catalog.errors import CategoryNotFound
from catalog.extensions import db
from catalog.hierarchy import CategorySnapshot, ValidationResult
from catalog.models.category import Category
from catalog.models.product_category import ProductCategory

CONCURRENT_CHANGE = "category was changed concurrently, please retry"

_EDITABLE_FIELDS = ("name", "description", "parent_id", "sort_order")


def load_snapshot() -> CategorySnapshot:
    """Read every category and the per-category product link counts once."""
    categories = Category.query.all()
    direct_counts = dict(
        db.session.query(
            ProductCategory.category_id, func.count(ProductCategory.product_id)
        )
        .group_by(ProductCategory.category_id)
        .all()
    )
    return CategorySnapshot.from_models(categories, direct_counts)


def get_category(category_id: int) -> Category | None:
    return db.session.get(Category, category_id)


def get_category_by_name(name: str) -> Category | None:
    return Category.query.filter_by(name=name).first()


def get_categories(
    *,
    level: int | None = None,
    parent_id: int | None = None,
    name_term: str | None = None,
) -> list[Category]:
    query = Category.query

    if level is not None:
        query = query.filter_by(level=level)
    if parent_id is not None:
        query = query.filter_by(parent_id=parent_id)
    if name_term and name_term.strip():
        term = (
            name_term.strip()
            .replace("\\", "\\\\")
            .replace("%", "\\%")
            .replace("_", "\\_")
        )
        query = query.filter(Category.name.ilike(f"%{term}%", escape="\\"))

    return query.order_by(Category.level, Category.sort_order, Category.id).all()


def count_by_level() -> dict[int, int]:
    rows = (
        db.session.query(Category.level, func.count(Category.id))
        .group_by(Category.level)
        .order_by(Category.level)
        .all()
    )
    return {lvl: count for lvl, count in rows}


def _commit_or_recheck(recheck) -> ValidationResult:
    """Commit the pending change; on a constraint conflict roll back and revalidate.

    ``recheck`` receives a fresh snapshot and returns the ValidationResult
    the change would get now.
    """
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning("Category write rejected by the store, revalidating")
        result = recheck(load_snapshot())
        if result.valid:
            result = ValidationResult.from_errors([CONCURRENT_CHANGE])
        return result
    return ValidationResult.ok()


def create_category(
    name: str,
    *,
    description: str | None = None,
    parent_id: int | None = None,
    sort_order: int = 0,
) -> tuple[Category | None, ValidationResult]:
    def check(snapshot):
        return hierarchy.validate_category(
            snapshot, name, description=description, parent_id=parent_id
        )

    snapshot = load_snapshot()
    result = check(snapshot)
    if not result.valid:
        return None, result

    level = 0 if parent_id is None else hierarchy.level(snapshot, parent_id) + 1
    category = Category(
        name=name,
        description=description,
        parent_id=parent_id,
        level=level,
        sort_order=sort_order,
    )
    db.session.add(category)

    result = _commit_or_recheck(check)
    if not result.valid:
        return None, result

    current_app.logger.info(
        "Category %s created: %r (parent=%s, level=%s)",
        category.id, category.name, parent_id, level,
    )
    return category, result


def update_category(category_id: int, **kwargs) -> tuple[Category, ValidationResult]:
    """Apply name, description, parent_id and sort_order changes.

    Moving a category under a new parent recomputes the stored level of the
    category and of every descendant in the same commit.
    """
    category = db.session.get(Category, category_id)
    if not category:
        raise CategoryNotFound(category_id)

    changes = {key: kwargs[key] for key in _EDITABLE_FIELDS if key in kwargs}
    name = changes.get("name", category.name)
    description = changes.get("description", category.description)
    parent_id = changes.get("parent_id", category.parent_id)

    def check(snapshot):
        return hierarchy.validate_category(
            snapshot,
            name,
            description=description,
            parent_id=parent_id,
            current_id=category_id,
        )

    snapshot = load_snapshot()
    result = check(snapshot)
    if not result.valid:
        return category, result

    moved = parent_id != category.parent_id
    for key, value in changes.items():
        setattr(category, key, value)

    if moved:
        new_level = 0 if parent_id is None else hierarchy.level(snapshot, parent_id) + 1
        category.level = new_level
        for descendant_id, depth in hierarchy.descendant_depths(
            snapshot, category_id
        ).items():
            db.session.get(Category, descendant_id).level = new_level + depth

    result = _commit_or_recheck(check)
    if not result.valid:
        return db.session.get(Category, category_id), result

    if moved:
        current_app.logger.info(
            "Category %s moved under %s (level=%s)",
            category_id, parent_id, category.level,
        )
    current_app.logger.info("Category %s updated: %s", category_id, sorted(changes))
    return category, result


def delete_category(category_id: int) -> ValidationResult:
    category = db.session.get(Category, category_id)
    if not category:
        raise CategoryNotFound(category_id)

    def check(snapshot):
        if category_id not in snapshot:
            return ValidationResult.ok()
        return ValidationResult.from_errors(
            hierarchy.delete_blockers(snapshot, category_id)
        )

    result = check(load_snapshot())
    if not result.valid:
        return result

    name = category.name
    db.session.delete(category)
    result = _commit_or_recheck(check)
    if result.valid:
        current_app.logger.info("Category %s deleted: %r", category_id, name)
    return result
