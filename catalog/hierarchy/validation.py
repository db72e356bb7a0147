"""Rules guarding every change to the category hierarchy.

Nothing here writes. Expected failures come back as a ValidationResult whose
``errors`` list holds every rule that was broken; callers check it before
touching the store.
"""

from typing import NamedTuple

from catalog.hierarchy.snapshot import MAX_LEVEL, CategorySnapshot
from catalog.hierarchy.tree import descendant_ids, level, subtree_height

NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500

PARENT_NOT_FOUND = "parent not found"
MAX_DEPTH_EXCEEDED = "maximum depth exceeded"
SELF_PARENT = "self-parent"
CIRCULAR_REFERENCE = "circular reference"
NAME_DUPLICATE = "name already exists"
NAME_REQUIRED = "name is required"
NAME_TOO_LONG = f"name must be at most {NAME_MAX_LENGTH} characters"
DESCRIPTION_TOO_LONG = (
    f"description must be at most {DESCRIPTION_MAX_LENGTH} characters"
)
HAS_CHILDREN = "category has children"
HAS_PRODUCTS = "category has products"


class ValidationResult(NamedTuple):
    valid: bool
    errors: list[str]

    @classmethod
    def from_errors(cls, errors) -> "ValidationResult":
        errors = list(errors)
        return cls(valid=not errors, errors=errors)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True, errors=[])

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult.from_errors(self.errors + other.errors)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


def is_name_duplicate(
    snapshot: CategorySnapshot, name: str, exclude_id: int | None = None
) -> bool:
    # Exact, case-sensitive comparison
    return any(r.name == name and r.id != exclude_id for r in snapshot)


def validate_fields(name: str | None, description: str | None = None) -> ValidationResult:
    errors = []
    if not name or not name.strip():
        errors.append(NAME_REQUIRED)
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(NAME_TOO_LONG)
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(DESCRIPTION_TOO_LONG)
    return ValidationResult.from_errors(errors)


def validate_hierarchy(
    snapshot: CategorySnapshot,
    parent_id: int | None = None,
    current_id: int | None = None,
) -> ValidationResult:
    """Check a proposed parent for a new (``current_id=None``) or existing category.

    Every rule is evaluated and all violations are reported, in this order:
    parent exists, resulting depth, self-parent, circular reference.
    """
    errors = []

    editing = current_id is not None and current_id in snapshot
    below = descendant_ids(snapshot, current_id) if editing else set()
    self_parent = current_id is not None and parent_id == current_id
    circular = parent_id is not None and parent_id in below

    if parent_id is not None and parent_id not in snapshot:
        errors.append(PARENT_NOT_FOUND)
    else:
        new_level = 0 if parent_id is None else level(snapshot, parent_id) + 1
        # A moved category takes its whole subtree along
        height = 0
        if editing and not (self_parent or circular):
            height = subtree_height(snapshot, current_id)
        if new_level + height > MAX_LEVEL:
            errors.append(MAX_DEPTH_EXCEEDED)

    if self_parent:
        errors.append(SELF_PARENT)
    if circular:
        errors.append(CIRCULAR_REFERENCE)

    return ValidationResult.from_errors(errors)


def validate_category(
    snapshot: CategorySnapshot,
    name: str | None,
    *,
    description: str | None = None,
    parent_id: int | None = None,
    current_id: int | None = None,
) -> ValidationResult:
    result = validate_fields(name, description)
    if name and is_name_duplicate(snapshot, name, exclude_id=current_id):
        result = result.merge(ValidationResult.from_errors([NAME_DUPLICATE]))
    return result.merge(validate_hierarchy(snapshot, parent_id, current_id))


def delete_blockers(snapshot: CategorySnapshot, category_id: int) -> list[str]:
    snapshot.require(category_id)
    blockers = []
    if snapshot.has_children(category_id):
        blockers.append(HAS_CHILDREN)
    if snapshot.direct_count(category_id) > 0:
        blockers.append(HAS_PRODUCTS)
    return blockers


def can_delete(snapshot: CategorySnapshot, category_id: int) -> bool:
    return not delete_blockers(snapshot, category_id)


def would_create_circular_reference(
    snapshot: CategorySnapshot, category_id: int, new_parent_id: int
) -> bool:
    if new_parent_id == category_id:
        return True
    return new_parent_id in descendant_ids(snapshot, category_id)
