"""Category hierarchy engine.

Pure computation over a CategorySnapshot: tree building and path queries,
validation of hierarchy changes, product-count aggregation and keyword
search. Nothing in this package touches the database or needs an app
context.
"""

from catalog.hierarchy.counts import (
    ProductCount,
    counts_for,
    direct_count,
    has_children,
    transitive_count,
)
from catalog.hierarchy.search import search, suggestions
from catalog.hierarchy.snapshot import (
    MAX_LEVEL,
    PATH_SEPARATOR,
    CategoryRecord,
    CategorySnapshot,
)
from catalog.hierarchy.tree import (
    TreeNode,
    ancestor_path,
    build_tree,
    descendant_depths,
    descendant_ids,
    descendants,
    flatten,
    full_path,
    integrity_report,
    level,
    ordered,
    parent_choices,
    subtree_height,
    tree_path,
)
from catalog.hierarchy.validation import (
    ValidationResult,
    can_delete,
    delete_blockers,
    is_name_duplicate,
    validate_category,
    validate_fields,
    validate_hierarchy,
    would_create_circular_reference,
)

__all__ = [
    "MAX_LEVEL",
    "PATH_SEPARATOR",
    "CategoryRecord",
    "CategorySnapshot",
    "ProductCount",
    "TreeNode",
    "ValidationResult",
    "ancestor_path",
    "build_tree",
    "can_delete",
    "counts_for",
    "delete_blockers",
    "descendant_depths",
    "descendant_ids",
    "descendants",
    "direct_count",
    "flatten",
    "full_path",
    "has_children",
    "integrity_report",
    "is_name_duplicate",
    "level",
    "ordered",
    "parent_choices",
    "search",
    "subtree_height",
    "suggestions",
    "transitive_count",
    "tree_path",
    "validate_category",
    "validate_fields",
    "validate_hierarchy",
    "would_create_circular_reference",
]
