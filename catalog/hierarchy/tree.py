from types import SimpleNamespace
from typing import Iterable, Iterator, NamedTuple

from catalog.errors import CorruptHierarchy
from catalog.hierarchy.snapshot import (
    MAX_LEVEL,
    PATH_SEPARATOR,
    CategoryRecord,
    CategorySnapshot,
)


class TreeNode(NamedTuple):
    record: CategoryRecord
    level: int
    children: list["TreeNode"]

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    def to_dict(self, counts: dict | None = None) -> dict:
        data = {
            "id": self.record.id,
            "name": self.record.name,
            "level": self.level,
            "sortOrder": self.record.sort_order,
            "hasChildren": bool(self.children),
        }
        if counts is not None:
            data["productCount"] = counts[self.record.id].transitive
        data["children"] = [child.to_dict(counts) for child in self.children]
        return data


def ancestor_path(snapshot: CategorySnapshot, category_id: int) -> list[CategoryRecord]:
    """Return the chain of records from the root down to ``category_id``.

    The upward walk stops after MAX_LEVEL hops. A longer chain, a repeated id
    or a parent_id that points nowhere raises CorruptHierarchy.
    """
    record = snapshot.require(category_id)
    path = [record]
    seen = {record.id}
    while record.parent_id is not None:
        if len(path) > MAX_LEVEL:
            raise CorruptHierarchy(category_id, "ancestor chain exceeds maximum depth")
        parent = snapshot.get(record.parent_id)
        if parent is None:
            raise CorruptHierarchy(category_id, f"missing ancestor {record.parent_id}")
        if parent.id in seen:
            raise CorruptHierarchy(category_id, f"cycle through {parent.id}")
        seen.add(parent.id)
        path.append(parent)
        record = parent
    path.reverse()
    return path


def full_path(
    snapshot: CategorySnapshot, category_id: int, separator: str = PATH_SEPARATOR
) -> str:
    return separator.join(r.name for r in ancestor_path(snapshot, category_id))


def level(snapshot: CategorySnapshot, category_id: int) -> int:
    return len(ancestor_path(snapshot, category_id)) - 1


def tree_path(snapshot: CategorySnapshot, category_id: int) -> list[CategoryRecord] | None:
    """Like ancestor_path, but follows the tree as build_tree lays it out.

    A category under a dangling parent_id starts its own chain instead of
    raising. Returns None for categories no root reaches (cycle members).
    """
    record = snapshot.require(category_id)
    depth = depths(snapshot).get(category_id)
    if depth is None:
        return None
    path = [record]
    for _ in range(depth):
        record = snapshot.get(record.parent_id)
        path.append(record)
    path.reverse()
    return path


def _walk_down(
    snapshot: CategorySnapshot, category_id: int
) -> Iterator[tuple[CategoryRecord, int]]:
    # Pre-order, siblings in display order; yields (record, depth below start)
    seen = {category_id}
    stack = [(child, 1) for child in reversed(snapshot.children_of(category_id))]
    while stack:
        record, depth = stack.pop()
        if record.id in seen:
            raise CorruptHierarchy(category_id, f"cycle through {record.id}")
        if depth > MAX_LEVEL:
            raise CorruptHierarchy(category_id, "descendant chain exceeds maximum depth")
        seen.add(record.id)
        yield record, depth
        stack.extend((child, depth + 1) for child in reversed(snapshot.children_of(record.id)))


def descendants(snapshot: CategorySnapshot, category_id: int) -> list[CategoryRecord]:
    snapshot.require(category_id)
    return [record for record, _ in _walk_down(snapshot, category_id)]


def descendant_ids(snapshot: CategorySnapshot, category_id: int) -> set[int]:
    return {record.id for record in descendants(snapshot, category_id)}


def descendant_depths(snapshot: CategorySnapshot, category_id: int) -> dict[int, int]:
    """Map each descendant id to its distance below ``category_id``."""
    snapshot.require(category_id)
    return {record.id: depth for record, depth in _walk_down(snapshot, category_id)}


def subtree_height(snapshot: CategorySnapshot, category_id: int) -> int:
    """Number of levels below ``category_id``; 0 for a leaf."""
    snapshot.require(category_id)
    return max((depth for _, depth in _walk_down(snapshot, category_id)), default=0)


def depths(snapshot: CategorySnapshot) -> dict[int, int]:
    """Tree depth of every category reachable from a root.

    Categories with a dangling parent_id count as roots. Categories caught in
    a cycle are never reached and are left out.
    """

    def compute():
        result = {}
        frontier = snapshot.root_ids
        depth = 0
        while frontier:
            next_frontier = []
            for category_id in frontier:
                result[category_id] = depth
                next_frontier.extend(snapshot.child_ids(category_id))
            frontier = next_frontier
            depth += 1
        return result

    return snapshot.memo("depths", compute)


def _build_node(
    snapshot: CategorySnapshot,
    record: CategoryRecord,
    depth: int,
    start_id: int,
    seen: set[int],
    hops: int = 0,
) -> TreeNode:
    # Bounded like _walk_down: a repeated id or more than MAX_LEVEL hops is corrupt
    if record.id in seen:
        raise CorruptHierarchy(start_id, f"cycle through {record.id}")
    if hops > MAX_LEVEL:
        raise CorruptHierarchy(start_id, "descendant chain exceeds maximum depth")
    seen.add(record.id)
    return TreeNode(
        record=record,
        level=depth,
        children=[
            _build_node(snapshot, child, depth + 1, start_id, seen, hops + 1)
            for child in snapshot.children_of(record.id)
        ],
    )


def build_tree(snapshot: CategorySnapshot, root_id: int | None = None) -> list[TreeNode]:
    """Nest the snapshot into trees, siblings ordered by (sort_order, id).

    With ``root_id`` only the subtree under that category is returned. A cycle
    or a chain deeper than MAX_LEVEL below a starting node raises
    CorruptHierarchy.
    """
    if root_id is not None:
        record = snapshot.require(root_id)
        start_level = depths(snapshot).get(root_id, record.level)
        return [_build_node(snapshot, record, start_level, root_id, set())]
    return [_build_node(snapshot, snapshot.get(i), 0, i, set()) for i in snapshot.root_ids]


def flatten(roots: Iterable[TreeNode]) -> Iterator[TreeNode]:
    for node in roots:
        yield node
        yield from flatten(node.children)


def ordering_key(snapshot: CategorySnapshot):
    known = depths(snapshot)

    def key(record: CategoryRecord):
        return (known.get(record.id, record.level), record.sort_order, record.id)

    return key


def ordered(snapshot: CategorySnapshot) -> list[CategoryRecord]:
    """Every record ordered by level, then sort_order, then id."""
    return sorted(snapshot, key=ordering_key(snapshot))


def parent_choices(
    snapshot: CategorySnapshot, exclude_id: int | None = None, indent: str = "  "
) -> list[SimpleNamespace]:
    """Categories that may be chosen as a parent, in tree order.

    Leaves at the deepest level cannot take children. When editing,
    ``exclude_id`` removes the category itself and everything beneath it, as
    well as parents that would push its subtree past MAX_LEVEL.
    """
    excluded = set()
    deepest = MAX_LEVEL - 1
    if exclude_id is not None and exclude_id in snapshot:
        excluded = descendant_ids(snapshot, exclude_id) | {exclude_id}
        deepest -= subtree_height(snapshot, exclude_id)

    choices = []
    for node in flatten(build_tree(snapshot)):
        if node.id in excluded or node.level > deepest:
            continue
        choices.append(
            SimpleNamespace(
                id=node.id,
                name=node.name,
                level=node.level,
                display_name=indent * node.level + node.name,
            )
        )
    return choices


def integrity_report(snapshot: CategorySnapshot) -> SimpleNamespace:
    """Collect stored-data problems without raising.

    - dangling: ids whose parent_id references a missing category
    - unresolved: ids whose ancestor walk fails (cycle, missing ancestor,
      chain deeper than MAX_LEVEL)
    - level_mismatches: (id, stored level, walked level) triples
    """
    unresolved = []
    mismatches = []
    for record in sorted(snapshot, key=lambda r: r.id):
        try:
            actual = level(snapshot, record.id)
        except CorruptHierarchy:
            unresolved.append(record.id)
            continue
        if actual != record.level:
            mismatches.append((record.id, record.level, actual))

    dangling = [r.id for r in snapshot.dangling]
    return SimpleNamespace(
        dangling=dangling,
        unresolved=unresolved,
        level_mismatches=mismatches,
        is_consistent=not (dangling or unresolved or mismatches),
    )
