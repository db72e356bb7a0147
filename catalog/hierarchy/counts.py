from typing import NamedTuple

from catalog.hierarchy.snapshot import CategorySnapshot
from catalog.hierarchy.tree import depths


class ProductCount(NamedTuple):
    direct: int
    transitive: int


def direct_count(snapshot: CategorySnapshot, category_id: int) -> int:
    snapshot.require(category_id)
    return snapshot.direct_count(category_id)


def has_children(snapshot: CategorySnapshot, category_id: int) -> bool:
    snapshot.require(category_id)
    return snapshot.has_children(category_id)


def counts_for(snapshot: CategorySnapshot) -> dict[int, ProductCount]:
    """Direct and transitive product counts for every category.

    Categories are visited deepest first, so each one has its final total
    before it is added to its parent. Computed once per snapshot.
    """

    def compute():
        known = depths(snapshot)
        totals = {r.id: snapshot.direct_count(r.id) for r in snapshot}
        for category_id in sorted(known, key=known.__getitem__, reverse=True):
            parent_id = snapshot.get(category_id).parent_id
            if parent_id in known:
                totals[parent_id] += totals[category_id]
        return {
            category_id: ProductCount(snapshot.direct_count(category_id), total)
            for category_id, total in totals.items()
        }

    return snapshot.memo("product_counts", compute)


def transitive_count(snapshot: CategorySnapshot, category_id: int) -> int:
    snapshot.require(category_id)
    return counts_for(snapshot)[category_id].transitive
