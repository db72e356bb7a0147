from catalog.hierarchy.snapshot import CategoryRecord, CategorySnapshot
from catalog.hierarchy.tree import ordered, ordering_key, tree_path


def _normalize(keyword: str | None) -> str:
    return (keyword or "").strip().casefold()


def search(snapshot: CategorySnapshot, keyword: str | None) -> list[CategoryRecord]:
    """Categories whose name contains ``keyword``, plus all of their ancestors.

    Matching ignores case. Ancestors follow tree_path, so a match under a
    dangling parent or inside a cycle is still listed. The result is ordered
    like the plain listing (level, sort_order, id) so it can be rendered as a
    pruned tree. A blank keyword returns every category.
    """
    term = _normalize(keyword)
    if not term:
        return ordered(snapshot)

    selected: dict[int, CategoryRecord] = {}
    for record in snapshot:
        if term in record.name.casefold():
            for ancestor in tree_path(snapshot, record.id) or [record]:
                selected[ancestor.id] = ancestor

    return sorted(selected.values(), key=ordering_key(snapshot))


def suggestions(
    snapshot: CategorySnapshot, term: str | None, limit: int = 10
) -> list[str]:
    """Distinct matching names in alphabetical order, at most ``limit``."""
    needle = _normalize(term)
    if not needle or limit < 1:
        return []
    names = {r.name for r in snapshot if needle in r.name.casefold()}
    return sorted(names, key=lambda n: (n.casefold(), n))[:limit]
