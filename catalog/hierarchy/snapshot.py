from datetime import datetime
from typing import Iterable, Iterator, NamedTuple

from catalog.errors import CategoryNotFound

MAX_LEVEL = 2
PATH_SEPARATOR = " > "


class CategoryRecord(NamedTuple):
    id: int
    name: str
    parent_id: int | None = None
    level: int = 0
    sort_order: int = 0
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, category) -> "CategoryRecord":
        return cls(
            id=category.id,
            name=category.name,
            parent_id=category.parent_id,
            level=category.level or 0,
            sort_order=category.sort_order or 0,
            description=category.description,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


def sibling_key(record: CategoryRecord) -> tuple[int, int]:
    return (record.sort_order, record.id)


class CategorySnapshot:
    """Request-scoped, read-only view of every category.

    Holds the records keyed by id, an index of child ids per parent id in
    sibling order, and the number of products attached directly to each
    category. Derived results (product counts) are memoised on the instance,
    so a snapshot should not outlive the operation that loaded it.
    """

    def __init__(
        self,
        records: Iterable[CategoryRecord],
        direct_counts: dict[int, int] | None = None,
    ):
        self._by_id: dict[int, CategoryRecord] = {}
        for record in records:
            self._by_id[record.id] = record

        children: dict[int | None, list[CategoryRecord]] = {}
        for record in self._by_id.values():
            children.setdefault(record.parent_id, []).append(record)
        self._children: dict[int | None, tuple[int, ...]] = {
            parent_id: tuple(r.id for r in sorted(group, key=sibling_key))
            for parent_id, group in children.items()
        }

        self._direct_counts = {
            category_id: count
            for category_id, count in (direct_counts or {}).items()
            if count
        }
        self._cache: dict[str, object] = {}

    @classmethod
    def from_models(cls, categories, direct_counts=None) -> "CategorySnapshot":
        return cls((CategoryRecord.from_model(c) for c in categories), direct_counts)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[CategoryRecord]:
        return iter(self._by_id.values())

    def __contains__(self, category_id) -> bool:
        return category_id in self._by_id

    @property
    def by_id(self) -> dict[int, CategoryRecord]:
        return dict(self._by_id)

    def get(self, category_id: int | None) -> CategoryRecord | None:
        if category_id is None:
            return None
        return self._by_id.get(category_id)

    def require(self, category_id: int) -> CategoryRecord:
        record = self._by_id.get(category_id)
        if record is None:
            raise CategoryNotFound(category_id)
        return record

    def child_ids(self, category_id: int | None) -> tuple[int, ...]:
        return self._children.get(category_id, ())

    def children_of(self, category_id: int | None) -> list[CategoryRecord]:
        return [self._by_id[i] for i in self.child_ids(category_id)]

    def has_children(self, category_id: int) -> bool:
        return bool(self._children.get(category_id))

    def direct_count(self, category_id: int) -> int:
        return self._direct_counts.get(category_id, 0)

    @property
    def dangling(self) -> list[CategoryRecord]:
        """Records whose parent_id points at a category that does not exist."""
        return sorted(
            (
                r
                for r in self._by_id.values()
                if r.parent_id is not None and r.parent_id not in self._by_id
            ),
            key=lambda r: r.id,
        )

    @property
    def root_ids(self) -> list[int]:
        roots = [self._by_id[i] for i in self.child_ids(None)]
        roots.extend(self.dangling)
        return [r.id for r in sorted(roots, key=sibling_key)]

    def memo(self, key: str, compute):
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]
