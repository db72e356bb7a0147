import pytest

from catalog import create_app
from catalog.extensions import db as _db
from catalog.hierarchy import CategoryRecord, CategorySnapshot


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.rollback()
        _db.session.remove()
        # Teardown only: drop tables without tripping RESTRICT foreign keys
        with _db.engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def session(db):
    yield db.session


@pytest.fixture
def client(app):
    return app.test_client()


def _build_snapshot(rows, direct_counts=None):
    """Build a snapshot from (id, name, parent_id[, sort_order]) tuples.

    Stored levels are filled in by walking parents, so the rows start out
    consistent unless a test overrides them.
    """
    parents = {row[0]: row[2] for row in rows}

    def stored_level(category_id):
        hops = 0
        parent_id = parents.get(category_id)
        while parent_id in parents and hops < 10:
            hops += 1
            parent_id = parents[parent_id]
        return hops

    records = [
        CategoryRecord(
            id=row[0],
            name=row[1],
            parent_id=row[2],
            level=stored_level(row[0]),
            sort_order=row[3] if len(row) > 3 else 0,
        )
        for row in rows
    ]
    return CategorySnapshot(records, direct_counts)


@pytest.fixture
def make_snapshot():
    return _build_snapshot


@pytest.fixture
def sports_tree():
    """Sports > Running > Shoes, plus an unrelated Books root."""
    return _build_snapshot(
        [
            (1, "Sports", None),
            (2, "Running", 1),
            (3, "Shoes", 2),
            (4, "Books", None, 1),
        ]
    )
