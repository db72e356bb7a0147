import pytest

from catalog import hierarchy
from catalog.errors import CategoryNotFound, CorruptHierarchy
from catalog.hierarchy import CategoryRecord, CategorySnapshot


def _ids(records):
    return [r.id for r in records]


class TestBuildTree:
    def test_roots_and_nesting(self, sports_tree):
        roots = hierarchy.build_tree(sports_tree)
        assert [n.name for n in roots] == ["Sports", "Books"]
        sports = roots[0]
        assert [n.name for n in sports.children] == ["Running"]
        assert [n.name for n in sports.children[0].children] == ["Shoes"]
        assert roots[1].children == []

    def test_levels_follow_depth(self, sports_tree):
        levels = {n.id: n.level for n in hierarchy.flatten(hierarchy.build_tree(sports_tree))}
        assert levels == {1: 0, 2: 1, 3: 2, 4: 0}

    def test_siblings_sorted_by_sort_order_then_id(self, make_snapshot):
        snapshot = make_snapshot(
            [
                (5, "E", None, 2),
                (3, "C", None, 1),
                (1, "A", None, 1),
                (9, "Child B", 1, 0),
                (8, "Child A", 1, 0),
                (7, "Child C", 1, -1),
            ]
        )
        roots = hierarchy.build_tree(snapshot)
        assert [n.id for n in roots] == [1, 3, 5]
        assert [n.id for n in roots[0].children] == [7, 8, 9]

    def test_empty_snapshot(self):
        assert hierarchy.build_tree(CategorySnapshot([])) == []

    def test_subtree_from_root_id(self, sports_tree):
        (node,) = hierarchy.build_tree(sports_tree, root_id=2)
        assert node.name == "Running"
        assert node.level == 1
        assert [c.name for c in node.children] == ["Shoes"]
        assert node.children[0].level == 2

    def test_unknown_root_id(self, sports_tree):
        with pytest.raises(CategoryNotFound):
            hierarchy.build_tree(sports_tree, root_id=99)

    def test_dangling_parent_becomes_root(self, make_snapshot):
        snapshot = make_snapshot([(1, "A", None), (2, "Orphan", 99), (3, "Under orphan", 2)])
        roots = hierarchy.build_tree(snapshot)
        assert [n.id for n in roots] == [1, 2]
        assert [c.id for c in roots[1].children] == [3]
        assert _ids(snapshot.dangling) == [2]

    def test_to_dict_with_counts(self, sports_tree):
        counts = hierarchy.counts_for(sports_tree)
        (node,) = hierarchy.build_tree(sports_tree, root_id=1)
        data = node.to_dict(counts)
        assert data["name"] == "Sports"
        assert data["hasChildren"] is True
        assert data["productCount"] == 0
        assert data["children"][0]["children"][0]["name"] == "Shoes"


class TestPaths:
    def test_full_path(self, sports_tree):
        assert hierarchy.full_path(sports_tree, 3) == "Sports > Running > Shoes"
        assert hierarchy.full_path(sports_tree, 1) == "Sports"

    def test_custom_separator(self, sports_tree):
        assert hierarchy.full_path(sports_tree, 3, separator="/") == "Sports/Running/Shoes"

    def test_ancestor_path_root_to_self(self, sports_tree):
        assert _ids(hierarchy.ancestor_path(sports_tree, 3)) == [1, 2, 3]
        assert _ids(hierarchy.ancestor_path(sports_tree, 4)) == [4]

    @pytest.mark.parametrize("category_id,expected", [(1, 0), (2, 1), (3, 2), (4, 0)])
    def test_level(self, sports_tree, category_id, expected):
        assert hierarchy.level(sports_tree, category_id) == expected

    def test_level_matches_parent_plus_one(self, sports_tree):
        for record in sports_tree:
            expected = 0
            if record.parent_id is not None:
                expected = hierarchy.level(sports_tree, record.parent_id) + 1
            assert hierarchy.level(sports_tree, record.id) == expected

    def test_path_segments_equal_level_plus_one(self, sports_tree):
        for record in sports_tree:
            segments = hierarchy.full_path(sports_tree, record.id).split(" > ")
            assert len(segments) == hierarchy.level(sports_tree, record.id) + 1
            assert segments[-1] == record.name

    def test_unknown_category(self, sports_tree):
        with pytest.raises(CategoryNotFound):
            hierarchy.full_path(sports_tree, 99)

    def test_missing_ancestor_is_corrupt(self, make_snapshot):
        snapshot = make_snapshot([(2, "Orphan", 99)])
        with pytest.raises(CorruptHierarchy) as exc:
            hierarchy.full_path(snapshot, 2)
        assert exc.value.category_id == 2

    def test_cycle_is_corrupt(self):
        snapshot = CategorySnapshot(
            [CategoryRecord(1, "A", parent_id=2), CategoryRecord(2, "B", parent_id=1)]
        )
        with pytest.raises(CorruptHierarchy):
            hierarchy.ancestor_path(snapshot, 1)

    def test_self_parent_is_corrupt(self):
        snapshot = CategorySnapshot([CategoryRecord(1, "Loop", parent_id=1)])
        with pytest.raises(CorruptHierarchy):
            hierarchy.level(snapshot, 1)

    def test_tree_path_matches_ancestor_path(self, sports_tree):
        for record in sports_tree:
            assert hierarchy.tree_path(sports_tree, record.id) == hierarchy.ancestor_path(
                sports_tree, record.id
            )

    def test_tree_path_starts_at_dangling_parent(self, make_snapshot):
        snapshot = make_snapshot([(2, "Orphan", 99), (3, "Under orphan", 2)])
        assert _ids(hierarchy.tree_path(snapshot, 3)) == [2, 3]
        assert _ids(hierarchy.tree_path(snapshot, 2)) == [2]

    def test_tree_path_of_cycle_member(self):
        snapshot = CategorySnapshot(
            [CategoryRecord(1, "A", parent_id=2), CategoryRecord(2, "B", parent_id=1)]
        )
        assert hierarchy.tree_path(snapshot, 1) is None

    def test_chain_deeper_than_limit_is_corrupt(self, make_snapshot):
        snapshot = make_snapshot([(1, "A", None), (2, "B", 1), (3, "C", 2), (4, "D", 3)])
        assert hierarchy.level(snapshot, 3) == 2
        with pytest.raises(CorruptHierarchy):
            hierarchy.level(snapshot, 4)


class TestDescendants:
    def test_preorder(self, make_snapshot):
        snapshot = make_snapshot(
            [(1, "A", None), (2, "B", 1, 1), (3, "C", 1, 0), (4, "D", 2), (5, "E", 3)]
        )
        assert _ids(hierarchy.descendants(snapshot, 1)) == [3, 5, 2, 4]
        assert hierarchy.descendant_ids(snapshot, 2) == {4}
        assert hierarchy.descendants(snapshot, 4) == []

    def test_descendant_depths(self, sports_tree):
        assert hierarchy.descendant_depths(sports_tree, 1) == {2: 1, 3: 2}

    @pytest.mark.parametrize("category_id,expected", [(1, 2), (2, 1), (3, 0), (4, 0)])
    def test_subtree_height(self, sports_tree, category_id, expected):
        assert hierarchy.subtree_height(sports_tree, category_id) == expected

    def test_cycle_below_is_corrupt(self):
        snapshot = CategorySnapshot(
            [CategoryRecord(1, "A", parent_id=2), CategoryRecord(2, "B", parent_id=1)]
        )
        with pytest.raises(CorruptHierarchy):
            hierarchy.descendants(snapshot, 1)

    def test_too_deep_below_is_corrupt(self, make_snapshot):
        snapshot = make_snapshot([(1, "A", None), (2, "B", 1), (3, "C", 2), (4, "D", 3)])
        with pytest.raises(CorruptHierarchy):
            hierarchy.descendants(snapshot, 1)

    def test_subtree_of_cycle_is_corrupt(self):
        snapshot = CategorySnapshot(
            [CategoryRecord(1, "A", parent_id=2), CategoryRecord(2, "B", parent_id=1)]
        )
        with pytest.raises(CorruptHierarchy) as exc:
            hierarchy.build_tree(snapshot, root_id=1)
        assert exc.value.category_id == 1

    def test_too_deep_tree_is_corrupt(self, make_snapshot):
        snapshot = make_snapshot([(1, "A", None), (2, "B", 1), (3, "C", 2), (4, "D", 3)])
        with pytest.raises(CorruptHierarchy):
            hierarchy.build_tree(snapshot)


class TestOrdering:
    def test_ordered_by_level_then_sort_order(self, sports_tree):
        assert _ids(hierarchy.ordered(sports_tree)) == [1, 4, 2, 3]

    def test_ordered_matches_flattened_tree(self, make_snapshot):
        snapshot = make_snapshot(
            [
                (1, "A", None, 3),
                (2, "B", None, 1),
                (3, "A1", 1, 2),
                (4, "B1", 2, 5),
                (5, "B2", 2, 0),
                (6, "A1x", 3, 0),
            ]
        )
        flat = sorted(
            hierarchy.flatten(hierarchy.build_tree(snapshot)),
            key=lambda n: (n.level, n.record.sort_order, n.id),
        )
        assert _ids(hierarchy.ordered(snapshot)) == [n.id for n in flat]


class TestParentChoices:
    def test_deepest_level_excluded(self, sports_tree):
        choices = hierarchy.parent_choices(sports_tree)
        assert [c.id for c in choices] == [1, 2, 4]
        assert choices[1].display_name == "  Running"

    def test_excludes_self_and_descendants(self, sports_tree):
        # Running carries Shoes along, so it can only sit under a root
        choices = hierarchy.parent_choices(sports_tree, exclude_id=2)
        assert [c.id for c in choices] == [1, 4]

    def test_full_height_subtree_has_no_parent_choice(self, sports_tree):
        assert hierarchy.parent_choices(sports_tree, exclude_id=1) == []


class TestIntegrityReport:
    def test_consistent(self, sports_tree):
        report = hierarchy.integrity_report(sports_tree)
        assert report.is_consistent is True
        assert report.dangling == []

    def test_reports_problems(self):
        snapshot = CategorySnapshot(
            [
                CategoryRecord(1, "Root"),
                CategoryRecord(2, "Wrong level", parent_id=1, level=0),
                CategoryRecord(3, "Orphan", parent_id=99),
                CategoryRecord(4, "Loop A", parent_id=5, level=1),
                CategoryRecord(5, "Loop B", parent_id=4, level=1),
            ]
        )
        report = hierarchy.integrity_report(snapshot)
        assert report.is_consistent is False
        assert report.dangling == [3]
        assert report.unresolved == [3, 4, 5]
        assert report.level_mismatches == [(2, 0, 1)]
