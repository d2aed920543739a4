"""Tests for the tree builder."""

import pytest
from pydantic import ValidationError

from app.core.filter_engine import iter_tree
from app.core.tree_builder import BuildResult, WarningKind, build_tree
from app.schemas.category import CategoryNode


def _shape(forest) -> list:
    """Reduce a forest to nested (id, depth, children) tuples."""
    return [(node.id, node.depth, _shape(node.children)) for node in forest]


class TestBuildTree:
    """Tests for build_tree on well-formed data."""

    def test_three_level_chain(self, scenario_a_nodes):
        """Vehicles > Armor > Glass builds one root with depths 0, 1, 2."""
        result = build_tree(scenario_a_nodes)

        assert isinstance(result, BuildResult)
        assert result.warnings == []
        assert _shape(result.forest) == [(1, 0, [(2, 1, [(3, 2, [])])])]

    def test_empty_list(self):
        result = build_tree([])

        assert result.forest == []
        assert result.warnings == []

    def test_preserves_input_order(self):
        """Roots and siblings keep input order, no sorting by name."""
        nodes = [
            CategoryNode(id=10, name="Zulu"),
            CategoryNode(id=11, name="Charlie", parent_id=10),
            CategoryNode(id=5, name="Alpha"),
            CategoryNode(id=12, name="Bravo", parent_id=10),
        ]

        result = build_tree(nodes)

        assert [root.id for root in result.forest] == [10, 5]
        assert [child.id for child in result.forest[0].children] == [11, 12]

    def test_child_listed_before_parent(self):
        """A child appearing before its parent is still attached."""
        nodes = [
            CategoryNode(id=2, name="Armor", parent_id=1),
            CategoryNode(id=1, name="Vehicles"),
        ]

        result = build_tree(nodes)

        assert _shape(result.forest) == [(1, 0, [(2, 1, [])])]

    def test_accepts_mappings(self):
        """Plain dicts (including camelCase keys) are validated into records."""
        result = build_tree(
            [
                {"id": 1, "name": "Vehicles", "parentId": None},
                {"id": 2, "name": "Armor", "parentId": 1},
            ]
        )

        assert _shape(result.forest) == [(1, 0, [(2, 1, [])])]

    def test_carries_record_fields(self):
        nodes = [
            CategoryNode(
                id=1,
                name="Controlled Goods",
                is_active=False,
                is_controlled=True,
                description="Licensed items",
                direct_product_count=3,
                direct_published_product_count=1,
            )
        ]

        root = build_tree(nodes).forest[0]

        assert root.is_active is False
        assert root.is_controlled is True
        assert root.description == "Licensed items"
        assert root.direct_product_count == 3
        assert root.direct_published_product_count == 1

    def test_is_deterministic(self, catalog_nodes):
        assert build_tree(catalog_nodes) == build_tree(catalog_nodes)


class TestDefensiveWarnings:
    """Tests for corrupt input handling."""

    def test_orphan_becomes_root(self):
        nodes = [
            CategoryNode(id=1, name="Vehicles"),
            CategoryNode(id=2, name="Lost", parent_id=99),
        ]

        result = build_tree(nodes)

        assert [root.id for root in result.forest] == [1, 2]
        assert result.forest[1].parent_id is None
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind is WarningKind.ORPHAN
        assert warning.node_id == 2
        assert warning.related_ids == (99,)

    def test_orphan_keeps_its_subtree(self):
        nodes = [
            CategoryNode(id=2, name="Lost", parent_id=99),
            CategoryNode(id=3, name="Lost Child", parent_id=2),
        ]

        result = build_tree(nodes)

        assert _shape(result.forest) == [(2, 0, [(3, 1, [])])]

    def test_two_node_cycle_is_broken(self):
        """The cycle member listed first is detached as a root."""
        nodes = [
            CategoryNode(id=1, name="A", parent_id=2),
            CategoryNode(id=2, name="B", parent_id=1),
        ]

        result = build_tree(nodes)

        assert _shape(result.forest) == [(1, 0, [(2, 1, [])])]
        cycles = [w for w in result.warnings if w.kind is WarningKind.CYCLE]
        assert len(cycles) == 1
        assert cycles[0].node_id == 1
        assert set(cycles[0].related_ids) == {1, 2}

    def test_self_parent_is_broken(self):
        result = build_tree([CategoryNode(id=7, name="Loop", parent_id=7)])

        assert _shape(result.forest) == [(7, 0, [])]
        assert [w.kind for w in result.warnings] == [WarningKind.CYCLE]

    def test_tail_leading_into_cycle(self):
        """Nodes hanging off a cycle stay attached after the break."""
        nodes = [
            CategoryNode(id=3, name="Tail", parent_id=1),
            CategoryNode(id=1, name="A", parent_id=2),
            CategoryNode(id=2, name="B", parent_id=1),
        ]

        result = build_tree(nodes)

        assert _shape(result.forest) == [(1, 0, [(3, 1, []), (2, 1, [])])]
        assert len(result.warnings) == 1

    def test_every_node_is_kept_with_cycles(self):
        nodes = [
            CategoryNode(id=i, name=f"N{i}", parent_id=(i % 4) + 1) for i in range(1, 5)
        ] + [CategoryNode(id=5, name="Free")]

        result = build_tree(nodes)

        assert sorted(node.id for node in iter_tree(result.forest)) == [1, 2, 3, 4, 5]

    def test_depth_violation_is_reported_not_dropped(self):
        nodes = [
            CategoryNode(id=1, name="L0"),
            CategoryNode(id=2, name="L1", parent_id=1),
            CategoryNode(id=3, name="L2", parent_id=2),
            CategoryNode(id=4, name="L3", parent_id=3),
        ]

        result = build_tree(nodes)

        deepest = result.forest[0].children[0].children[0].children[0]
        assert deepest.id == 4
        assert deepest.depth == 3
        assert [(w.kind, w.node_id) for w in result.warnings] == [
            (WarningKind.DEPTH_VIOLATION, 4)
        ]

    def test_custom_max_depth(self, scenario_a_nodes):
        result = build_tree(scenario_a_nodes, max_depth=1)

        assert [(w.kind, w.node_id) for w in result.warnings] == [
            (WarningKind.DEPTH_VIOLATION, 3)
        ]


class TestPreconditions:
    """Contract breaches fail fast."""

    def test_none_node_list_raises(self):
        with pytest.raises(ValueError, match="must not be None"):
            build_tree(None)

    def test_duplicate_ids_raise(self):
        nodes = [CategoryNode(id=1, name="A"), CategoryNode(id=1, name="B")]

        with pytest.raises(ValueError, match="Duplicate category id 1"):
            build_tree(nodes)

    def test_malformed_record_raises(self):
        with pytest.raises(ValidationError):
            build_tree([{"id": 1, "name": ""}])

    def test_negative_product_count_raises(self):
        with pytest.raises(ValidationError):
            build_tree([{"id": 1, "name": "A", "direct_product_count": -1}])
