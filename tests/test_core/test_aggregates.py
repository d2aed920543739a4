"""Tests for counter rollup."""

from app.core.aggregates import compute_aggregates
from app.core.filter_engine import iter_tree
from app.core.tree_builder import build_tree
from app.schemas.category import CategoryNode, TreeNode


def _aggregated(nodes: list[CategoryNode]) -> dict[int, TreeNode]:
    forest = compute_aggregates(build_tree(nodes).forest)
    return {node.id: node for node in iter_tree(forest)}


class TestComputeAggregates:
    """Tests for compute_aggregates."""

    def test_catalog_totals(self, catalog_nodes: list[CategoryNode]) -> None:
        by_id = _aggregated(catalog_nodes)

        assert by_id[1].total_product_count == 12
        assert by_id[1].total_published_product_count == 8
        assert by_id[1].direct_subcategory_count == 2
        assert by_id[1].total_subcategory_count == 4

        assert by_id[2].total_product_count == 11
        assert by_id[2].total_published_product_count == 7
        assert by_id[2].direct_subcategory_count == 2
        assert by_id[2].total_subcategory_count == 2

        assert by_id[6].total_product_count == 7
        assert by_id[6].total_subcategory_count == 0

    def test_leaf_totals_equal_direct_counts(self, catalog_nodes: list[CategoryNode]) -> None:
        by_id = _aggregated(catalog_nodes)

        leaf = by_id[3]
        assert leaf.total_product_count == leaf.direct_product_count == 4
        assert leaf.total_published_product_count == 2
        assert leaf.direct_subcategory_count == 0
        assert leaf.total_subcategory_count == 0

    def test_totals_match_children(self, catalog_nodes: list[CategoryNode]) -> None:
        """Every node's totals are its direct counts plus its children's totals."""
        for node in _aggregated(catalog_nodes).values():
            assert node.total_product_count == node.direct_product_count + sum(
                child.total_product_count for child in node.children
            )
            assert node.total_published_product_count == (
                node.direct_published_product_count
                + sum(child.total_published_product_count for child in node.children)
            )
            assert node.direct_subcategory_count == len(node.children)
            assert node.total_subcategory_count == sum(
                1 + child.total_subcategory_count for child in node.children
            )

    def test_idempotent(self, catalog_nodes: list[CategoryNode]) -> None:
        once = compute_aggregates(build_tree(catalog_nodes).forest)

        assert compute_aggregates(once) == once

    def test_input_left_untouched(self, scenario_a_nodes: list[CategoryNode]) -> None:
        forest = build_tree(scenario_a_nodes).forest

        compute_aggregates(forest)

        assert forest[0].total_subcategory_count == 0

    def test_empty_forest(self) -> None:
        assert compute_aggregates([]) == []

    def test_hand_built_forest(self) -> None:
        """Works on any forest, not only builder output."""
        forest = [
            TreeNode(
                id=1,
                name="Root",
                direct_product_count=2,
                children=[TreeNode(id=2, name="Child", depth=1, direct_product_count=3)],
            )
        ]

        root = compute_aggregates(forest)[0]

        assert root.total_product_count == 5
        assert root.children[0].total_product_count == 3
