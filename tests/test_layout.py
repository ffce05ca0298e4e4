"""Tests for structurers, colorers and node positions."""

import pytest

from barrier_forest.forest import BarrierForest
from barrier_forest.layout import (
    WeightStructurer, Colorer, NodeColorer, FixedColorer, RandomColorer,
    TrajectoryPositionColorer, AdditionalModelsColorer, compute_node_positions,
)
from barrier_forest.model import TorsionModel
from barrier_forest.node import NodeFactory
from barrier_forest.tree import BarrierTree


def fm(value, id=None):
    return TorsionModel([0.0], fitness=value, id=id)


def lopsided_forest():
    """Root 8 over (heavy: (1, 2)@5) and (light: 0)."""
    f = NodeFactory()
    a, b, c = f.create(fm(1.0, id=0)), f.create(fm(2.0, id=1)), f.create(fm(0.0, id=2))
    heavy = f.create(fm(5.0, id=3), a, b)
    root = f.create(fm(8.0, id=4), heavy, c)
    return BarrierForest([BarrierTree(root)], 10), (a, b, c, heavy, root)


# ═══════════════════════════════════════════════════════════════════
# Structurers
# ═══════════════════════════════════════════════════════════════════

class TestWeightStructurer:

    def test_lighter_subtree_left(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        WeightStructurer().structure(forest)
        assert root.left is c
        assert root.right is heavy
        assert c.parent is root
        assert root.weight == 3

    def test_equal_weights_unchanged(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        WeightStructurer().structure(forest[0])
        assert heavy.left is a and heavy.right is b

    def test_none(self):
        with pytest.raises(TypeError):
            WeightStructurer().structure(None)


# ═══════════════════════════════════════════════════════════════════
# Colorers
# ═══════════════════════════════════════════════════════════════════

class TestColorers:

    def test_fixed(self):
        forest, nodes = lopsided_forest()
        FixedColorer((1, 0, 0)).color(forest)
        assert all(n.color == (1.0, 0.0, 0.0) for n in nodes)

    def test_random_is_seeded(self):
        f1, n1 = lopsided_forest()
        f2, n2 = lopsided_forest()
        RandomColorer(seed=42).color(f1)
        RandomColorer(seed=42).color(f2)
        assert [n.color for n in n1] == [n.color for n in n2]
        for n in n1:
            assert all(0.0 <= ch < 0.95 for ch in n.color)

    def test_trajectory_position(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        TrajectoryPositionColorer().color(forest)
        assert root.color == pytest.approx((0.4, 0.0, 0.0))
        assert a.color == (0.0, 0.0, 0.0)

    def test_trajectory_position_needs_forest(self):
        forest, _ = lopsided_forest()
        with pytest.raises(TypeError):
            TrajectoryPositionColorer().color(forest[0])

    def test_additional_models(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        for _ in range(4):
            a.add_additional_model(fm(1.5))
        c.add_additional_model(fm(0.5))
        AdditionalModelsColorer().color(forest)
        assert a.color == (0.0, 1.0, 0.0)
        assert c.color == pytest.approx((0.0, 0.25, 0.0))
        assert root.color == (0.0, 0.0, 0.0)

    def test_additional_models_none_present(self):
        forest, nodes = lopsided_forest()
        AdditionalModelsColorer().color(forest)
        assert all(n.color == (0.0, 0.0, 0.0) for n in nodes)

    def test_bases_are_abstract(self):
        with pytest.raises(TypeError):
            Colorer()
        with pytest.raises(TypeError):
            NodeColorer()

    def test_node_colorer_subclass(self):
        class ByValue(NodeColorer):
            def color_node(self, node):
                node.color = (node.value / 10.0, 0.0, 0.0)

        forest, (a, b, c, heavy, root) = lopsided_forest()
        ByValue().color(forest)
        assert root.color == pytest.approx((0.8, 0.0, 0.0))
        assert c.color == (0.0, 0.0, 0.0)


# ═══════════════════════════════════════════════════════════════════
# Positions
# ═══════════════════════════════════════════════════════════════════

class TestPositions:

    def test_y_follows_value(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        compute_node_positions(forest, 800, 100)
        assert root.y == 100
        assert c.y == 0
        assert a.y < heavy.y < root.y

    def test_header_lowers_top(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        compute_node_positions(forest, 800, 100, header=20)
        assert root.y == 80

    def test_x_within_canvas_and_centred(self):
        forest, (a, b, c, heavy, root) = lopsided_forest()
        compute_node_positions(forest, 800, 100)
        for n in (a, b, c, heavy, root):
            assert 0 <= n.x <= 800
        assert a.x < b.x < c.x
        assert min(heavy.x, c.x) <= root.x <= max(heavy.x, c.x)

    def test_trees_get_slices_by_leaves(self):
        f = NodeFactory()
        t1 = BarrierTree(f.create(fm(3.0), f.create(fm(0.0)), f.create(fm(1.0))))
        t2 = BarrierTree(f.create(fm(2.0)))
        forest = BarrierForest([t1, t2], 3)
        compute_node_positions(forest, 300, 100)
        assert t1.root.x < 200 <= t2.root.x

    def test_invalid_canvas(self):
        forest, _ = lopsided_forest()
        with pytest.raises(ValueError):
            compute_node_positions(forest, 0, 100)
        with pytest.raises(ValueError):
            compute_node_positions(forest, 100, 10, header=10)
