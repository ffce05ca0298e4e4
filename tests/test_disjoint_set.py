"""Tests for BasinSet."""

import pytest

from barrier_forest.disjoint_set import BasinSet
from barrier_forest.model import TorsionModel
from barrier_forest.node import NodeFactory


@pytest.fixture
def factory():
    return NodeFactory()


def fm(value):
    return TorsionModel([0.0], fitness=value)


class TestBasinSet:

    def test_starts_unassigned(self):
        basins = BasinSet(3)
        assert len(basins) == 3
        assert basins.n_sets == 0
        assert not basins.is_assigned(0)
        assert basins.node(0) is None

    def test_assign(self, factory):
        basins = BasinSet(2)
        n = factory.create(fm(0.0))
        basins.assign(0, n)
        assert basins.node(0) is n
        assert basins.n_sets == 1

    def test_assign_twice(self, factory):
        basins = BasinSet(1)
        basins.assign(0, factory.create(fm(0.0)))
        with pytest.raises(ValueError):
            basins.assign(0, factory.create(fm(0.0)))

    def test_attach_joins_set(self, factory):
        basins = BasinSet(2)
        n = factory.create(fm(0.0))
        basins.assign(0, n)
        basins.attach(1, 0)
        assert basins.node(1) is n
        assert basins.find(0) == basins.find(1)
        assert basins.n_sets == 1

    def test_attach_to_unassigned(self):
        with pytest.raises(ValueError):
            BasinSet(2).attach(1, 0)

    def test_union_relabels_both_sets(self, factory):
        basins = BasinSet(4)
        a, b = factory.create(fm(0.0)), factory.create(fm(1.0))
        basins.assign(0, a)
        basins.assign(1, b)
        basins.attach(2, 1)
        top = factory.create(fm(5.0), a, b)
        basins.union(0, 2, top)
        assert basins.n_sets == 1
        assert all(basins.node(i) is top for i in (0, 1, 2))

    def test_union_same_set(self, factory):
        basins = BasinSet(2)
        basins.assign(0, factory.create(fm(0.0)))
        basins.attach(1, 0)
        with pytest.raises(ValueError):
            basins.union(0, 1, factory.create(fm(0.0)))

    def test_distinct_roots_first_occurrence(self, factory):
        basins = BasinSet(5)
        for i in (0, 1, 2):
            basins.assign(i, factory.create(fm(float(i))))
        roots = basins.distinct_roots([2, 0, 2, 4, 1])
        assert roots == [basins.find(2), basins.find(0), basins.find(1)]

    def test_top_nodes_ordered_by_smallest_id(self, factory):
        basins = BasinSet(3)
        nodes = [factory.create(fm(float(i))) for i in range(3)]
        for i, n in enumerate(nodes):
            basins.assign(i, n)
        top = factory.create(fm(9.0), nodes[2], nodes[1])
        basins.union(2, 1, top)
        assert basins.top_nodes() == [nodes[0], top]

    def test_long_chain(self, factory):
        n = 2000
        basins = BasinSet(n)
        current = factory.create(fm(0.0))
        basins.assign(0, current)
        for i in range(1, n):
            leaf = factory.create(fm(float(i)))
            basins.assign(i, leaf)
            current = factory.create(fm(float(n + i)), current, leaf)
            basins.union(0, i, current)
        assert basins.n_sets == 1
        assert basins.node(n - 1) is current
