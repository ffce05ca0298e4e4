"""Tests for Model / TorsionModel.

Covers:
1. Fitness — fixed vs evaluated, caching, invalidation
2. Mutation — immutability of fixed-fitness models, copies
3. Ordering — epsilon-tolerant comparisons, identity equality
"""

import numpy as np
import pytest

from barrier_forest.model import Model, TorsionModel


class CountingEvaluator:
    def __init__(self):
        self.calls = 0

    def __call__(self, angles):
        self.calls += 1
        return float(np.sum(angles))


# ═══════════════════════════════════════════════════════════════════
# 1. Fitness
# ═══════════════════════════════════════════════════════════════════

class TestFitness:

    def test_fixed_fitness(self):
        m = TorsionModel([0.1, 0.2], fitness=-3.5)
        assert m.evaluate() == -3.5
        assert m.is_immutable

    def test_needs_evaluator_or_fitness(self):
        with pytest.raises(ValueError):
            TorsionModel([0.0])

    def test_evaluator_is_cached(self):
        ev = CountingEvaluator()
        m = TorsionModel([1.0, 2.0], ev)
        assert m.evaluate() == pytest.approx(3.0)
        assert m.evaluate() == pytest.approx(3.0)
        assert ev.calls == 1

    def test_set_angle_invalidates(self):
        ev = CountingEvaluator()
        m = TorsionModel([1.0, 2.0], ev)
        m.evaluate()
        m.set_angle(0, 5.0)
        assert m.evaluate() == pytest.approx(7.0)
        assert ev.calls == 2

    def test_set_angles(self):
        m = TorsionModel([1.0, 2.0], CountingEvaluator())
        m.set_angles([0.5, 0.5])
        np.testing.assert_allclose(m.get_angles(), [0.5, 0.5])
        assert m.evaluate() == pytest.approx(1.0)

    def test_size_and_angles(self):
        m = TorsionModel([1.0, 2.0, 3.0], fitness=0.0)
        assert m.size() == 3
        assert m.get_angle(1) == 2.0


# ═══════════════════════════════════════════════════════════════════
# 2. Mutation and copies
# ═══════════════════════════════════════════════════════════════════

class TestMutation:

    def test_fixed_model_rejects_set_angle(self):
        m = TorsionModel([0.0], fitness=1.0)
        with pytest.raises(TypeError, match="immutable"):
            m.set_angle(0, 1.0)

    def test_get_angles_is_a_copy(self):
        m = TorsionModel([0.0, 1.0], fitness=1.0)
        angles = m.get_angles()
        angles[0] = 9.0
        assert m.get_angle(0) == 0.0

    def test_copy_is_deep(self):
        m = TorsionModel([1.0, 2.0], CountingEvaluator(), id=7)
        clone = m.copy()
        clone.set_angle(0, 10.0)
        assert m.get_angle(0) == 1.0
        assert clone.id == 7
        assert clone.evaluate() == pytest.approx(12.0)

    def test_copy_keeps_cached_fitness(self):
        m = TorsionModel([1.0], fitness=4.0)
        assert m.copy().evaluate() == 4.0

    def test_repr(self):
        assert "id=3" in repr(TorsionModel([0.0], fitness=1.0, id=3))


# ═══════════════════════════════════════════════════════════════════
# 3. Ordering
# ═══════════════════════════════════════════════════════════════════

class TestOrdering:

    def test_strict_ordering(self):
        low = TorsionModel([0.0], fitness=1.0)
        high = TorsionModel([0.0], fitness=2.0)
        assert low < high
        assert high > low
        assert low.compare_to(high) == -1

    def test_epsilon_ties(self):
        a = TorsionModel([0.0], fitness=1.0)
        b = TorsionModel([0.0], fitness=1.0 + 1e-12)
        assert not a < b
        assert not b > a
        assert a <= b and a >= b
        assert a.compare_to(b) == 0

    def test_equality_is_identity(self):
        a = TorsionModel([0.0], fitness=1.0)
        b = TorsionModel([0.0], fitness=1.0)
        assert a != b
        assert len({a, b}) == 2

    def test_sorted_uses_fitness(self):
        models = [TorsionModel([0.0], fitness=f) for f in (3.0, 1.0, 2.0)]
        assert [m.evaluate() for m in sorted(models)] == [1.0, 2.0, 3.0]

    def test_model_is_abstract(self):
        with pytest.raises(TypeError):
            Model()
