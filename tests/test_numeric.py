"""Tests for epsilon comparison and angle helpers.

Covers:
1. compare / is_* — epsilon-tolerant three-way comparison
2. Angles — interval mapping, circular differences (scalar and numpy)
"""

import math

import numpy as np
import pytest

from barrier_forest.numeric import (
    EPSILON, TWO_PI, compare, is_less, is_less_equal, is_greater,
    is_greater_equal, is_equal, ensure_angle_interval, angle_difference,
    angle_differences,
)


# ═══════════════════════════════════════════════════════════════════
# 1. Comparison
# ═══════════════════════════════════════════════════════════════════

class TestCompare:

    def test_epsilon_value(self):
        assert EPSILON == 1e-10

    def test_clear_ordering(self):
        assert compare(2.0, 1.0) == 1
        assert compare(1.0, 2.0) == -1

    def test_within_epsilon_is_equal(self):
        assert compare(1.0, 1.0 + 1e-12) == 0
        assert compare(1.0 + 1e-12, 1.0) == 0

    def test_just_outside_epsilon(self):
        assert compare(1.0 + 1e-9, 1.0) == 1

    def test_custom_eps(self):
        assert compare(1.0, 1.05, eps=0.1) == 0
        assert compare(1.0, 1.05, eps=0.01) == -1

    def test_predicates_agree_with_compare(self):
        a, b = 1.0, 1.0 + 1e-12
        assert not is_less(a, b)
        assert is_less_equal(a, b)
        assert not is_greater(b, a)
        assert is_greater_equal(b, a)
        assert is_equal(a, b)

    def test_is_equal_boundary_inclusive(self):
        assert is_equal(0.0, 0.5, eps=0.5)

    def test_infinities(self):
        assert is_less(1e300, math.inf)
        assert compare(math.inf, 1.0) == 1


# ═══════════════════════════════════════════════════════════════════
# 2. Angles
# ═══════════════════════════════════════════════════════════════════

class TestAngles:

    def test_interval_maps_negative(self):
        assert ensure_angle_interval(-0.5) == pytest.approx(TWO_PI - 0.5)

    def test_interval_maps_large(self):
        assert ensure_angle_interval(TWO_PI + 1.0) == pytest.approx(1.0)

    def test_difference_wraps(self):
        assert angle_difference(0.1, TWO_PI - 0.1) == pytest.approx(0.2)

    def test_difference_max_is_pi(self):
        assert angle_difference(0.0, math.pi) == pytest.approx(math.pi)
        assert angle_difference(0.0, math.pi + 0.5) == pytest.approx(math.pi - 0.5)

    def test_difference_symmetric(self):
        assert angle_difference(1.0, 4.0) == pytest.approx(angle_difference(4.0, 1.0))

    def test_vectorised_matches_scalar(self):
        a = np.array([0.1, 1.0, 6.0, 3.0])
        b = np.array([6.2, 4.0, 0.2, 3.0])
        expected = [angle_difference(x, y) for x, y in zip(a, b)]
        np.testing.assert_allclose(angle_differences(a, b), expected)

    def test_vectorised_broadcasts(self):
        rows = np.array([[0.0, 1.0], [2.0, 3.0]])
        out = angle_differences(rows, np.array([0.0, 0.0]))
        assert out.shape == (2, 2)
        np.testing.assert_allclose(out[1], [2.0, 3.0])
