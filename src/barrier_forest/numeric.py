"""Epsilon-tolerant comparisons and angle arithmetic.

Every ordering decision in the package (sorting models and barriers,
cleaning trees, picking extremal nodes) goes through :func:`compare`,
so two fitness values closer than :data:`EPSILON` are always treated
as equal.

Usage
-----
>>> from barrier_forest.numeric import compare, is_equal
>>> compare(1.0, 1.0 + 1e-12)
0
>>> is_equal(2.0, 2.0 + 5e-11)
True
"""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "EPSILON",
    "TWO_PI",
    "compare",
    "is_less",
    "is_less_equal",
    "is_greater",
    "is_greater_equal",
    "is_equal",
    "angle_difference",
    "angle_differences",
    "ensure_angle_interval",
]

EPSILON: float = 1e-10
TWO_PI: float = 2.0 * math.pi


# ═══════════════════════════════════════════════════════════════════
# Tolerant comparison
# ═══════════════════════════════════════════════════════════════════

def compare(a: float, b: float, eps: float = EPSILON) -> int:
    """Three-way comparison: ``1`` if ``a - b > eps``, ``-1`` if
    ``a - b < -eps``, else ``0``."""
    difference = a - b
    if difference > eps:
        return 1
    if difference < -eps:
        return -1
    return 0


def is_less(a: float, b: float, eps: float = EPSILON) -> bool:
    return compare(a, b, eps) < 0


def is_less_equal(a: float, b: float, eps: float = EPSILON) -> bool:
    return compare(a, b, eps) <= 0


def is_greater(a: float, b: float, eps: float = EPSILON) -> bool:
    return compare(a, b, eps) > 0


def is_greater_equal(a: float, b: float, eps: float = EPSILON) -> bool:
    return compare(a, b, eps) >= 0


def is_equal(a: float, b: float, eps: float = EPSILON) -> bool:
    """``True`` iff ``|a - b| <= eps``."""
    return abs(a - b) <= eps


# ═══════════════════════════════════════════════════════════════════
# Angles (radians)
# ═══════════════════════════════════════════════════════════════════

def ensure_angle_interval(value: float) -> float:
    """Map an angle onto ``[0, 2π)``."""
    value %= TWO_PI
    if value < 0:
        value += TWO_PI
    return value


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles, in ``[0, π]``."""
    diff = abs(a - b) % TWO_PI
    if diff > math.pi:
        diff = TWO_PI - diff
    return diff


def angle_differences(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Vectorised :func:`angle_difference` (broadcasts like numpy)."""
    diff = np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))
    diff = np.mod(diff, TWO_PI)
    return np.where(diff > math.pi, TWO_PI - diff, diff)
