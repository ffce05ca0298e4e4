"""Connectors — find the worst point between two configurations.

A :class:`Connector` simulates the walk that turns the angles of one
model into the angles of another while watching the fitness.  The
configuration with the highest fitness met on the way is the
*barrier* between the two models; the pairwise constructor uses it as
the value of the internal node that merges their basins.

StepConnector
    Straight walk in torsion space.  Every angle turns along its
    shorter arc; per-angle steps are scaled together so the largest
    one equals ``step_size`` and all angles arrive at the same time.

Models walked by a connector must carry an evaluator (see
:class:`~barrier_forest.model.TorsionModel`); fixed-fitness models
cannot change their angles.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .model import Model
from .numeric import TWO_PI
from .settings import SettingsRegistry, resolve_settings

logger = logging.getLogger(__name__)

__all__ = [
    "Connector",
    "StepConnector",
    "calculate_steps",
]


class Connector(ABC):
    """Synthesises the barrier between two models."""

    @abstractmethod
    def connect(self, from_: Model, to: Model) -> Model:
        """Return a new model at the highest-fitness point found while
        moving from *from_* to *to*."""


def calculate_steps(from_: Model, to: Model, step_size: float,
                    minimum_step_size: float = 1e-10) -> np.ndarray:
    """Per-angle step vector for a straight walk.

    Each difference takes the shorter way around the circle, then all
    of them are scaled by the same factor so the largest magnitude is
    at most *step_size*.  Steps smaller than *minimum_step_size* become
    zero (those angles are snapped to the target immediately).
    """
    steps = to.get_angles() - from_.get_angles()
    steps = np.where(steps > math.pi, steps - TWO_PI, steps)
    steps = np.where(steps < -math.pi, steps + TWO_PI, steps)

    magnitudes = np.abs(steps)
    nonzero = magnitudes > 0
    scale = 1.0
    if nonzero.any():
        scale = min(1.0, float(np.min(step_size / magnitudes[nonzero])))

    steps = steps * scale
    steps[np.abs(steps) < minimum_step_size] = 0.0
    return steps


def _within_one_step(current: Model, to: Model, steps: np.ndarray) -> bool:
    distance = np.abs(current.get_angles() - to.get_angles())
    abs_steps = np.abs(steps)
    too_far = (abs_steps < distance) & (abs_steps < TWO_PI - distance)
    return not bool(too_far.any())


class StepConnector(Connector):
    """Straight-line connector in torsion space.

    Parameters
    ----------
    step_size : float, optional
        Largest per-angle change per step, radians.  Defaults to
        ``settings["connector.step_size"]`` (5°).
    settings : SettingsRegistry, optional
    """

    def __init__(self, step_size: Optional[float] = None, *,
                 settings: Optional[SettingsRegistry] = None):
        settings = resolve_settings(settings)
        if step_size is None:
            step_size = settings["connector.step_size"]
        if step_size <= 0:
            raise ValueError(f"step_size must be > 0, got {step_size}")
        self.step_size = float(step_size)
        self.minimum_step_size = settings["connector.minimum_step_size"]

    def connect(self, from_: Model, to: Model) -> Model:
        if from_ is None:
            raise TypeError("from_ is None")
        if to is None:
            raise TypeError("to is None")
        if from_.size() != to.size():
            raise ValueError(
                f"model sizes differ: {from_.size()} vs {to.size()}")

        steps = calculate_steps(
            from_, to, self.step_size, self.minimum_step_size)
        target = to.get_angles()

        current = from_.copy()
        for i in np.flatnonzero(steps == 0.0):
            current.set_angle(int(i), target[i])

        barrier_value = from_.evaluate()
        barrier_angles = from_.get_angles()
        if current.evaluate() > barrier_value:
            barrier_value = current.evaluate()
            barrier_angles = current.get_angles()

        while not _within_one_step(current, to, steps):
            current.set_angles(current.get_angles() + steps)
            value = current.evaluate()
            if value > barrier_value:
                barrier_value = value
                barrier_angles = current.get_angles()

        if barrier_value >= to.evaluate():
            current.set_angles(barrier_angles)
            return current

        # to is higher than every point on the walk, so it is not a
        # local minimum; it is its own barrier.
        return to.copy()

    def __repr__(self) -> str:
        return f"StepConnector(step_size={self.step_size:.6g})"
