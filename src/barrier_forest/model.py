"""Models — one molecular configuration plus a cached fitness.

The barrier algorithms never look inside a model beyond the
:class:`Model` contract: a vector of torsion angles, a scalar fitness
(``evaluate()``), a deep ``copy()`` and an optional trajectory id.
How the fitness is obtained (force field, energy file, toy function)
is up to the caller.

Ordering is epsilon-tolerant (``a > b`` iff
``a.evaluate() - b.evaluate() > EPSILON``).  Equality and hashing stay
identity-based, so models can be used as dictionary keys while a path
is being reconstructed.

Usage
-----
>>> import numpy as np
>>> from barrier_forest.model import TorsionModel
>>> m = TorsionModel([0.1, 2.0], evaluator=lambda a: float(np.sum(np.cos(a))))
>>> m.evaluate()
>>> frame = TorsionModel([0.1, 2.0], fitness=-12.4, id=17)   # immutable
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

import numpy as np

from .numeric import compare

__all__ = [
    "Model",
    "TorsionModel",
]


# ═══════════════════════════════════════════════════════════════════
# Model: the contract the barrier algorithms rely on
# ═══════════════════════════════════════════════════════════════════

class Model(ABC):
    """Abstract configuration with a scalar fitness."""

    id: Optional[int] = None

    @abstractmethod
    def size(self) -> int:
        """Number of angles."""

    @abstractmethod
    def get_angle(self, index: int) -> float:
        ...

    @abstractmethod
    def set_angle(self, index: int, value: float) -> None:
        ...

    @abstractmethod
    def evaluate(self) -> float:
        """Fitness (energy).  Cached until the configuration changes."""

    @abstractmethod
    def copy(self) -> "Model":
        """Deep, independent copy."""

    # ── convenience built on the contract ───────────────────────

    def get_angles(self) -> np.ndarray:
        return np.array([self.get_angle(i) for i in range(self.size())])

    def set_angles(self, values: Sequence[float]) -> None:
        for i in range(self.size()):
            self.set_angle(i, values[i])

    def compare_to(self, other: "Model") -> int:
        return compare(self.evaluate(), other.evaluate())

    def __lt__(self, other: "Model") -> bool:
        return self.compare_to(other) < 0

    def __le__(self, other: "Model") -> bool:
        return self.compare_to(other) <= 0

    def __gt__(self, other: "Model") -> bool:
        return self.compare_to(other) > 0

    def __ge__(self, other: "Model") -> bool:
        return self.compare_to(other) >= 0


# ═══════════════════════════════════════════════════════════════════
# TorsionModel: numpy-backed concrete model
# ═══════════════════════════════════════════════════════════════════

class TorsionModel(Model):
    """Torsion-angle configuration.

    Parameters
    ----------
    angles : sequence of float
        Torsion angles in radians.
    evaluator : callable, optional
        ``angles (ndarray) -> float``.  Its result is cached and
        invalidated whenever an angle changes.
    fitness : float, optional
        Fixed fitness for models read from a trajectory.  Used when
        *evaluator* is ``None``; such models are immutable.
    id : int, optional
        Position of the configuration in its trajectory.
    """

    def __init__(
        self,
        angles: Sequence[float],
        evaluator: Optional[Callable[[np.ndarray], float]] = None,
        *,
        fitness: Optional[float] = None,
        id: Optional[int] = None,
    ):
        if evaluator is None and fitness is None:
            raise ValueError("either evaluator or fitness must be given")
        self._angles = np.array(angles, dtype=float)
        self._evaluator = evaluator
        self._fitness: Optional[float] = (
            float(fitness) if fitness is not None else None)
        self.id = id

    @property
    def evaluator(self) -> Optional[Callable[[np.ndarray], float]]:
        return self._evaluator

    @property
    def is_immutable(self) -> bool:
        return self._evaluator is None

    def size(self) -> int:
        return len(self._angles)

    def get_angle(self, index: int) -> float:
        return float(self._angles[index])

    def get_angles(self) -> np.ndarray:
        return self._angles.copy()

    def set_angle(self, index: int, value: float) -> None:
        if self.is_immutable:
            raise TypeError("TorsionModel with a fixed fitness is immutable")
        self._angles[index] = value
        self._fitness = None

    def evaluate(self) -> float:
        if self._fitness is None:
            self._fitness = float(self._evaluator(self._angles.copy()))
        return self._fitness

    def copy(self) -> "TorsionModel":
        clone = TorsionModel.__new__(TorsionModel)
        clone._angles = self._angles.copy()
        clone._evaluator = self._evaluator
        clone._fitness = self._fitness
        clone.id = self.id
        return clone

    def __repr__(self) -> str:
        fitness = "?" if self._fitness is None else f"{self._fitness:.6g}"
        return f"TorsionModel(id={self.id}, size={self.size()}, fitness={fitness})"
