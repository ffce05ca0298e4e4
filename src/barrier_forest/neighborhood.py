"""Neighborhoods — distance and adjacency policies over models.

A :class:`Neighborhood` decides how far apart two configurations are.
Everything else (pruning, flooding adjacency, path reconstruction)
is written against this contract:

``distance(a, b)``
    Non-negative distance.
``maximum_distance(model)``
    Upper bound of ``distance`` for models like *model*.
``calculate_neighbors(models, max_distance)``
    Adjacency lists: ``adjacency[i]`` holds the (sorted) indices ``j != i``
    with ``distance(models[i], models[j]) <= max_distance``.

Two torsion-space policies are provided.  Both compare angles on the
circle, so 359° and 1° are 2° apart:

AngleDifferenceNeighborhood      mean absolute angle difference
RmsdAngleDifferenceNeighborhood  RMSD of the angle differences (default)

Using RMSD means one angle differing by 30° counts as more distant
than thirty angles each differing by 1°.

Usage
-----
>>> from barrier_forest.neighborhood import RmsdAngleDifferenceNeighborhood
>>> nb = RmsdAngleDifferenceNeighborhood()
>>> adjacency = nb.calculate_neighbors(models, max_distance=0.4)
>>> dmat = nb.distance_matrix(models)          # (N, N) ndarray
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np
from scipy.sparse import coo_matrix
from scipy.spatial.distance import squareform

from .model import Model
from .numeric import angle_differences
from .progress import PairProgress
from .settings import SettingsRegistry, resolve_settings

logger = logging.getLogger(__name__)

__all__ = [
    "Neighborhood",
    "AngleDifferenceNeighborhood",
    "RmsdAngleDifferenceNeighborhood",
    "NeighborStatistics",
    "neighbor_statistics",
]


# ═══════════════════════════════════════════════════════════════════
# Neighbor statistics
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NeighborStatistics:
    """Neighbors-per-model summary of an adjacency list."""

    n_models: int
    minimum: int
    maximum: int
    average: float

    def summary(self) -> str:
        return (
            f"Neighbors per model: min. {self.minimum}, "
            f"max. {self.maximum}, avg. {self.average:.3f} "
            f"({self.n_models} models)"
        )


def neighbor_statistics(adjacency: Sequence[Sequence[int]]) -> NeighborStatistics:
    """Min / max / mean neighbor count over an adjacency list."""
    counts = np.array([len(row) for row in adjacency], dtype=int)
    if counts.size == 0:
        return NeighborStatistics(0, 0, 0, 0.0)
    return NeighborStatistics(
        n_models=int(counts.size),
        minimum=int(counts.min()),
        maximum=int(counts.max()),
        average=float(counts.mean()),
    )


# ═══════════════════════════════════════════════════════════════════
# Neighborhood: the contract
# ═══════════════════════════════════════════════════════════════════

class Neighborhood(ABC):
    """Pluggable distance policy over models.

    Subclasses implement :meth:`distance` and :meth:`maximum_distance`.
    The pairwise helpers call :meth:`distance` for every pair; subclasses
    with a vectorised form override :meth:`_upper_rows`.
    """

    @abstractmethod
    def distance(self, first: Model, second: Model) -> float:
        ...

    @abstractmethod
    def maximum_distance(self, model: Model) -> float:
        ...

    def minimum_distance(self, model: Model) -> float:
        return 0.0

    def is_neighbors(self, first: Model, second: Model,
                     max_distance: float) -> bool:
        return self.distance(first, second) <= max_distance

    # ── pairwise ────────────────────────────────────────────────

    def _upper_rows(self, models: Sequence[Model]) -> Iterator[np.ndarray]:
        """Yield, for every ``i``, distances from ``models[i]`` to
        ``models[i+1:]``."""
        for i, first in enumerate(models):
            yield np.array(
                [self.distance(first, second) for second in models[i + 1:]],
                dtype=float,
            )

    def condensed_distances(self, models: Sequence[Model]) -> np.ndarray:
        """Upper-triangle distances in :func:`scipy.spatial.distance.pdist`
        order."""
        rows = list(self._upper_rows(models))
        if not rows:
            return np.zeros(0)
        return np.concatenate(rows)

    def distance_matrix(self, models: Sequence[Model]) -> np.ndarray:
        """Symmetric ``(N, N)`` distance matrix."""
        if len(models) < 2:
            return np.zeros((len(models), len(models)))
        return squareform(self.condensed_distances(models))

    def calculate_neighbors(
        self,
        models: Sequence[Model],
        max_distance: float,
        verbose: bool = False,
        *,
        settings: Optional[SettingsRegistry] = None,
    ) -> List[np.ndarray]:
        """Adjacency lists of all pairs within *max_distance*.

        Parameters
        ----------
        models : sequence of Model
        max_distance : float
            Inclusive neighbor threshold.
        verbose : bool
            If ``True``, log progress and neighbor statistics.
        settings : SettingsRegistry, optional
            Source of ``progress.pair_operations``.

        Returns
        -------
        list of ndarray
            ``adjacency[i]`` — sorted int array of neighbor indices.
        """
        n = len(models)
        if n == 0:
            return []
        progress = PairProgress(
            "Neighbors calculated", n,
            resolve_settings(settings)["progress.pair_operations"], logger)
        progress.enabled = progress.enabled and verbose

        src: List[np.ndarray] = []
        dst: List[np.ndarray] = []
        for i, row in enumerate(self._upper_rows(models)):
            hits = np.flatnonzero(row <= max_distance)
            if hits.size:
                src.append(np.full(hits.size, i, dtype=np.int64))
                dst.append(hits + i + 1)
            progress.row_done(i)

        if src:
            rows = np.concatenate(src)
            cols = np.concatenate(dst)
        else:
            rows = cols = np.zeros(0, dtype=np.int64)

        upper = coo_matrix(
            (np.ones(rows.size, dtype=np.int8), (rows, cols)), shape=(n, n))
        graph = (upper + upper.T).tocsr()
        graph.sort_indices()
        adjacency = [
            graph.indices[graph.indptr[i]:graph.indptr[i + 1]].astype(int)
            for i in range(n)
        ]

        if verbose:
            logger.debug(neighbor_statistics(adjacency).summary())
        return adjacency


# ═══════════════════════════════════════════════════════════════════
# Torsion-angle neighborhoods
# ═══════════════════════════════════════════════════════════════════

class _AngleNeighborhood(Neighborhood):
    """Shared machinery: stack angles once, reduce circular differences."""

    def maximum_distance(self, model: Model) -> float:
        return math.pi

    @abstractmethod
    def _reduce(self, diffs: np.ndarray) -> np.ndarray:
        """Collapse ``(rows, n_angles)`` differences to one distance per row."""

    def distance(self, first: Model, second: Model) -> float:
        diffs = angle_differences(first.get_angles(), second.get_angles())
        return float(self._reduce(diffs[np.newaxis, :])[0])

    def _upper_rows(self, models: Sequence[Model]) -> Iterator[np.ndarray]:
        if not models:
            return
        angles = np.vstack([m.get_angles() for m in models])
        for i in range(len(models)):
            yield self._reduce(angle_differences(angles[i + 1:], angles[i]))


class AngleDifferenceNeighborhood(_AngleNeighborhood):
    """Mean absolute circular angle difference."""

    def _reduce(self, diffs: np.ndarray) -> np.ndarray:
        return diffs.mean(axis=1)


class RmsdAngleDifferenceNeighborhood(_AngleNeighborhood):
    """Root mean square of circular angle differences."""

    def _reduce(self, diffs: np.ndarray) -> np.ndarray:
        return np.sqrt(np.mean(diffs * diffs, axis=1))
