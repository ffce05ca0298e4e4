"""Pruning — drop near-duplicate models before building a forest.

Two models closer than ``min_distance`` (as measured by a
:class:`~barrier_forest.neighborhood.Neighborhood`) describe the same
region of the landscape; only the lower-fitness one is kept.

prune
    Batch variant.  Compares every pair that has not been discarded
    yet and returns the survivors in their original order.  Ties keep
    the earlier model.
StreamingPruner
    Single pass over a trajectory too long to re-scan.  A candidate is
    tested only against the accepted models at indices
    ``k, k-1, k-2, k-4, k-8, …`` (``k`` = last accepted index), which
    keeps each offer at O(log n) distance evaluations.  The result is
    an approximation; run :func:`prune` afterwards for the exact
    guarantee.

Usage
-----
>>> pruner = StreamingPruner(neighborhood, min_distance=0.3)
>>> for frame in frames:
...     pruner.offer(frame)
>>> survivors = prune(pruner.accepted, neighborhood, 0.3)
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .model import Model
from .neighborhood import Neighborhood
from .progress import PairProgress
from .settings import SettingsRegistry, resolve_settings

logger = logging.getLogger(__name__)

__all__ = [
    "prune",
    "StreamingPruner",
    "prune_stream",
    "stride_indices",
]


def _check(models, neighborhood, min_distance) -> None:
    if models is None:
        raise TypeError("models is None")
    if neighborhood is None:
        raise TypeError("neighborhood is None")
    if min_distance < 0:
        raise ValueError(f"min_distance must be >= 0, got {min_distance}")


def _log_discarded(label: str, n_before: int, n_after: int) -> None:
    n_removed = n_before - n_after
    pct = 100.0 * n_removed / n_before if n_before else 0.0
    logger.info(
        f"{label} discarded {n_removed} models ({pct:.2f}%), "
        f"{n_after} models remain")


# ═══════════════════════════════════════════════════════════════════
# Batch pruning
# ═══════════════════════════════════════════════════════════════════

def prune(
    models: Sequence[Model],
    neighborhood: Neighborhood,
    min_distance: float,
    *,
    settings: Optional[SettingsRegistry] = None,
) -> List[Model]:
    """Keep the lowest-fitness model of every too-close pair.

    Parameters
    ----------
    models : sequence of Model
    neighborhood : Neighborhood
    min_distance : float
        Pairs with ``distance < min_distance`` are too close.
    settings : SettingsRegistry, optional
        Source of ``progress.pair_operations``.

    Returns
    -------
    list of Model
        Survivors, in original relative order.  For every surviving
        pair ``distance >= min_distance``.
    """
    _check(models, neighborhood, min_distance)
    n = len(models)
    if n < 2:
        return list(models)

    dmat = neighborhood.distance_matrix(models)
    fitness = np.array([m.evaluate() for m in models])
    discarded = np.zeros(n, dtype=bool)
    progress = PairProgress(
        "Pruning completed", n,
        resolve_settings(settings)["progress.pair_operations"], logger)

    for i in range(n):
        if not discarded[i]:
            for j in range(i + 1, n):
                if discarded[j] or dmat[i, j] >= min_distance:
                    continue
                if fitness[i] <= fitness[j]:
                    discarded[j] = True
                else:
                    discarded[i] = True
                    break
        progress.row_done(i)

    pruned = [m for m, gone in zip(models, discarded) if not gone]
    _log_discarded("Pruning", n, len(pruned))
    return pruned


# ═══════════════════════════════════════════════════════════════════
# Streaming pruning
# ═══════════════════════════════════════════════════════════════════

def stride_indices(last: int) -> List[int]:
    """Indices ``last, last-1, last-2, last-4, …`` down to 0."""
    indices = []
    offset = 0
    while last - offset >= 0:
        indices.append(last - offset)
        offset = 1 if offset == 0 else offset * 2
    return indices


class StreamingPruner:
    """On-the-fly pruning of a trajectory.

    Parameters
    ----------
    neighborhood : Neighborhood
    min_distance : float
        A candidate closer than this to a tested accepted model is not
        appended.  ``0`` accepts everything.
    settings : SettingsRegistry, optional
        ``progress.conformations`` sets how often progress is logged.
    """

    def __init__(self, neighborhood: Neighborhood, min_distance: float,
                 settings: Optional[SettingsRegistry] = None):
        _check([], neighborhood, min_distance)
        self.neighborhood = neighborhood
        self.min_distance = float(min_distance)
        self.accepted: List[Model] = []
        self.offered = 0
        every = resolve_settings(settings)["progress.conformations"]
        # inf disables reporting
        self._report_every = max(1, int(every)) if math.isfinite(every) else 0

    def offer(self, model: Model) -> bool:
        """Offer one model; return ``True`` if it was appended.

        If the candidate is too close to a tested accepted model and has
        a lower fitness, it replaces that model in place (the list does
        not grow) and scanning stops.
        """
        self.offered += 1
        if self._report_every and self.offered % self._report_every == 0:
            logger.info(f"Conformations processed: {self.offered}")

        if not self.accepted or self.min_distance == 0:
            self.accepted.append(model)
            return True

        for index in stride_indices(len(self.accepted) - 1):
            previous = self.accepted[index]
            if self.neighborhood.distance(previous, model) < self.min_distance:
                if model.evaluate() < previous.evaluate():
                    self.accepted[index] = model
                return False

        self.accepted.append(model)
        return True

    def extend(self, models: Iterable[Model]) -> "StreamingPruner":
        for model in models:
            self.offer(model)
        return self

    def __len__(self) -> int:
        return len(self.accepted)


def prune_stream(
    models: Iterable[Model],
    neighborhood: Neighborhood,
    min_distance: float,
    *,
    settings: Optional[SettingsRegistry] = None,
) -> Tuple[List[Model], int]:
    """Stream *models* through a :class:`StreamingPruner`.

    Returns
    -------
    (accepted, offered)
        Accepted models and the number of models read.
    """
    pruner = StreamingPruner(neighborhood, min_distance, settings).extend(models)
    if pruner.min_distance > 0:
        _log_discarded("On-the-fly pruning", pruner.offered, len(pruner))
    return pruner.accepted, pruner.offered
