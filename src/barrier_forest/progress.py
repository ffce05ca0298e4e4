"""Percentage progress for the O(n²) pair loops.

Pruning, neighbor calculation and pairwise connection all walk the
upper triangle of an ``n × n`` pair matrix row by row.  ``PairProgress``
logs ``"<label>: 35%"`` lines at 5 % milestones once the loop is large
enough to be worth reporting.
"""

from __future__ import annotations

import logging

__all__ = ["PairProgress"]


class PairProgress:
    """Milestone logger for a row-wise upper-triangle loop.

    Parameters
    ----------
    label : str
        Prefix for every log line.
    n_items : int
        Number of rows (models).
    min_operations : float
        Report only if ``n·(n-1)/2`` is at least this large.
    logger : logging.Logger
        Logger of the calling module.
    """

    def __init__(self, label: str, n_items: int, min_operations: float,
                 logger: logging.Logger):
        self.label = label
        self.total = n_items * (n_items - 1) // 2
        self.enabled = self.total > 0 and self.total >= min_operations
        self._step = max(1, self.total // 20)
        self._milestone = self._step
        self._done = 0
        self._n = n_items
        self._logger = logger

    def row_done(self, row: int) -> None:
        """Record that all pairs ``(row, j > row)`` were processed."""
        if not self.enabled:
            return
        self._done += self._n - 1 - row
        if self._done >= self._milestone:
            self._logger.info(
                f"{self.label}: {int(100 * self._done / self.total)}%")
            while self._done >= self._milestone:
                self._milestone += self._step
