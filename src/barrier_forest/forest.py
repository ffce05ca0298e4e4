"""BarrierForest — independent barrier trees with shared provenance.

A forest is what both constructors return: one tree per group of
minima that could be connected, plus the settings that produced it
(pruning threshold, neighbor threshold, neighborhood, number of
models read).

Forest measures reduce the per-tree measures: leaf counts and totals
are summed, extrema compared.  The total connection value depends on
the *forest* minimum, so it is computed in two phases — per-tree
measures first, then the forest minimum, then every tree recomputes
its connection value against that minimum.

Usage
-----
>>> forest = construct_from_minima(minima, StepConnector())
>>> forest.number_of_trees, forest.number_of_leaves
>>> forest.maximum_barrier_value
>>> path = forest.find_connecting_models(0, 3)     # list of Model
>>> forest.summary().to_dict()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from .model import Model
from .neighborhood import Neighborhood
from .node import Node
from .numeric import is_less
from .paths import shortest_path
from .tree import BarrierTree

logger = logging.getLogger(__name__)

__all__ = [
    "BarrierForest",
    "ForestSummary",
]


# ═══════════════════════════════════════════════════════════════════
# ForestSummary: JSON-safe snapshot of the measures
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ForestSummary:
    """Aggregate measures of one forest."""

    n_trees: int
    n_leaves: int
    minimum_value: float
    minimum_barrier_value: float
    maximum_barrier_value: float
    total_barrier_value: float
    total_connection_value: float
    models_used: int
    pruning_threshold: float
    neighbor_threshold: float

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-safe dict of all measures."""
        return {
            "n_trees": self.n_trees,
            "n_leaves": self.n_leaves,
            "minimum_value": round(self.minimum_value, 6),
            "minimum_barrier_value": round(self.minimum_barrier_value, 6),
            "maximum_barrier_value": round(self.maximum_barrier_value, 6),
            "total_barrier_value": round(self.total_barrier_value, 6),
            "total_connection_value": round(self.total_connection_value, 6),
            "models_used": self.models_used,
            "pruning_threshold": round(self.pruning_threshold, 6),
            "neighbor_threshold": round(self.neighbor_threshold, 6),
        }

    def summary(self) -> str:
        return (
            f"{self.n_trees} trees, {self.n_leaves} leaves, "
            f"min={self.minimum_value:.4f}, "
            f"barriers=[{self.minimum_barrier_value:.4f}, "
            f"{self.maximum_barrier_value:.4f}], "
            f"connection={self.total_connection_value:.4f}"
        )


# ═══════════════════════════════════════════════════════════════════
# BarrierForest
# ═══════════════════════════════════════════════════════════════════

class BarrierForest:
    """Ordered, non-empty collection of barrier trees.

    Parameters
    ----------
    trees : BarrierTree or sequence of BarrierTree
    models_used : int
        Number of input models the forest was built from.
    pruning_threshold : float
        Minimum distance used for pruning (``-1`` if unknown).
    neighbor_threshold : float
        Neighbor distance used for flooding (``-1`` if unused).
    neighborhood : Neighborhood, optional
        Needed by :meth:`find_connecting_models`.
    verbose : bool
        Log measures at DEBUG level when they are computed.
    """

    def __init__(
        self,
        trees: Union[BarrierTree, Sequence[BarrierTree]],
        models_used: int,
        pruning_threshold: float = -1.0,
        neighbor_threshold: float = -1.0,
        neighborhood: Optional[Neighborhood] = None,
        verbose: bool = True,
    ):
        if trees is None:
            raise TypeError("trees is None")
        if isinstance(trees, BarrierTree):
            trees = [trees]
        trees = list(trees)
        if not trees:
            raise ValueError("a forest needs at least one tree")
        for i, tree in enumerate(trees):
            if tree is None:
                raise TypeError(f"trees[{i}] is None")
        if models_used < 0:
            raise ValueError(f"models_used must be >= 0, got {models_used}")

        self._trees: List[BarrierTree] = trees
        self._models_used = models_used
        self._pruning_threshold = pruning_threshold
        self._neighbor_threshold = neighbor_threshold
        self._neighborhood = neighborhood
        self._verbose = verbose

        self._measures_calculated = False
        self._leaves = 0
        self._min: Optional[Node] = None
        self._min_barrier: Optional[Node] = None
        self._max_barrier: Optional[Node] = None
        self._total_barrier_value = 0.0
        self._total_connection_value = 0.0

    # ── provenance ──────────────────────────────────────────────

    @property
    def models_used(self) -> int:
        return self._models_used

    @property
    def pruning_threshold(self) -> float:
        return self._pruning_threshold

    @property
    def neighbor_threshold(self) -> float:
        return self._neighbor_threshold

    @property
    def neighborhood(self) -> Optional[Neighborhood]:
        return self._neighborhood

    # ── tree access ─────────────────────────────────────────────

    @property
    def number_of_trees(self) -> int:
        return len(self._trees)

    def __len__(self) -> int:
        return len(self._trees)

    def __getitem__(self, index: int) -> BarrierTree:
        return self._trees[index]

    def __iter__(self) -> Iterator[BarrierTree]:
        return iter(self._trees)

    def tree(self, index: int) -> BarrierTree:
        return self._trees[index]

    def find(self, id: int) -> Optional[Node]:
        """Node with the given id in any tree, or ``None``."""
        for tree in self._trees:
            node = tree.find(id)
            if node is not None:
                return node
        return None

    # ── measures ────────────────────────────────────────────────

    def calculate_measures(self) -> None:
        if self._measures_calculated:
            return

        first = self._trees[0]
        self._leaves = first.number_of_leaves
        self._min = first.minimum
        self._min_barrier = first.minimum_barrier
        self._max_barrier = first.maximum_barrier
        self._total_barrier_value = first.total_barrier_value

        for tree in self._trees[1:]:
            self._leaves += tree.number_of_leaves
            if is_less(tree.minimum_value, self._min.value):
                self._min = tree.minimum
            if is_less(tree.minimum_barrier_value, self._min_barrier.value):
                self._min_barrier = tree.minimum_barrier
            if is_less(self._max_barrier.value, tree.maximum_barrier_value):
                self._max_barrier = tree.maximum_barrier
            self._total_barrier_value += tree.total_barrier_value

        # Set before the second phase: trees read minimum_value back
        # from this forest.
        self._measures_calculated = True

        self._total_connection_value = 0.0
        for tree in self._trees:
            tree.recalculate_measures(self)
            self._total_connection_value += tree.total_connection_value

        if self._verbose:
            logger.debug(
                f"[BarrierForest] trees: {len(self._trees)}, "
                f"leaves: {self._leaves}, "
                f"minValue: {self._min.value:.6f}, "
                f"minBarrierValue: {self._min_barrier.value:.6f}, "
                f"maxBarrierValue: {self._max_barrier.value:.6f}, "
                f"totalBarrierValue: {self._total_barrier_value:.6f}, "
                f"totalConnectionValue: {self._total_connection_value:.6f}"
            )

    @property
    def number_of_leaves(self) -> int:
        self.calculate_measures()
        return self._leaves

    @property
    def minimum(self) -> Node:
        self.calculate_measures()
        return self._min

    @property
    def minimum_barrier(self) -> Node:
        self.calculate_measures()
        return self._min_barrier

    @property
    def maximum_barrier(self) -> Node:
        self.calculate_measures()
        return self._max_barrier

    @property
    def minimum_value(self) -> float:
        return self.minimum.value

    @property
    def minimum_barrier_value(self) -> float:
        return self.minimum_barrier.value

    @property
    def maximum_barrier_value(self) -> float:
        return self.maximum_barrier.value

    @property
    def total_barrier_value(self) -> float:
        self.calculate_measures()
        return self._total_barrier_value

    @property
    def total_connection_value(self) -> float:
        self.calculate_measures()
        return self._total_connection_value

    def summary(self) -> ForestSummary:
        return ForestSummary(
            n_trees=self.number_of_trees,
            n_leaves=self.number_of_leaves,
            minimum_value=self.minimum_value,
            minimum_barrier_value=self.minimum_barrier_value,
            maximum_barrier_value=self.maximum_barrier_value,
            total_barrier_value=self.total_barrier_value,
            total_connection_value=self.total_connection_value,
            models_used=self._models_used,
            pruning_threshold=self._pruning_threshold,
            neighbor_threshold=self._neighbor_threshold,
        )

    # ── path queries ────────────────────────────────────────────

    def find_connecting_models(self, from_id: int, to_id: int) -> List[Model]:
        """Shortest neighbor path of models between two nodes.

        Both ids must be in the same tree.  The path starts with the
        model of *from_id* and ends with the model of *to_id*.

        Raises
        ------
        ValueError
            If ``from_id == to_id``, the ids are not in one tree, or the
            forest has no neighborhood.
        RuntimeError
            If the nodes cannot be connected (inconsistent tree).
        """
        if from_id == to_id:
            raise ValueError("from_id == to_id")
        if self._neighborhood is None:
            raise ValueError("forest has no neighborhood to connect models with")

        from_node = to_node = None
        for tree in self._trees:
            from_node = tree.find(from_id)
            if from_node is not None:
                to_node = tree.find(to_id)
                break

        if from_node is None or to_node is None:
            raise ValueError(
                f"ids {from_id} and {to_id} are not in the same BarrierTree")

        models = shortest_path(from_node, to_node, self._neighborhood,
                               self._neighbor_threshold)
        logger.debug(f"Conformations in trajectory: {len(models)}")
        return models

    def __repr__(self) -> str:
        return f"BarrierForest({len(self._trees)} trees, models_used={self._models_used})"
