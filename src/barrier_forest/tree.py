"""BarrierTree — one full binary merge tree plus its statistics.

Measures are computed on first access and cached:

number_of_leaves        true leaves (additional models not counted)
minimum                 lowest-valued node (always a leaf)
minimum_barrier         lowest-valued internal node
maximum_barrier         the root (both constructors put the highest
                        barrier on top)
total_barrier_value     Σ value over internal nodes
total_connection_value  Σ (value − m) · w_left · w_right over internal
                        nodes, with m the tree minimum until the owning
                        forest supplies its own minimum via
                        :meth:`BarrierTree.recalculate_measures`

A tree whose root is a leaf reports that leaf as both barriers and
zero for both totals.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Optional

from .node import Node
from .numeric import is_less

if TYPE_CHECKING:
    from .forest import BarrierForest

logger = logging.getLogger(__name__)

__all__ = ["BarrierTree"]


class BarrierTree:
    """Barrier tree rooted at *root*.

    Parameters
    ----------
    root : Node
    verbose : bool
        Log the measures at DEBUG level when they are computed.
    """

    def __init__(self, root: Node, verbose: bool = True):
        if root is None:
            raise TypeError("root is None")
        self._root = root
        self._verbose = verbose
        self._measures_calculated = False
        self._leaves = 0
        self._min: Optional[Node] = None
        self._min_barrier: Optional[Node] = None
        self._max_barrier: Optional[Node] = None
        self._total_barrier_value = 0.0
        self._total_connection_value = 0.0

    @property
    def root(self) -> Node:
        return self._root

    def iter_nodes(self) -> Iterator[Node]:
        return self._root.iter_subtree()

    def find(self, id: int) -> Optional[Node]:
        """Node with the given id, or ``None``."""
        for node in self._root.iter_subtree():
            if node.id == id:
                return node
        return None

    # ── measures ────────────────────────────────────────────────

    def calculate_measures(self) -> None:
        if self._measures_calculated:
            return

        root = self._root
        self._leaves = sum(1 for node in root.iter_subtree() if node.is_leaf())
        self._min = _find_minimum(root)
        self._min_barrier = _find_minimum_barrier(root)
        self._max_barrier = root
        self._total_barrier_value = _total_barrier_value(root)
        self._total_connection_value = _total_connection_value(
            root, self._min.value)
        self._measures_calculated = True

        if self._verbose:
            logger.debug(
                f"[BarrierTree] leaves: {self._leaves}, "
                f"minValue: {self._min.value:.6f}, "
                f"minBarrierValue: {self._min_barrier.value:.6f}, "
                f"maxBarrierValue: {self._max_barrier.value:.6f}, "
                f"totalBarrierValue: {self._total_barrier_value:.6f}, "
                f"totalConnectionValue: {self._total_connection_value:.6f}"
            )

        if root.weight != self._leaves:
            raise RuntimeError(
                f"root weight {root.weight} != number of leaves {self._leaves}")

    def recalculate_measures(self, forest: "BarrierForest") -> None:
        """Recompute the connection value against the forest minimum."""
        self.calculate_measures()
        self._total_connection_value = _total_connection_value(
            self._root, forest.minimum_value)

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

    def __repr__(self) -> str:
        return f"BarrierTree(root={self._root.id}, weight={self._root.weight})"


# ═══════════════════════════════════════════════════════════════════
# Traversals
# ═══════════════════════════════════════════════════════════════════

def _in_order(root: Node) -> Iterator[Node]:
    stack = []
    node: Optional[Node] = root
    while stack or node is not None:
        while node is not None:
            stack.append(node)
            node = node.left
        node = stack.pop()
        yield node
        node = node.right


def _find_minimum(root: Node) -> Node:
    best = root
    for node in _in_order(root):
        if node.is_leaf() and is_less(node.value, best.value):
            best = node
    return best


def _find_minimum_barrier(root: Node) -> Node:
    best = root
    for node in _in_order(root):
        if node.is_internal() and is_less(node.value, best.value):
            best = node
    return best


def _total_barrier_value(root: Node) -> float:
    return sum(node.value for node in root.iter_subtree() if node.is_internal())


def _total_connection_value(root: Node, min_value: float) -> float:
    total = 0.0
    for node in root.iter_subtree():
        if node.is_internal():
            total += ((node.value - min_value)
                      * node.left.weight * node.right.weight)
    return total
