"""Layout — child order, colours and 2D positions for drawing a forest.

Nothing here changes what a forest means; it only fills the drawing
fields every :class:`~barrier_forest.node.Node` carries (``x``, ``y``,
``color``) so an external renderer can draw it.

Structurers
    Reorder children.  :class:`WeightStructurer` puts the lighter
    subtree on the left.
Colorers
    :class:`FixedColorer`              one colour for every node
    :class:`RandomColorer`             seeded random colour per node
    :class:`TrajectoryPositionColorer` red ∝ model id / models used
    :class:`AdditionalModelsColorer`   green ∝ additional-model count
Positions
    :func:`compute_node_positions` splits the width between trees by
    leaf count and inside a tree by subtree weight; ``y`` is linear in
    the node value, with the forest maximum barrier at the top.

Usage
-----
>>> WeightStructurer().structure(forest)
>>> AdditionalModelsColorer().color(forest)
>>> compute_node_positions(forest, width=800, height=600, header=40)
>>> [(n.x, n.y, n.color) for n in forest[0].iter_nodes()]
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .forest import BarrierForest
from .node import BLACK, Color, Node
from .tree import BarrierTree

__all__ = [
    "Structurer",
    "WeightStructurer",
    "Colorer",
    "NodeColorer",
    "FixedColorer",
    "RandomColorer",
    "TrajectoryPositionColorer",
    "AdditionalModelsColorer",
    "compute_node_positions",
]


# ═══════════════════════════════════════════════════════════════════
# Structurers
# ═══════════════════════════════════════════════════════════════════

class Structurer(ABC):
    """Reorders the children of every node of a tree or forest."""

    def structure(self, target) -> None:
        if target is None:
            raise TypeError("target is None")
        if isinstance(target, BarrierForest):
            for tree in target:
                self.structure(tree)
        elif isinstance(target, BarrierTree):
            for node in target.iter_nodes():
                self.structure_node(node)
        else:
            self.structure_node(target)

    @abstractmethod
    def structure_node(self, node: Node) -> None:
        ...


class WeightStructurer(Structurer):
    """Lighter subtree left, heavier right.  Ties keep the order."""

    def structure_node(self, node: Node) -> None:
        if node.is_leaf():
            return
        left, right = node.left, node.right
        if left.weight > right.weight:
            node.set_left(right)
            node.set_right(left)


# ═══════════════════════════════════════════════════════════════════
# Colorers
# ═══════════════════════════════════════════════════════════════════

class Colorer(ABC):
    """Assigns ``node.color`` across a tree or forest."""

    @abstractmethod
    def color(self, target) -> None:
        ...


class NodeColorer(Colorer):
    """Colours every node independently of the rest of the forest."""

    def color(self, target) -> None:
        if target is None:
            raise TypeError("target is None")
        if isinstance(target, BarrierForest):
            for tree in target:
                self.color(tree)
        elif isinstance(target, BarrierTree):
            for node in target.iter_nodes():
                self.color_node(node)
        else:
            self.color_node(target)

    @abstractmethod
    def color_node(self, node: Node) -> None:
        ...


class FixedColorer(NodeColorer):

    def __init__(self, color: Color = BLACK):
        if color is None:
            raise TypeError("color is None")
        self._color = tuple(float(c) for c in color)

    def color_node(self, node: Node) -> None:
        node.color = self._color


class RandomColorer(NodeColorer):
    """Uniform random RGB, each channel below ``max_brightness``."""

    def __init__(self, seed: Optional[int] = None, max_brightness: float = 0.95):
        self._rng = np.random.default_rng(seed)
        self._max = max_brightness

    def color_node(self, node: Node) -> None:
        r, g, b = self._rng.uniform(0.0, self._max, size=3)
        node.color = (float(r), float(g), float(b))


class TrajectoryPositionColorer(Colorer):
    """Red channel = ``model.id / forest.models_used``.

    Early trajectory frames come out dark, late ones bright.  Models
    without an id are drawn black.
    """

    def color(self, target) -> None:
        if target is None:
            raise TypeError("target is None")
        if not isinstance(target, BarrierForest):
            raise TypeError("TrajectoryPositionColorer needs a BarrierForest")
        models_used = target.models_used
        for tree in target:
            for node in tree.iter_nodes():
                model_id = node.model.id
                red = 0.0
                if model_id is not None and models_used > 0:
                    red = model_id / models_used
                node.color = (red, 0.0, 0.0)


class AdditionalModelsColorer(Colorer):
    """Green channel = additional-model count / largest count.

    Over a forest the largest count is taken across all trees.
    """

    def color(self, target) -> None:
        if target is None:
            raise TypeError("target is None")
        if isinstance(target, BarrierForest):
            trees = list(target)
        elif isinstance(target, BarrierTree):
            trees = [target]
        else:
            raise TypeError("AdditionalModelsColorer needs a forest or a tree")

        largest = max(
            node.additional_models_count
            for tree in trees for node in tree.iter_nodes())
        for tree in trees:
            for node in tree.iter_nodes():
                green = node.additional_models_count / largest if largest else 0.0
                node.color = (0.0, green, 0.0)


# ═══════════════════════════════════════════════════════════════════
# Positions
# ═══════════════════════════════════════════════════════════════════

def compute_node_positions(
    forest: BarrierForest,
    width: int,
    height: int,
    header: int = 0,
) -> None:
    """Fill ``x`` and ``y`` of every node for a ``width × height`` canvas.

    ``y`` grows upwards: the forest maximum barrier sits at
    ``height - header`` and the forest minimum at ``0``.  Leaves are
    centred in their horizontal slice; an internal node sits midway
    between its children.
    """
    if forest is None:
        raise TypeError("forest is None")
    if width <= 0 or height <= header:
        raise ValueError(f"canvas {width}x{height} with header {header} is empty")

    min_value = forest.minimum_value
    max_value = forest.maximum_barrier_value
    span = max_value - min_value
    value_per_pixel = span / (height - header) if span > 0 else 1.0
    total_leaves = forest.number_of_leaves
    top = height - header

    x_max = 0
    for tree in forest:
        x_min = x_max
        x_max += int(width * tree.number_of_leaves / total_leaves)
        _place(tree.root, x_min, x_max, top, max_value, value_per_pixel)


def _place(root: Node, start: int, stop: int, top: int,
           max_value: float, value_per_pixel: float) -> None:
    # Pre-order assigns slices and y; post-order centres internal x.
    order = []
    stack = [(root, start, stop)]
    while stack:
        node, lo, hi = stack.pop()
        node.y = int(top - (max_value - node.value) / value_per_pixel)
        if node.is_leaf():
            node.x = int(lo + (hi - lo) / 2.0)
            continue
        order.append(node)
        margin = int((hi - lo) * node.left.weight / node.weight)
        stack.append((node.right, lo + margin + 1, hi))
        stack.append((node.left, lo, lo + margin))

    for node in reversed(order):
        node.x = int(node.left.x + (node.right.x - node.left.x) / 2.0)
