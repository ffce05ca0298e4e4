"""Nodes of a barrier tree, and the factory that numbers them.

A :class:`Node` is either a *leaf* (a local minimum) or an *internal*
node with exactly two distinct children (a barrier / saddle joining
two basins).  Its value is its model's fitness, its weight the number
of leaves below it.

Invariants
----------
* ``node.is_leaf() == (node.left is None)``
* ``node.weight == 1`` for leaves, ``left.weight + right.weight`` otherwise
* ``node.value == node.model.evaluate()``

Ids come from a :class:`NodeFactory` owned by one construction run, so
leaf ids match positions in the input list (pairwise construction) or
in the sorted trajectory (flooding), and repeated or interleaved
constructions never disturb each other's numbering.

Flooding also absorbs models into an existing basin without creating a
node; those are kept as the node's *additional models*.

Nodes also carry ``x``, ``y`` and ``color`` for drawing; see
:mod:`barrier_forest.layout`.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from .model import Model
from .numeric import EPSILON, compare, is_equal

__all__ = [
    "Node",
    "NodeFactory",
    "BLACK",
]

Color = Tuple[float, float, float]

BLACK: Color = (0.0, 0.0, 0.0)


# ═══════════════════════════════════════════════════════════════════
# Node
# ═══════════════════════════════════════════════════════════════════

class Node:
    """Leaf or internal node of a barrier tree.

    Use :meth:`NodeFactory.create` rather than calling the constructor
    directly so ids stay consistent within a construction.

    Raises
    ------
    TypeError
        If *model* is ``None``, or only one child is given.
    ValueError
        If ``left is right``.
    """

    __slots__ = (
        "_id", "_model", "_weight", "_left", "_right", "_parent",
        "_additional_models", "x", "y", "color",
    )

    def __init__(self, id: int, model: Model,
                 left: Optional["Node"] = None,
                 right: Optional["Node"] = None):
        if model is None:
            raise TypeError("model is None")
        if (left is None) != (right is None):
            raise TypeError("an internal node needs both left and right")
        if left is not None and left is right:
            raise ValueError("left is right")

        self._id = id
        self._model = model
        self._left = left
        self._right = right
        self._parent: Optional[Node] = None
        self._additional_models: Optional[List[Model]] = None
        self._weight = 1
        self.x = 0
        self.y = 0
        self.color: Color = BLACK

        if left is not None:
            self._update_weight()
            left.set_parent(self)
            right.set_parent(self)

    # ── identity and value ──────────────────────────────────────

    @property
    def id(self) -> int:
        return self._id

    @property
    def model(self) -> Model:
        return self._model

    @property
    def value(self) -> float:
        return self._model.evaluate()

    @property
    def weight(self) -> int:
        return self._weight

    def is_leaf(self) -> bool:
        return self._left is None

    def is_internal(self) -> bool:
        return self._left is not None

    def has_parent(self) -> bool:
        return self._parent is not None

    # ── structure ───────────────────────────────────────────────

    @property
    def left(self) -> Optional["Node"]:
        return self._left

    @property
    def right(self) -> Optional["Node"]:
        return self._right

    @property
    def parent(self) -> Optional["Node"]:
        return self._parent

    def _check_child(self, child: "Node", side: str) -> None:
        if self.is_leaf():
            raise ValueError(f"cannot set {side} child of a leaf")
        if child is None:
            raise TypeError(f"{side} is None")
        if child is self:
            raise ValueError(f"{side} is self")

    def set_left(self, left: "Node") -> None:
        self._check_child(left, "left")
        self._left = left
        left._parent = self
        self._update_weight()

    def set_right(self, right: "Node") -> None:
        self._check_child(right, "right")
        self._right = right
        right._parent = self
        self._update_weight()

    def set_parent(self, parent: "Node") -> None:
        """Back-reference set by the node that adopts this one."""
        if parent is None:
            raise TypeError("parent is None")
        if parent is self:
            raise ValueError("parent is self")
        if parent.is_leaf():
            raise ValueError("parent is a leaf")
        self._parent = parent

    def _update_weight(self) -> None:
        self._weight = self._left._weight + self._right._weight

    def calculate_weight(self) -> int:
        """Recompute weights of the whole subtree bottom-up."""
        for node in reversed(list(self.iter_subtree())):
            if node.is_internal():
                node._update_weight()
        return self._weight

    def iter_subtree(self) -> Iterator["Node"]:
        """Pre-order traversal, left before right."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if node._left is not None:
                stack.append(node._right)
                stack.append(node._left)

    # ── additional models ───────────────────────────────────────

    def has_additional_models(self) -> bool:
        return bool(self._additional_models)

    @property
    def additional_models_count(self) -> int:
        return len(self._additional_models) if self._additional_models else 0

    @property
    def additional_models(self) -> List[Model]:
        """Copy of the models absorbed into this basin."""
        return list(self._additional_models or ())

    def add_additional_model(self, model: Model) -> None:
        if self._additional_models is None:
            self._additional_models = []
        self._additional_models.append(model)

    # ── cleaning ────────────────────────────────────────────────

    def clean(self, eps: float = EPSILON) -> "Node":
        """Remove barriers that do not separate anything.

        Wherever a leaf child has the same value (within *eps*) as
        its parent, the parent is replaced by the other child.  Returns
        the (possibly different) node now at this position.  Weights of
        the cleaned subtree are recomputed.
        """
        root = _collapse(self, eps)
        pending = [root]
        while pending:
            node = pending.pop()
            if node.is_leaf():
                continue
            node._left = _collapse(node._left, eps)
            node._right = _collapse(node._right, eps)
            node._left._parent = node
            node._right._parent = node
            pending.append(node._right)
            pending.append(node._left)

        if self._parent is None and root is not self:
            root._parent = None
        root.calculate_weight()
        return root

    # ── ordering and display ────────────────────────────────────

    def compare_to(self, other: "Node") -> int:
        return compare(self.value, other.value)

    def __lt__(self, other: "Node") -> bool:
        return self.compare_to(other) < 0

    def __le__(self, other: "Node") -> bool:
        return self.compare_to(other) <= 0

    def __gt__(self, other: "Node") -> bool:
        return self.compare_to(other) > 0

    def __ge__(self, other: "Node") -> bool:
        return self.compare_to(other) >= 0

    def __str__(self) -> str:
        return f"{self._id}/{self._weight}/{self.value}"

    def __repr__(self) -> str:
        kind = "leaf" if self.is_leaf() else "internal"
        return f"Node({self._id}, {kind}, weight={self._weight}, value={self.value:.6g})"


def _collapse(node: Node, eps: float) -> Node:
    """Follow leaf-equals-parent collapses until none applies."""
    while node.is_internal():
        left, right = node._left, node._right
        if left.is_leaf() and is_equal(left.value, node.value, eps):
            node = right
        elif right.is_leaf() and is_equal(right.value, node.value, eps):
            node = left
        else:
            break
    return node


# ═══════════════════════════════════════════════════════════════════
# NodeFactory: explicit id sequence
# ═══════════════════════════════════════════════════════════════════

class NodeFactory:
    """Creates nodes with consecutive ids starting at *start*.

    One factory belongs to one construction run.
    """

    def __init__(self, start: int = 0):
        self._start = start
        self._next = start

    @property
    def next_id(self) -> int:
        return self._next

    def reset(self) -> None:
        self._next = self._start

    def create(self, model: Model, left: Optional[Node] = None,
               right: Optional[Node] = None) -> Node:
        node = Node(self._next, model, left, right)
        self._next += 1
        return node
