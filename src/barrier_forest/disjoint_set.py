"""BasinSet — which basin does each model currently belong to?

Both constructors repeatedly ask "are ids *i* and *j* already in the
same tree?" and, when they are not, merge the two trees under a new
barrier node.  ``BasinSet`` answers with a disjoint-set forest over
model ids (union by rank, path halving) and remembers the current top
node of every set, so a merge is near O(1) instead of rewriting every
id that pointed at either old basin.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .node import Node

__all__ = ["BasinSet"]


class BasinSet:
    """Disjoint sets of model ids, each labelled with its top node.

    Parameters
    ----------
    size : int
        Number of model ids (``0 … size-1``).  Ids start unassigned.
    """

    def __init__(self, size: int):
        self._parent: List[int] = list(range(size))
        self._rank: List[int] = [0] * size
        self._node: List[Optional[Node]] = [None] * size
        self._assigned: List[bool] = [False] * size
        self._n_sets = 0

    def __len__(self) -> int:
        return len(self._parent)

    @property
    def n_sets(self) -> int:
        """Number of disjoint sets among assigned ids."""
        return self._n_sets

    def is_assigned(self, i: int) -> bool:
        return self._assigned[i]

    def find(self, i: int) -> int:
        parent = self._parent
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    def node(self, i: int) -> Optional[Node]:
        """Top node of the set containing *i* (``None`` if unassigned)."""
        if not self._assigned[i]:
            return None
        return self._node[self.find(i)]

    def assign(self, i: int, node: Node) -> None:
        """Make *i* a new singleton set whose top node is *node*."""
        if self._assigned[i]:
            raise ValueError(f"id {i} already assigned")
        self._assigned[i] = True
        self._node[i] = node
        self._n_sets += 1

    def attach(self, i: int, j: int) -> None:
        """Put unassigned *i* into the set containing *j*."""
        if self._assigned[i]:
            raise ValueError(f"id {i} already assigned")
        if not self._assigned[j]:
            raise ValueError(f"id {j} is unassigned")
        root = self.find(j)
        self._parent[i] = root
        self._assigned[i] = True

    def union(self, i: int, j: int, node: Node) -> int:
        """Merge the sets of *i* and *j* under *node*; return the new root."""
        a, b = self.find(i), self.find(j)
        if a == b:
            raise ValueError(f"ids {i} and {j} are already in the same set")
        if self._rank[a] < self._rank[b]:
            a, b = b, a
        self._parent[b] = a
        if self._rank[a] == self._rank[b]:
            self._rank[a] += 1
        self._node[a] = node
        self._node[b] = None
        self._n_sets -= 1
        return a

    def distinct_roots(self, ids) -> List[int]:
        """Set roots of the assigned ids in *ids*, first occurrence order."""
        seen: Dict[int, None] = {}
        for j in ids:
            if self._assigned[j]:
                seen.setdefault(self.find(j), None)
        return list(seen)

    def top_nodes(self) -> List[Node]:
        """Distinct top nodes, ordered by the smallest id in each set."""
        return [self._node[r] for r in self.distinct_roots(range(len(self)))]
