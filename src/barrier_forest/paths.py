"""Path reconstruction between two stored conformations.

Given two nodes of the same barrier tree, the lowest barrier between
them is their *split node* — the deepest node shared by both
root-to-node paths.  Every conformation that can lie on a path below
that barrier sits in the split node's subtree, either as a node's
model or as one of the additional models flooding absorbed into a
basin.  Those models are re-linked with the forest's neighborhood at
the forest's neighbor threshold, and a breadth-first search over the
resulting unit-weight graph yields the shortest path.

The split node's own additional models were absorbed *after* the
merge, so they lie above the barrier and are left out.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Tuple

import numpy as np

from .model import Model
from .neighborhood import Neighborhood
from .node import Node

logger = logging.getLogger(__name__)

__all__ = [
    "path_from_root",
    "find_split_node",
    "collect_models",
    "shortest_path",
]


def path_from_root(node: Node) -> List[Node]:
    """Nodes from the root down to *node*, inclusive."""
    if node is None:
        raise TypeError("node is None")
    nodes = []
    while node is not None:
        nodes.append(node)
        node = node.parent
    nodes.reverse()
    return nodes


def find_split_node(first: Node, second: Node) -> Node:
    """Deepest node on both root paths.

    If one path is a prefix of the other (one node is an ancestor of
    the other), the last node of the shorter path is returned.
    """
    first_path = path_from_root(first)
    second_path = path_from_root(second)
    if first_path[0] is not second_path[0]:
        raise ValueError(f"nodes {first.id} and {second.id} are in different trees")

    split = first_path[0]
    for a, b in zip(first_path, second_path):
        if a is not b:
            break
        split = a
    return split


def collect_models(split: Node) -> Tuple[List[Model], Dict[int, Node]]:
    """Candidate models below *split*.

    Returns
    -------
    models : list of Model
        Each model object once, in pre-order, additional models right
        after their node's model.
    owners : dict
        ``id(model) -> Node`` it was collected from.
    """
    models: List[Model] = []
    owners: Dict[int, Node] = {}

    def _add(model: Model, node: Node) -> None:
        if id(model) not in owners:
            owners[id(model)] = node
            models.append(model)

    for node in split.iter_subtree():
        _add(node.model, node)
        if node is not split and node.has_additional_models():
            for extra in node.additional_models:
                _add(extra, node)
    return models, owners


def shortest_path(
    source: Node,
    destination: Node,
    neighborhood: Neighborhood,
    neighbor_threshold: float,
) -> List[Model]:
    """Fewest-hops path of models from *source* to *destination*.

    Raises
    ------
    RuntimeError
        If the neighbor graph below the split node does not connect the
        two nodes.  That means the tree was built inconsistently.
    """
    split = find_split_node(source, destination)
    models, owners = collect_models(split)
    index = {id(m): i for i, m in enumerate(models)}
    src = index[id(source.model)]
    dst = index[id(destination.model)]

    adjacency = neighborhood.calculate_neighbors(
        models, neighbor_threshold, verbose=True)

    previous = np.full(len(models), -1, dtype=int)
    visited = np.zeros(len(models), dtype=bool)
    visited[src] = True
    queue = deque([src])
    reached = False

    while queue:
        current = queue.popleft()
        if current == dst:
            reached = True
            break
        for nxt in adjacency[current]:
            if not visited[nxt]:
                visited[nxt] = True
                previous[nxt] = current
                queue.append(nxt)

    if not reached:
        raise RuntimeError(
            f"Could not connect {source.id} and {destination.id}")

    path_ids = [dst]
    while previous[path_ids[-1]] != -1:
        path_ids.append(int(previous[path_ids[-1]]))
    path_ids.reverse()
    path = [models[i] for i in path_ids]

    logger.debug(f"Splitting barrier: {split.id}({split.model.id})")
    logger.debug("Path: " + " ".join(
        f"{owners[id(m)].id}({m.id})" for m in path))
    return path
