"""Construction — turn models into a barrier forest.

Two algorithms build the merge trees; both number nodes with a fresh
:class:`~barrier_forest.node.NodeFactory` and track basins with a
:class:`~barrier_forest.disjoint_set.BasinSet`.

Pairwise (Kruskal-style), :func:`construct_from_minima`
    Connect every pair of minima with a :class:`Connector`, sort the
    barriers ascending and merge basins under each barrier that joins
    two different trees.  Stops at a single tree or at the first
    barrier above the energy threshold.

Flooding (watershed), :func:`construct_from_trajectory`
    Sweep models in ascending fitness order.  A model with no assigned
    neighbor opens a new basin (leaf), one with neighbors in a single
    basin joins it as an additional model, and one touching several
    basins is a saddle that merges them.

Every root is cleaned before it is wrapped in a
:class:`~barrier_forest.tree.BarrierTree`.

The neighbor threshold for flooding can be searched for
(:func:`search_neighbor_threshold`): the smallest threshold that gives
one tree, and the smallest that gives one leaf, bracket the useful
range.  :func:`threshold_profile` samples tree and leaf counts over
that range.

Usage
-----
>>> forest = construct_from_minima(minima, StepConnector())
>>> forest = construct_from_trajectory(frames, RmsdAngleDifferenceNeighborhood(),
...                                    min_distance=0.05, max_distance=0.3)
>>> search = search_neighbor_threshold(frames, nb, min_distance=0.05)
>>> search.lower, search.upper
"""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .connection import Connector
from .disjoint_set import BasinSet
from .forest import BarrierForest
from .model import Model
from .neighborhood import Neighborhood, RmsdAngleDifferenceNeighborhood
from .node import Node, NodeFactory
from .numeric import EPSILON, compare
from .progress import PairProgress
from .pruning import prune, prune_stream
from .settings import SettingsRegistry, resolve_settings
from .tree import BarrierTree

logger = logging.getLogger(__name__)

__all__ = [
    "Barrier",
    "ThresholdSearch",
    "connect_all_minima_pairs",
    "construct_from_minima",
    "flooding",
    "construct_from_trajectory",
    "search_neighbor_threshold",
    "threshold_profile",
    "create_forest",
    "sort_by_fitness",
]


# ═══════════════════════════════════════════════════════════════════
# Shared helpers
# ═══════════════════════════════════════════════════════════════════

def create_forest(
    roots: Sequence[Node],
    models_used: int,
    pruning_threshold: float = -1.0,
    neighbor_threshold: float = -1.0,
    neighborhood: Optional[Neighborhood] = None,
    verbose: bool = True,
    *,
    settings: Optional[SettingsRegistry] = None,
) -> BarrierForest:
    """Clean every root (tolerance ``numeric.epsilon``) and wrap the
    trees in a forest."""
    eps = resolve_settings(settings)["numeric.epsilon"]
    trees = [BarrierTree(root.clean(eps), verbose) for root in roots]
    return BarrierForest(trees, models_used, pruning_threshold,
                         neighbor_threshold, neighborhood, verbose)


def sort_by_fitness(models: Iterable[Model], eps: float = EPSILON) -> List[Model]:
    """Stable ascending sort; fitness values within *eps* keep their order."""
    return sorted(models, key=functools.cmp_to_key(
        lambda a, b: compare(a.evaluate(), b.evaluate(), eps)))


# ═══════════════════════════════════════════════════════════════════
# Pairwise construction
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Barrier:
    """Worst point found between minima ``from_id`` and ``to_id``."""

    from_id: int
    to_id: int
    model: Model

    def __post_init__(self):
        if self.model is None:
            raise TypeError(
                f"from_id = {self.from_id}, to_id = {self.to_id}, model is None")
        if self.from_id == self.to_id:
            raise ValueError(f"from_id == to_id (== {self.from_id})")

    @property
    def value(self) -> float:
        return self.model.evaluate()


def connect_all_minima_pairs(
    minima: Sequence[Model],
    connector: Connector,
    *,
    settings: Optional[SettingsRegistry] = None,
) -> List[Barrier]:
    """Connect every pair ``i < j``; return barriers sorted by value.

    Ties keep generation order (``(0, 1), (0, 2), …, (1, 2), …``).
    """
    logger.info("Connecting all pairs of minima")
    n = len(minima)
    progress = PairProgress(
        "Connections performed", n,
        resolve_settings(settings)["progress.pair_operations"], logger)

    barriers: List[Barrier] = []
    for i in range(n):
        for j in range(i + 1, n):
            barriers.append(Barrier(i, j, connector.connect(minima[i], minima[j])))
        progress.row_done(i)

    barriers.sort(key=lambda b: b.value)
    return barriers


def construct_from_minima(
    minima: Sequence[Model],
    connector: Connector,
    threshold: Optional[float] = None,
    *,
    neighborhood: Optional[Neighborhood] = None,
    pruning_threshold: Optional[float] = None,
    settings: Optional[SettingsRegistry] = None,
    verbose: bool = True,
) -> BarrierForest:
    """Build a forest from explicit minima by pairwise merging.

    Parameters
    ----------
    minima : sequence of Model
        At least two local minima.
    connector : Connector
        Produces the barrier model between two minima.
    threshold : float, optional
        Barriers above this value are never merged
        (default ``construction.energy_threshold``, +inf).
    neighborhood : Neighborhood, optional
        Distance used for pruning (default RMSD of angle differences).
    pruning_threshold : float, optional
        Minima closer than this are pruned first
        (default ``pruning.min_distance``; ``0`` disables).
    settings : SettingsRegistry, optional
        Also passed to pruning, pair connection and cleaning.

    Returns
    -------
    BarrierForest
        Leaf ids are positions in the pruned minima list.

    Raises
    ------
    TypeError
        If *minima* or *connector* is ``None``.
    ValueError
        If fewer than two minima are given or the pruning threshold is
        negative.
    """
    settings = resolve_settings(settings)
    if threshold is None:
        threshold = settings["construction.energy_threshold"]
    if pruning_threshold is None:
        pruning_threshold = settings["pruning.min_distance"]

    if minima is None:
        raise TypeError("minima is None")
    if connector is None:
        raise TypeError("connector is None")
    if len(minima) < 2:
        raise ValueError(f"need at least 2 minima, got {len(minima)}")
    if pruning_threshold < 0:
        raise ValueError(
            f"pruning_threshold must be >= 0, got {pruning_threshold}")

    neighborhood = neighborhood or RmsdAngleDifferenceNeighborhood()
    if pruning_threshold > 0:
        minima = prune(minima, neighborhood, pruning_threshold,
                       settings=settings)
    else:
        minima = list(minima)

    barriers = connect_all_minima_pairs(minima, connector, settings=settings)

    logger.info("Constructing barrier forest")
    factory = NodeFactory()
    basins = BasinSet(len(minima))
    for i, minimum in enumerate(minima):
        basins.assign(i, factory.create(minimum))

    for barrier in barriers:
        if barrier.value > threshold:
            break
        if basins.find(barrier.from_id) == basins.find(barrier.to_id):
            continue
        node = factory.create(barrier.model,
                              basins.node(barrier.from_id),
                              basins.node(barrier.to_id))
        basins.union(barrier.from_id, barrier.to_id, node)
        if basins.n_sets == 1:
            break

    return create_forest(basins.top_nodes(), len(minima), pruning_threshold,
                         -1.0, neighborhood, verbose, settings=settings)


# ═══════════════════════════════════════════════════════════════════
# Flooding construction
# ═══════════════════════════════════════════════════════════════════

def flooding(
    models: Sequence[Model],
    adjacency: Sequence[Sequence[int]],
    factory: Optional[NodeFactory] = None,
) -> List[Node]:
    """Watershed sweep over *models*; return the tree roots.

    Parameters
    ----------
    models : sequence of Model
        Sorted ascending by fitness.  Unsorted input still produces
        trees, but saddles may then be lower than their basins.
    adjacency : sequence of int sequences
        ``adjacency[i]`` — indices of the neighbors of ``models[i]``.
    factory : NodeFactory, optional
        Id source (a fresh one starting at 0 by default).

    Notes
    -----
    When one model touches more than two basins, the basins are folded
    pairwise in neighbor order and every fold gets its own internal
    node carrying the same saddle model.
    """
    if factory is None:
        factory = NodeFactory()
    basins = BasinSet(len(models))

    for i, model in enumerate(models):
        roots = basins.distinct_roots(adjacency[i])

        if not roots:
            basins.assign(i, factory.create(model))
        elif len(roots) == 1:
            basins.node(roots[0]).add_additional_model(model)
            basins.attach(i, roots[0])
        else:
            root = roots[0]
            for other in roots[1:]:
                node = factory.create(model, basins.node(root),
                                      basins.node(other))
                root = basins.union(root, other, node)
            basins.attach(i, root)

    return basins.top_nodes()


def _flood(
    models: Sequence[Model],
    neighborhood: Neighborhood,
    max_distance: float,
    models_used: int,
    min_distance: float,
    verbose: bool,
    settings: SettingsRegistry,
) -> BarrierForest:
    if verbose:
        logger.info(
            f"Calculating neighbors ({len(models)} models, "
            f"{max_distance:f} threshold)")
    adjacency = neighborhood.calculate_neighbors(
        models, max_distance, verbose, settings=settings)
    if verbose:
        logger.info("Executing the flooding algorithm")
    roots = flooding(models, adjacency)
    return create_forest(roots, models_used, min_distance, max_distance,
                         neighborhood, verbose, settings=settings)


def _prepare_trajectory(
    models: Iterable[Model],
    neighborhood: Neighborhood,
    min_distance: float,
    settings: SettingsRegistry,
) -> Tuple[List[Model], int]:
    if min_distance > 0:
        accepted, offered = prune_stream(models, neighborhood, min_distance,
                                         settings=settings)
        accepted = prune(accepted, neighborhood, min_distance, settings=settings)
    else:
        accepted = list(models)
        offered = len(accepted)
    logger.debug("Sorting models by non-decreasing fitness value")
    return sort_by_fitness(accepted, settings["numeric.epsilon"]), offered


def construct_from_trajectory(
    models: Iterable[Model],
    neighborhood: Neighborhood,
    min_distance: float,
    max_distance: Optional[float] = None,
    *,
    total_conformations: Optional[int] = None,
    settings: Optional[SettingsRegistry] = None,
    verbose: bool = True,
) -> BarrierForest:
    """Build a forest from a trajectory by flooding.

    Parameters
    ----------
    models : iterable of Model
        Trajectory frames in any order.  May be a generator.
    neighborhood : Neighborhood
    min_distance : float
        Pruning distance (``0`` disables pruning).
    max_distance : float, optional
        Neighbor threshold.  When ``None`` the lower estimate of
        :func:`search_neighbor_threshold` is used.
    total_conformations : int, optional
        Recorded as ``models_used`` (default: number of frames read).
    settings : SettingsRegistry, optional

    Returns
    -------
    BarrierForest
        Node ids are assigned in sweep (ascending fitness) order.
    """
    settings = resolve_settings(settings)
    if models is None:
        raise TypeError("models is None")
    if neighborhood is None:
        raise TypeError("neighborhood is None")
    if min_distance < 0:
        raise ValueError(f"min_distance must be >= 0, got {min_distance}")
    if max_distance is not None and max_distance < 0:
        raise ValueError(f"max_distance must be >= 0, got {max_distance}")

    ordered, offered = _prepare_trajectory(models, neighborhood, min_distance, settings)
    if not ordered:
        raise ValueError("no models to build a forest from")
    models_used = offered if total_conformations is None else total_conformations

    if max_distance is None:
        search = _search_sorted(ordered, neighborhood, min_distance,
                                settings["search.min_span"], models_used, settings)
        logger.info(
            f"The neighborhood threshold should probably be between "
            f"approximately {search.lower:f} and {search.upper:f}")
        logger.debug(f"Using {search.lower:f} as neighbor threshold")
        max_distance = search.lower

    return _flood(ordered, neighborhood, max_distance, models_used,
                  min_distance, verbose, settings)


# ═══════════════════════════════════════════════════════════════════
# Neighbor-threshold search
# ═══════════════════════════════════════════════════════════════════

class ThresholdSearch(NamedTuple):
    """Smallest neighbor thresholds giving one tree / one leaf."""

    lower: float
    upper: float


def _bisect(lo: float, hi: float, min_span: float, accept, label: str) -> float:
    """Smallest value in ``[lo, hi]`` where *accept* holds, to *min_span*.

    *accept* must be monotone.  Returns *hi* (with a warning) when even
    *hi* is not accepted.
    """
    if not accept(hi):
        logger.warning(
            f"Neighbor threshold {hi:f} does not result in {label}; using it anyway")
        return hi
    while hi - lo >= min_span:
        mid = (lo + hi) / 2.0
        if accept(mid):
            logger.debug(f"Neighbor threshold {mid:f} results in {label}")
            hi = mid
        else:
            logger.debug(f"Neighbor threshold {mid:f} does not result in {label}")
            lo = mid
    return hi


def _search_sorted(
    models: Sequence[Model],
    neighborhood: Neighborhood,
    min_distance: float,
    min_span: float,
    models_used: int,
    settings: SettingsRegistry,
) -> ThresholdSearch:
    maximum = neighborhood.maximum_distance(models[0])

    def build(max_distance: float) -> BarrierForest:
        return _flood(models, neighborhood, max_distance, models_used,
                      min_distance, False, settings)

    logger.debug("Approximating smallest neighbor threshold that results in a single tree")
    lower = _bisect(min(min_distance, maximum), maximum, min_span,
                    lambda d: build(d).number_of_trees == 1, "1 tree")

    logger.debug("Approximating smallest neighbor threshold that results in a single leaf")
    upper = _bisect(lower, maximum, min_span,
                    lambda d: build(d).number_of_leaves == 1, "1 leaf")
    return ThresholdSearch(lower, upper)


def search_neighbor_threshold(
    models: Iterable[Model],
    neighborhood: Neighborhood,
    min_distance: float = 0.0,
    *,
    min_span: Optional[float] = None,
    settings: Optional[SettingsRegistry] = None,
) -> ThresholdSearch:
    """Bracket the useful neighbor-threshold range for flooding.

    Models are pruned at *min_distance* and sorted as in
    :func:`construct_from_trajectory`, then two bisections run over
    ``[min_distance, neighborhood.maximum_distance(models[0])]``:

    * ``lower``: smallest threshold that yields a single tree
    * ``upper``: smallest threshold (``>= lower``) that yields a single leaf

    Each bracket is narrowed until it is shorter than *min_span*
    (default ``search.min_span``).  Both returned values are known to
    satisfy their condition unless a warning was logged.
    """
    settings = resolve_settings(settings)
    if models is None:
        raise TypeError("models is None")
    if neighborhood is None:
        raise TypeError("neighborhood is None")
    if min_distance < 0:
        raise ValueError(f"min_distance must be >= 0, got {min_distance}")
    if min_span is None:
        min_span = settings["search.min_span"]
    if min_span <= 0:
        raise ValueError(f"min_span must be > 0, got {min_span}")

    ordered, offered = _prepare_trajectory(models, neighborhood, min_distance, settings)
    if not ordered:
        raise ValueError("no models to search over")
    return _search_sorted(ordered, neighborhood, min_distance, min_span,
                          offered, settings)


def threshold_profile(
    models: Iterable[Model],
    neighborhood: Neighborhood,
    upper: float,
    steps: Optional[int] = None,
    *,
    min_distance: float = 0.0,
    settings: Optional[SettingsRegistry] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Tree and leaf counts at ``steps + 1`` thresholds in ``[0, upper]``.

    Returns
    -------
    thresholds, n_trees, n_leaves : ndarray
    """
    settings = resolve_settings(settings)
    if steps is None:
        steps = int(settings["search.profile_steps"])
    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")
    if upper < 0 or math.isnan(upper):
        raise ValueError(f"upper must be >= 0, got {upper}")

    ordered, offered = _prepare_trajectory(models, neighborhood, min_distance, settings)
    if not ordered:
        raise ValueError("no models to profile")

    logger.debug("Calculating neighbor-threshold profile")
    thresholds = np.linspace(0.0, upper, steps + 1)
    n_trees = np.zeros(steps + 1, dtype=int)
    n_leaves = np.zeros(steps + 1, dtype=int)
    for k, value in enumerate(thresholds):
        forest = _flood(ordered, neighborhood, float(value), offered,
                        min_distance, False, settings)
        n_trees[k] = forest.number_of_trees
        n_leaves[k] = forest.number_of_leaves
    return thresholds, n_trees, n_leaves
