"""barrier-forest: Barrier Trees and Forests for Molecular Energy Landscapes.

Builds binary merge trees over molecular configurations whose internal
nodes are the lowest barriers (saddles) joining local energy minima,
and measures how rugged the landscape is from them.

Two constructions are provided: pairwise merging of explicit minima
through a connector walk, and flooding (watershed) of a fitness-sorted
trajectory over a neighbor graph.  Forests answer aggregate measures
and reconstruct the shortest neighbor path between two stored
conformations.
"""
from .numeric import EPSILON, compare, is_equal, is_less, is_greater
from .settings import SettingsRegistry, DEFAULT_SETTINGS
from .model import Model, TorsionModel
from .neighborhood import (
    Neighborhood, AngleDifferenceNeighborhood, RmsdAngleDifferenceNeighborhood,
    NeighborStatistics, neighbor_statistics,
)
from .connection import Connector, StepConnector
from .pruning import prune, StreamingPruner, prune_stream

# Data model
from .node import Node, NodeFactory
from .disjoint_set import BasinSet
from .tree import BarrierTree
from .forest import BarrierForest, ForestSummary
from .paths import find_split_node, shortest_path

# Construction
from .construction import (
    Barrier, ThresholdSearch,
    connect_all_minima_pairs, construct_from_minima,
    flooding, construct_from_trajectory,
    search_neighbor_threshold, threshold_profile, create_forest,
)

# Drawing support
from .layout import (
    WeightStructurer,
    Colorer, NodeColorer,
    FixedColorer, RandomColorer, TrajectoryPositionColorer, AdditionalModelsColorer,
    compute_node_positions,
)

__all__ = [
    # Numerics & config
    "EPSILON", "compare", "is_equal", "is_less", "is_greater",
    "SettingsRegistry", "DEFAULT_SETTINGS",
    # External contracts and implementations
    "Model", "TorsionModel",
    "Neighborhood", "AngleDifferenceNeighborhood", "RmsdAngleDifferenceNeighborhood",
    "NeighborStatistics", "neighbor_statistics",
    "Connector", "StepConnector",
    "prune", "StreamingPruner", "prune_stream",
    # Data model
    "Node", "NodeFactory", "BasinSet",
    "BarrierTree", "BarrierForest", "ForestSummary",
    "find_split_node", "shortest_path",
    # Construction
    "Barrier", "ThresholdSearch",
    "connect_all_minima_pairs", "construct_from_minima",
    "flooding", "construct_from_trajectory",
    "search_neighbor_threshold", "threshold_profile", "create_forest",
    # Drawing support
    "WeightStructurer", "Colorer", "NodeColorer",
    "FixedColorer", "RandomColorer", "TrajectoryPositionColorer", "AdditionalModelsColorer",
    "compute_node_positions",
]

__version__ = "0.1.0"
