"""Settings — tunable numbers for construction and search.

Every algorithm entry point takes an optional ``settings=`` registry
and passes it on to the loops it runs (pruning, neighbor calculation,
pair connection), so one registry controls a whole construction run.
Explicit keyword arguments of an entry point win over registry values.

Keys are ``section.name`` strings; values are floats and never
negative.

Usage
-----
>>> from barrier_forest.settings import DEFAULT_SETTINGS
>>> quiet = DEFAULT_SETTINGS.replace({"progress.pair_operations": math.inf})
>>> forest = construct_from_minima(minima, StepConnector(), settings=quiet)
"""

from __future__ import annotations

import math
from typing import Dict, Optional

__all__ = [
    "SettingsRegistry",
    "DEFAULT_SETTINGS",
    "resolve_settings",
]


# ═══════════════════════════════════════════════════════════════════
# SettingsRegistry
# ═══════════════════════════════════════════════════════════════════

class SettingsRegistry:
    """Read-only ``{"section.name": float}`` lookup.

    Parameters
    ----------
    data : dict[str, float]
    name : str, optional
        Label shown in ``repr`` (``"production"`` for the defaults).
    """

    def __init__(self, data: Dict[str, float], *, name: str = "custom"):
        self._data: Dict[str, float] = {k: float(v) for k, v in data.items()}
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, key: str) -> float:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __setitem__(self, key: str, value: float):
        raise TypeError(f"cannot set {key!r}: settings are read-only, use replace()")

    def __repr__(self) -> str:
        return f"SettingsRegistry({self._name!r}, {len(self._data)} keys)"

    def replace(self, overrides: Dict[str, float], *,
                name: Optional[str] = None) -> "SettingsRegistry":
        """Copy with *overrides* applied.

        Raises
        ------
        KeyError
            For a key this registry does not define.
        ValueError
            For a negative or NaN value.
        """
        merged = dict(self._data)
        for key, value in overrides.items():
            if key not in self._data:
                raise KeyError(f"no setting named {key!r}")
            value = float(value)
            if math.isnan(value) or value < 0:
                raise ValueError(f"{key} must be >= 0, got {value}")
            merged[key] = value
        return SettingsRegistry(merged, name=name or f"{self._name}*")


# ═══════════════════════════════════════════════════════════════════
# DEFAULT_SETTINGS
# ═══════════════════════════════════════════════════════════════════

DEFAULT_SETTINGS: SettingsRegistry = SettingsRegistry({

    # tolerance of clean() and of the trajectory fitness sort
    "numeric.epsilon": 1e-10,

    # batch pruning of minima before pairwise merging (0 disables)
    "pruning.min_distance": 0.5,

    # StepConnector walk
    "connector.step_size": math.radians(5),
    "connector.minimum_step_size": 1e-10,

    "construction.energy_threshold": math.inf,

    # neighbor-threshold bisection and profile
    "search.min_span": 0.02,
    "search.profile_steps": 25,

    # O(n²) loops log percentages above this many pairs
    "progress.pair_operations": 2_500_000,
    # streaming pruning logs every N offered models
    "progress.conformations": 100_000,
}, name="production")


def resolve_settings(settings: Optional[SettingsRegistry]) -> SettingsRegistry:
    """*settings*, or :data:`DEFAULT_SETTINGS` when ``None``."""
    return DEFAULT_SETTINGS if settings is None else settings
