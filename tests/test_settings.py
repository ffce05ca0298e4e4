"""Tests for the settings registry.

Covers:
1. SettingsRegistry — lookup, read-only, replace
2. DEFAULT_SETTINGS — production values used by the algorithms
"""

import math

import pytest

from barrier_forest.settings import (
    SettingsRegistry, DEFAULT_SETTINGS, resolve_settings,
)


# ═══════════════════════════════════════════════════════════════════
# 1. SettingsRegistry
# ═══════════════════════════════════════════════════════════════════

class TestSettingsRegistry:

    def test_lookup(self):
        reg = SettingsRegistry({"a.b": 1, "a.c": 2.5})
        assert reg["a.b"] == 1.0
        assert isinstance(reg["a.b"], float)
        assert "a.c" in reg
        assert "z.z" not in reg
        with pytest.raises(KeyError):
            _ = reg["z.z"]

    def test_read_only(self):
        reg = SettingsRegistry({"a.b": 1.0})
        with pytest.raises(TypeError, match="read-only"):
            reg["a.b"] = 2.0

    def test_replace_returns_new(self):
        reg = SettingsRegistry({"a.b": 1.0, "a.c": 2.0}, name="base")
        new = reg.replace({"a.b": 5.0})
        assert new["a.b"] == 5.0
        assert new["a.c"] == 2.0
        assert reg["a.b"] == 1.0
        assert new.name == "base*"
        assert reg.replace({"a.b": 2.0}, name="fine").name == "fine"

    def test_replace_unknown_key(self):
        with pytest.raises(KeyError, match="no setting named"):
            SettingsRegistry({"a.b": 1.0}).replace({"x.y": 1.0})

    def test_replace_rejects_negative_and_nan(self):
        reg = SettingsRegistry({"a.b": 1.0})
        with pytest.raises(ValueError):
            reg.replace({"a.b": -0.1})
        with pytest.raises(ValueError):
            reg.replace({"a.b": math.nan})

    def test_resolve(self):
        reg = SettingsRegistry({"a.b": 1.0})
        assert resolve_settings(reg) is reg
        assert resolve_settings(None) is DEFAULT_SETTINGS


# ═══════════════════════════════════════════════════════════════════
# 2. DEFAULT_SETTINGS
# ═══════════════════════════════════════════════════════════════════

class TestDefaultSettings:

    def test_name(self):
        assert DEFAULT_SETTINGS.name == "production"
        assert "production" in repr(DEFAULT_SETTINGS)

    def test_values(self):
        assert DEFAULT_SETTINGS["numeric.epsilon"] == 1e-10
        assert DEFAULT_SETTINGS["pruning.min_distance"] == 0.5
        assert DEFAULT_SETTINGS["connector.step_size"] == pytest.approx(math.radians(5))
        assert DEFAULT_SETTINGS["construction.energy_threshold"] == math.inf
        assert DEFAULT_SETTINGS["search.min_span"] == 0.02
        assert DEFAULT_SETTINGS["search.profile_steps"] == 25
        assert DEFAULT_SETTINGS["progress.pair_operations"] == 2_500_000
        assert DEFAULT_SETTINGS["progress.conformations"] == 100_000
