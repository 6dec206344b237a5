"""
Tests for Tolerance Framework and Settings - config/tolerances.py, config/settings.py.

Verifies tolerance values, CLT-based MC tolerance calculations,
the tolerance registry and the frozen settings singleton.
"""

import dataclasses
import math

import numpy as np
import pytest

from rates_mc.config.settings import (
    SETTINGS,
    ProcessConfig,
    SimulationConfig,
    _resolve_seed,
)
from rates_mc.config.tolerances import (
    # Tier 1: Analytical
    ANALYTICAL_TOLERANCE,
    # Tier 3: Finite Difference
    FINITE_DIFFERENCE_BUMP,
    INTEGRATION_TOLERANCE,
    # Tier 4: Stochastic
    MC_10K_TOLERANCE,
    MC_10K_VARIANCE_TOLERANCE,
    PATHWISE_DERIVATIVE_TOLERANCE,
    # Tier 2: Scheme Agreement
    SCHEME_AGREEMENT_TOLERANCE,
    # Registry
    TOLERANCE_REGISTRY,
    get_tolerance,
    mc_tolerance,
)

# =============================================================================
# Tolerance Tiers
# =============================================================================


class TestToleranceTiers:
    """Tiers are ordered from tightest to loosest."""

    def test_analytical_near_machine_precision(self) -> None:
        """Analytical tolerance should be within a few orders of eps."""
        assert ANALYTICAL_TOLERANCE <= 1e-10
        assert ANALYTICAL_TOLERANCE > np.finfo(float).eps

    def test_tier_ordering(self) -> None:
        """Analytical < scheme agreement < MC."""
        assert ANALYTICAL_TOLERANCE < SCHEME_AGREEMENT_TOLERANCE < MC_10K_TOLERANCE

    def test_bump_balances_truncation_and_roundoff(self) -> None:
        """Central-difference bump should be near eps^(1/3)."""
        cube_root_eps = np.finfo(float).eps ** (1.0 / 3.0)  # ~6e-6
        assert cube_root_eps / 100 <= FINITE_DIFFERENCE_BUMP <= cube_root_eps * 100

    def test_pathwise_tolerance_above_roundoff(self) -> None:
        """Derivative tolerance should exceed eps / bump."""
        assert PATHWISE_DERIVATIVE_TOLERANCE > np.finfo(float).eps / FINITE_DIFFERENCE_BUMP


# =============================================================================
# CLT-derived MC tolerance
# =============================================================================


class TestMCTolerance:
    """[T1] tolerance = confidence * sigma / sqrt(N)."""

    def test_10k_matches_constant(self) -> None:
        assert mc_tolerance(10_000) == pytest.approx(MC_10K_TOLERANCE)

    def test_scales_with_sqrt_n(self) -> None:
        assert mc_tolerance(40_000) == pytest.approx(mc_tolerance(10_000) / 2)

    def test_scales_with_sigma(self) -> None:
        assert mc_tolerance(100, sigma=0.5, confidence=2.0) == pytest.approx(0.1)

    def test_variance_tolerance_covers_four_sigma(self) -> None:
        """sd of the sample variance of N normals is ~sqrt(2/N)."""
        assert MC_10K_VARIANCE_TOLERANCE >= 4 * math.sqrt(2 / 10_000)


# =============================================================================
# Registry
# =============================================================================


class TestToleranceRegistry:
    """Dynamic lookup by name."""

    @pytest.mark.parametrize("name", sorted(TOLERANCE_REGISTRY))
    def test_registered_values_positive(self, name: str) -> None:
        assert get_tolerance(name) > 0

    def test_lookup(self) -> None:
        assert get_tolerance("scheme_agreement") == SCHEME_AGREEMENT_TOLERANCE

    def test_unknown_name_lists_available(self) -> None:
        with pytest.raises(KeyError, match="Available: analytical"):
            get_tolerance("nonexistent")


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    """Frozen configuration singleton."""

    def test_settings_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            SETTINGS.process.integration_tolerance = 1.0  # type: ignore[misc]

    def test_process_defaults(self) -> None:
        config = ProcessConfig()
        assert config.integration_tolerance == INTEGRATION_TOLERANCE
        assert config.max_integration_evaluations == 100_000
        assert config.default_discretization == "midpoint"

    def test_explicit_seed_kept(self) -> None:
        assert SimulationConfig(seed=7).seed == 7

    def test_seed_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RATES_MC_SEED", "123")
        assert _resolve_seed() == 123
        assert SimulationConfig().seed == 123

    def test_seed_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RATES_MC_SEED", raising=False)
        assert _resolve_seed() == 42
