"""
Centralized pytest fixtures for the rates-mc test suite.

Fixture Categories:
1. Tolerances - Tiered tolerance settings
2. Schedules - Standard semi-annual caplet schedules
3. Curve Paths - Sequences of curve states, one per evolution step
4. Processes - Extended OU process parameters
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pytest

from rates_mc.models.curve_state import LMMCurveState

# =============================================================================
# TOLERANCE TIERS
# =============================================================================

@dataclass(frozen=True)
class ToleranceTiers:
    """
    Tiered tolerance framework for different test types.

    See: src/rates_mc/config/tolerances.py
    """

    # Payoff identities: machine precision
    analytical: float = 1e-12

    # Alternative expectation schemes for affine forcing
    scheme_agreement: float = 1e-6

    # Pathwise derivative vs central finite difference
    finite_difference: float = 1e-7


TOLERANCES = ToleranceTiers()


@pytest.fixture(scope="session")
def tolerances() -> ToleranceTiers:
    """Provide tiered tolerance settings for all tests."""
    return TOLERANCES


# =============================================================================
# CAPLET SCHEDULES
# =============================================================================

@dataclass(frozen=True)
class CapletSchedule:
    """Semi-annual caplet schedule starting in six months."""

    rate_times: tuple[float, ...] = (0.5, 1.0, 1.5, 2.0, 2.5)
    accruals: tuple[float, ...] = (0.5, 0.5, 0.5, 0.5)
    payment_times: tuple[float, ...] = (1.0, 1.5, 2.0, 2.5)
    strikes: tuple[float, ...] = (0.04, 0.04, 0.04, 0.04)

    @property
    def n_rates(self) -> int:
        return len(self.accruals)


@pytest.fixture
def schedule() -> CapletSchedule:
    """Four semi-annual caplets struck at 4%."""
    return CapletSchedule()


# =============================================================================
# CURVE PATHS
# =============================================================================

def build_curve_path(
    rate_times: Sequence[float],
    forwards_by_step: Sequence[Sequence[float]],
) -> list[LMMCurveState]:
    """
    Build one curve state per step; step i has rates i.. alive.

    Parameters
    ----------
    rate_times : sequence of float
        Rate times of the curve
    forwards_by_step : sequence of sequence of float
        Full forward-rate vector observed at each step
    """
    states = []
    for step, forwards in enumerate(forwards_by_step):
        state = LMMCurveState(rate_times)
        state.set_on_forward_rates(forwards, first_valid_index=step)
        states.append(state)
    return states


@pytest.fixture
def forwards_by_step() -> list[list[float]]:
    """
    Forward curves seen along one path.

    Rate i resets at step i with value forwards_by_step[i][i]:
    rate 0 -> 5.0% (ITM), rate 1 -> 3.0% (OTM), rate 2 -> 6.0% (ITM),
    rate 3 -> 4.5% (ITM).
    """
    return [
        [0.050, 0.045, 0.047, 0.049],
        [0.050, 0.030, 0.052, 0.048],
        [0.050, 0.030, 0.060, 0.044],
        [0.050, 0.030, 0.060, 0.045],
    ]


@pytest.fixture
def curve_path(schedule, forwards_by_step) -> list[LMMCurveState]:
    """Curve states for the standard schedule."""
    return build_curve_path(schedule.rate_times, forwards_by_step)


# =============================================================================
# PROCESSES
# =============================================================================

@dataclass(frozen=True)
class OUParams:
    """Extended OU parameters used across process tests."""

    speed: float = 0.03
    volatility: float = 0.015
    x0: float = 0.02


@pytest.fixture
def ou_params() -> OUParams:
    return OUParams()


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator for randomized inputs."""
    return np.random.default_rng(42)


@pytest.fixture
def curve_path_builder():
    """Factory building per-step curve states from forward vectors."""
    return build_curve_path
