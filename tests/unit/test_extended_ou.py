"""
Tests for Ornstein-Uhlenbeck processes.

Tests correctness of:
- Plain OU moments and drift
- Extended OU drift, delegation and expectation schemes
- Error taxonomy (construction, configuration, convergence)
"""

import numpy as np
import pytest

from rates_mc.errors import (
    ConfigurationError,
    ContractViolationError,
    NumericalConvergenceError,
)
from rates_mc.processes.ornstein_uhlenbeck import (
    Discretization,
    ExtendedOrnsteinUhlenbeckProcess,
    OrnsteinUhlenbeckProcess,
)

ALL_SCHEMES = list(Discretization)


class TestOrnsteinUhlenbeckProcess:
    """[T1] dx = a (mu - x) dt + sigma dW."""

    def test_expectation(self):
        process = OrnsteinUhlenbeckProcess(speed=0.5, volatility=0.1, x0=1.0, level=0.2)

        expected = 0.2 + (1.0 - 0.2) * np.exp(-0.5 * 2.0)
        assert process.expectation(0.0, 1.0, 2.0) == pytest.approx(expected)

    def test_variance(self):
        process = OrnsteinUhlenbeckProcess(speed=0.5, volatility=0.1)

        expected = 0.5 * 0.01 / 0.5 * (1.0 - np.exp(-2.0 * 0.5 * 2.0))
        assert process.variance(0.0, 0.0, 2.0) == pytest.approx(expected)
        assert process.std_deviation(0.0, 0.0, 2.0) == pytest.approx(np.sqrt(expected))

    def test_zero_speed_variance_is_brownian(self):
        process = OrnsteinUhlenbeckProcess(speed=0.0, volatility=0.2)

        assert process.variance(0.0, 0.0, 3.0) == pytest.approx(0.04 * 3.0)
        assert process.expectation(0.0, 0.7, 3.0) == pytest.approx(0.7)

    def test_drift_and_diffusion(self):
        process = OrnsteinUhlenbeckProcess(speed=2.0, volatility=0.3, level=1.0)

        assert process.drift(0.0, 0.5) == pytest.approx(1.0)
        assert process.diffusion(0.0, 0.5) == 0.3

    def test_evolve(self):
        process = OrnsteinUhlenbeckProcess(speed=1.0, volatility=0.2)

        mean = process.expectation(0.0, 0.5, 0.25)
        std = process.std_deviation(0.0, 0.5, 0.25)
        assert process.evolve(0.0, 0.5, 0.25, 1.5) == pytest.approx(mean + 1.5 * std)

    @pytest.mark.parametrize("speed,volatility", [(-0.1, 0.1), (0.1, -0.1)])
    def test_negative_parameters(self, speed, volatility):
        with pytest.raises(ContractViolationError):
            OrnsteinUhlenbeckProcess(speed=speed, volatility=volatility)


class TestExtendedOUConstruction:
    """Parameters are validated at construction."""

    def test_negative_speed(self):
        with pytest.raises(ContractViolationError, match="negative speed"):
            ExtendedOrnsteinUhlenbeckProcess(-0.03, 0.015, 0.0, lambda t: 0.0)

    def test_negative_volatility(self):
        with pytest.raises(ContractViolationError, match="negative volatility"):
            ExtendedOrnsteinUhlenbeckProcess(0.03, -0.015, 0.0, lambda t: 0.0)

    def test_non_positive_tolerance(self):
        with pytest.raises(ContractViolationError, match="int_eps"):
            ExtendedOrnsteinUhlenbeckProcess(0.03, 0.015, 0.0, lambda t: 0.0, int_eps=0.0)

    def test_defaults_from_settings(self):
        from rates_mc.config.settings import SETTINGS

        process = ExtendedOrnsteinUhlenbeckProcess(0.03, 0.015, 0.0, lambda t: 0.0)

        assert process.discretization == SETTINGS.process.default_discretization
        assert process.int_eps == SETTINGS.process.integration_tolerance
        assert process.max_evaluations == 100_000

    def test_unknown_scheme_fails_at_use(self):
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.03, 0.015, 0.0, lambda t: 0.0, discretization="simpson"
        )

        with pytest.raises(ConfigurationError, match="unknown discretization scheme 'simpson'"):
            process.expectation(0.0, 0.0, 1.0)

    def test_scheme_by_name(self):
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.5, 0.1, 0.0, lambda t: 1.0, discretization="trapezoidal"
        )

        assert process.expectation(0.0, 0.0, 1.0) == pytest.approx(1.0 - np.exp(-0.5))


class TestExtendedOUDynamics:
    """Drift gets the forcing term; volatility structure is unchanged."""

    def test_drift(self):
        process = ExtendedOrnsteinUhlenbeckProcess(0.5, 0.1, 0.0, lambda t: 2.0 * t)

        assert process.drift(1.5, 0.4) == pytest.approx(-0.5 * 0.4 + 0.5 * 3.0)

    def test_volatility_delegates(self, ou_params):
        process = ExtendedOrnsteinUhlenbeckProcess(
            ou_params.speed, ou_params.volatility, ou_params.x0, np.sin
        )
        plain = OrnsteinUhlenbeckProcess(ou_params.speed, ou_params.volatility, ou_params.x0)

        assert process.diffusion(1.0, 0.3) == plain.diffusion(1.0, 0.3)
        assert process.variance(1.0, 0.3, 0.5) == plain.variance(1.0, 0.3, 0.5)
        assert process.std_deviation(1.0, 0.3, 0.5) == plain.std_deviation(1.0, 0.3, 0.5)
        assert process.x0 == ou_params.x0

    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    def test_zero_forcing_reduces_to_plain_ou(self, scheme):
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.03, 0.015, 0.0, lambda t: 0.0, discretization=scheme
        )
        plain = OrnsteinUhlenbeckProcess(0.03, 0.015, 0.0)

        for t0, x0, dt in [(0.0, 0.01, 1.0), (2.5, -0.3, 0.25), (10.0, 1.2, 5.0)]:
            assert process.expectation(t0, x0, dt) == pytest.approx(
                plain.expectation(t0, x0, dt), abs=1e-14
            )

    @pytest.mark.parametrize("scheme", ALL_SCHEMES)
    def test_constant_forcing_is_exact(self, scheme):
        """[T1] b(t) = c gives E = c + (x0 - c) e^{-a dt} under every scheme."""
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.8, 0.1, 0.0, lambda t: 0.05, discretization=scheme, int_eps=1e-12
        )

        expected = 0.05 + (0.2 - 0.05) * np.exp(-0.8 * 0.5)
        assert process.expectation(1.0, 0.2, 0.5) == pytest.approx(expected, abs=1e-10)

    def test_midpoint_formula(self):
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.5, 0.1, 0.0, lambda t: t**2, discretization=Discretization.MIDPOINT
        )

        expected = 0.3 * np.exp(-0.5) + 1.5**2 * (1.0 - np.exp(-0.5))
        assert process.expectation(1.0, 0.3, 1.0) == pytest.approx(expected)

    def test_trapezoidal_zero_speed(self):
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.0, 0.1, 0.0, lambda t: t, discretization=Discretization.TRAPEZOIDAL
        )

        assert process.expectation(1.0, 0.3, 1.0) == pytest.approx(0.3)

    def test_zero_length_step(self):
        process = ExtendedOrnsteinUhlenbeckProcess(
            0.5, 0.1, 0.0, np.cos, discretization=Discretization.GAUSS_LOBATTO
        )

        assert process.expectation(1.0, 0.3, 0.0) == pytest.approx(0.3)

    def test_quadrature_non_convergence(self):
        process = ExtendedOrnsteinUhlenbeckProcess(
            1.0,
            0.1,
            0.0,
            lambda t: np.sin(1.0 / t),
            discretization=Discretization.GAUSS_LOBATTO,
            int_eps=1e-14,
        )
        process.max_evaluations = 21 * 5

        with pytest.raises(NumericalConvergenceError, match="adaptive quadrature"):
            process.expectation(1e-6, 0.0, 1.0)
