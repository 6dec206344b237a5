"""
Ornstein-Uhlenbeck moments validated against QuantLib.

[T1] QuantLib's OrnsteinUhlenbeckProcess gives closed-form conditional
moments. With constant forcing b(t) = mu the extended process is the plain
OU process reverting to mu, so every expectation scheme must reproduce
QuantLib's expectation and both must share the same variance.

References
----------
[T1] QuantLib documentation: https://quantlib-python-docs.readthedocs.io/
"""

import pytest

from rates_mc.processes.ornstein_uhlenbeck import (
    Discretization,
    ExtendedOrnsteinUhlenbeckProcess,
    OrnsteinUhlenbeckProcess,
)

# Check if QuantLib is available
try:
    import QuantLib as ql
    QUANTLIB_AVAILABLE = True
except ImportError:
    QUANTLIB_AVAILABLE = False


CASES = [
    # (speed, volatility, level, t0, x0, dt)
    (0.03, 0.015, 0.0, 0.0, 0.02, 1.0),
    (0.03, 0.015, 0.04, 1.0, 0.02, 0.25),
    (0.50, 0.100, 0.05, 0.0, 0.10, 2.0),
    (1.50, 0.200, -0.01, 3.0, 0.03, 0.5),
]


@pytest.mark.validation
@pytest.mark.skipif(not QUANTLIB_AVAILABLE, reason="QuantLib not installed")
class TestOUvsQuantLib:
    """Conditional moments against QuantLib."""

    @pytest.mark.parametrize("speed,volatility,level,t0,x0,dt", CASES)
    def test_plain_ou_moments(self, speed, volatility, level, t0, x0, dt):
        ours = OrnsteinUhlenbeckProcess(speed, volatility, x0, level)
        theirs = ql.OrnsteinUhlenbeckProcess(speed, volatility, x0, level)

        assert ours.expectation(t0, x0, dt) == pytest.approx(
            theirs.expectation(t0, x0, dt), abs=1e-12
        )
        assert ours.variance(t0, x0, dt) == pytest.approx(theirs.variance(t0, x0, dt), rel=1e-10)
        assert ours.std_deviation(t0, x0, dt) == pytest.approx(
            theirs.stdDeviation(t0, x0, dt), rel=1e-10
        )

    @pytest.mark.parametrize("scheme", list(Discretization))
    @pytest.mark.parametrize("speed,volatility,level,t0,x0,dt", CASES)
    def test_constant_forcing_matches_level(self, scheme, speed, volatility, level, t0, x0, dt):
        extended = ExtendedOrnsteinUhlenbeckProcess(
            speed, volatility, x0, lambda t: level, discretization=scheme, int_eps=1e-10
        )
        theirs = ql.OrnsteinUhlenbeckProcess(speed, volatility, x0, level)

        assert extended.expectation(t0, x0, dt) == pytest.approx(
            theirs.expectation(t0, x0, dt), abs=1e-10
        )
        assert extended.variance(t0, x0, dt) == pytest.approx(
            theirs.variance(t0, x0, dt), rel=1e-10
        )
