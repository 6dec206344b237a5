"""
Forward-rate curve state reached along a simulated path.

[T1] With simply-compounded forwards f_i over [t_i, t_{i+1}]:
    P(t_i) / P(t_{i+1}) = 1 + tau_i * f_i

Only rates from first_valid_index onwards are meaningful; earlier rates have
already reset and are no longer part of the state.
"""

from typing import Sequence

import numpy as np

from rates_mc.errors import ContractViolationError, UsageProtocolError
from rates_mc.models.evolution import check_increasing_times


class LMMCurveState:
    """
    Curve state parameterised by simply-compounded forward rates.

    Parameters
    ----------
    rate_times : sequence of float
        Rate times t_0 < t_1 < ... < t_n, defining n forward rates

    Examples
    --------
    >>> state = LMMCurveState([0.5, 1.0, 1.5])
    >>> state.set_on_forward_rates([0.04, 0.05])
    >>> round(state.discount_ratio(0, 1), 10)  # 1 + 0.5 * 0.04
    1.02
    """

    def __init__(self, rate_times: Sequence[float]):
        times = np.array(rate_times, dtype=float)
        check_increasing_times(times, "rate_times")
        if times.size < 2:
            raise ContractViolationError(
                f"CRITICAL: rate_times must define at least one rate, got {times.size} time(s)"
            )
        times.setflags(write=False)

        self._rate_times = times
        self._taus = np.diff(times)
        self._n_rates = times.size - 1
        self._forward_rates = np.zeros(self._n_rates)
        self._disc_ratios = np.ones(self._n_rates + 1)
        self._first = self._n_rates

    def number_of_rates(self) -> int:
        """Number of forward rates."""
        return self._n_rates

    def rate_times(self) -> np.ndarray:
        """Rate times defining the forwards."""
        return self._rate_times

    def rate_taus(self) -> np.ndarray:
        """Accrual fractions of each forward."""
        return self._taus

    def first_valid_index(self) -> int:
        """First rate index that has been set on this state."""
        return self._first

    def set_on_forward_rates(
        self,
        rates: Sequence[float],
        first_valid_index: int = 0,
    ) -> None:
        """
        Set the state from forward rates.

        Parameters
        ----------
        rates : sequence of float
            Forward rates, length n_rates (entries before first_valid_index
            are ignored)
        first_valid_index : int, default 0
            First rate still alive
        """
        rates = np.asarray(rates, dtype=float)
        if rates.shape != (self._n_rates,):
            raise ContractViolationError(
                f"CRITICAL: expected {self._n_rates} forward rates, got shape {rates.shape}"
            )
        if first_valid_index < 0 or first_valid_index >= self._n_rates:
            raise ContractViolationError(
                f"CRITICAL: first_valid_index must be in [0, {self._n_rates}), "
                f"got {first_valid_index}"
            )

        self._first = first_valid_index
        self._forward_rates[:] = rates
        self._disc_ratios[:] = 1.0
        # P(t_i) / P(t_n), built backwards from the terminal bond
        growth = 1.0 + self._taus[first_valid_index:] * rates[first_valid_index:]
        self._disc_ratios[first_valid_index:-1] = np.cumprod(growth[::-1])[::-1]

    def _check_index(self, i: int) -> None:
        if i < self._first or i > self._n_rates:
            raise UsageProtocolError(
                f"CRITICAL: index {i} is outside the valid range "
                f"[{self._first}, {self._n_rates}] of the curve state"
            )

    def forward_rate(self, i: int) -> float:
        """Forward rate f_i."""
        if i == self._n_rates:
            raise UsageProtocolError(f"CRITICAL: no forward rate with index {i}")
        self._check_index(i)
        return float(self._forward_rates[i])

    def forward_rates(self) -> np.ndarray:
        """Copy of all forward rates (stale entries before first_valid_index)."""
        return self._forward_rates.copy()

    def discount_ratio(self, i: int, j: int) -> float:
        """
        Ratio of discount bonds P(t_i) / P(t_j).

        Parameters
        ----------
        i, j : int
            Bond indices in [first_valid_index, n_rates]
        """
        self._check_index(i)
        self._check_index(j)
        return float(self._disc_ratios[i] / self._disc_ratios[j])

    def discount_ratios(self) -> np.ndarray:
        """Copy of P(t_i) / P(t_n) for all bond indices."""
        return self._disc_ratios.copy()

    def clone(self) -> "LMMCurveState":
        """Independent copy of the state."""
        other = LMMCurveState(self._rate_times)
        if self._first < self._n_rates:
            other.set_on_forward_rates(self._forward_rates, self._first)
        return other
