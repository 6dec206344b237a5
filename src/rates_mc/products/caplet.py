"""
Pathwise caplet strips and caps for market-model simulation.

Rate i resets at step i. Its caplet pays
    [T1] accrual_i * max(f_i - K_i, 0)   at payment_times[i]

and the pathwise derivative with respect to f_i is accrual_i above the
strike, zero below. Derivatives with respect to every other rate vanish.

Deflated variants divide each payoff by the numeraire growth realised over
the accrual period, G_i = P(t_i) / P(t_{i+1}) = 1 + tau_i f_i, so that
    [T1] d/df_i [raw / G_i] = accrual_i / G_i - raw * tau_i / G_i^2

A cash flow is only emitted when the payoff is strictly positive.

See: Glasserman & Zhao (1999) "Fast Greeks by simulation in forward LIBOR models"
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from rates_mc.errors import ContractViolationError, UsageProtocolError
from rates_mc.models.curve_state import LMMCurveState
from rates_mc.models.evolution import EvolutionDescription
from rates_mc.products.base import (
    PathwiseCashFlow,
    PathwiseMultiProduct,
    ProductKind,
    make_cash_flow_buffers,
)

logger = logging.getLogger(__name__)


def _read_only(values: Sequence[float], name: str) -> np.ndarray:
    array = np.array(values, dtype=float)
    if array.ndim != 1:
        raise ContractViolationError(f"CRITICAL: {name} must be one-dimensional")
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class AccrualSchedule:
    """
    Immutable caplet schedule.

    Attributes
    ----------
    evolution : EvolutionDescription
        Grid built from the rate times, one step per rate reset
    accruals : np.ndarray
        Accrual fraction per period, shape (n_rates,)
    payment_times : np.ndarray
        Payment time per period, shape (n_rates,)
    strikes : np.ndarray
        Strike per period, shape (n_rates,)
    """

    evolution: EvolutionDescription
    accruals: np.ndarray
    payment_times: np.ndarray
    strikes: np.ndarray

    @classmethod
    def build(
        cls,
        rate_times: Sequence[float],
        accruals: Sequence[float],
        payment_times: Sequence[float],
        strikes: Union[float, Sequence[float]],
    ) -> "AccrualSchedule":
        """
        Validate inputs and build a schedule.

        Parameters
        ----------
        rate_times : sequence of float
            Strictly increasing rate times, length n_rates + 1
        accruals : sequence of float
            Non-negative accrual fractions, length n_rates
        payment_times : sequence of float
            Payment times, length n_rates, each not before its reset time
        strikes : float or sequence of float
            Single strike or one strike per period

        Raises
        ------
        ContractViolationError
            If lengths are inconsistent or times are out of order
        """
        evolution = EvolutionDescription(rate_times=rate_times)
        n_rates = evolution.number_of_rates

        accruals = _read_only(accruals, "accruals")
        payment_times = _read_only(payment_times, "payment_times")
        if np.ndim(strikes) == 0:
            strikes = _read_only(np.full(n_rates, float(strikes)), "strikes")
        else:
            strikes = _read_only(strikes, "strikes")

        for name, values in (
            ("accruals", accruals),
            ("payment_times", payment_times),
            ("strikes", strikes),
        ):
            if values.size != n_rates:
                raise ContractViolationError(
                    f"CRITICAL: {name} must have {n_rates} entries (one per rate), "
                    f"got {values.size}"
                )

        if np.any(accruals < 0.0):
            raise ContractViolationError(
                f"CRITICAL: accruals must be >= 0, got {accruals.min()}"
            )
        reset_times = evolution.rate_times[:-1]
        if np.any(payment_times < reset_times):
            bad = int(np.argmax(payment_times < reset_times))
            raise ContractViolationError(
                f"CRITICAL: payment time {payment_times[bad]} precedes "
                f"reset time {reset_times[bad]} of rate {bad}"
            )

        logger.debug(f"Built caplet schedule with {n_rates} periods")
        return cls(
            evolution=evolution,
            accruals=accruals,
            payment_times=payment_times,
            strikes=strikes,
        )

    def __deepcopy__(self, memo: dict) -> "AccrualSchedule":
        # Immutable: copies share the schedule
        return self

    @property
    def number_of_rates(self) -> int:
        """Number of caplet periods."""
        return self.evolution.number_of_rates


def caplet_payoff(rate: float, accrual: float, strike: float) -> float:
    """
    Undiscounted caplet payoff.

    [T1] accrual * max(rate - strike, 0)

    Parameters
    ----------
    rate : float
        Reset value of the forward rate
    accrual : float
        Accrual fraction of the period
    strike : float
        Caplet strike

    Returns
    -------
    float
        Payoff paid at the end of the period
    """
    return accrual * max(rate - strike, 0.0)


def _check_not_finished(current_index: int, n_rates: int) -> None:
    if current_index >= n_rates:
        raise UsageProtocolError(
            f"CRITICAL: path already finished after {n_rates} steps; call reset() first"
        )


class PathwiseMultiCaplet(PathwiseMultiProduct):
    """
    Strip of caplets with undiscounted pathwise cash flows.

    One product per caplet; caplet i fixes at step i and pays at
    payment_times[i].

    Parameters
    ----------
    rate_times : sequence of float
        Rate times, length n_rates + 1
    accruals : sequence of float
        Accrual fractions, length n_rates
    payment_times : sequence of float
        Payment times, length n_rates
    strikes : sequence of float
        Strike per caplet, length n_rates

    Examples
    --------
    >>> product = PathwiseMultiCaplet(
    ...     rate_times=[0.5, 1.0, 1.5],
    ...     accruals=[0.5, 0.5],
    ...     payment_times=[1.0, 1.5],
    ...     strikes=[0.04, 0.04],
    ... )
    >>> product.number_of_products()
    2
    """

    kind = ProductKind.CAPLET

    def __init__(
        self,
        rate_times: Sequence[float],
        accruals: Sequence[float],
        payment_times: Sequence[float],
        strikes: Sequence[float],
    ):
        if np.ndim(strikes) == 0:
            raise ContractViolationError(
                "CRITICAL: strikes must give one strike per caplet"
            )
        self.schedule = AccrualSchedule.build(rate_times, accruals, payment_times, strikes)
        self.current_index = 0

    def evolution(self) -> EvolutionDescription:
        return self.schedule.evolution

    def suggested_numeraires(self) -> list[int]:
        return [i + 1 for i in range(self.schedule.number_of_rates)]

    def possible_cash_flow_times(self) -> np.ndarray:
        return self.schedule.payment_times

    def number_of_products(self) -> int:
        return self.schedule.number_of_rates

    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        return 1

    def already_deflated(self) -> bool:
        return False

    def reset(self) -> None:
        self.current_index = 0

    def next_time_step(
        self,
        current_state: LMMCurveState,
        cash_flow_counts: np.ndarray,
        cash_flows: list[list[PathwiseCashFlow]],
    ) -> bool:
        n_rates = self.schedule.number_of_rates
        _check_not_finished(self.current_index, n_rates)

        i = self.current_index
        accrual = self.schedule.accruals[i]
        payoff = caplet_payoff(current_state.forward_rate(i), accrual, self.schedule.strikes[i])

        cash_flow_counts[:] = 0
        if payoff > 0.0:
            flow = cash_flows[i][0]
            flow.time_index = i
            flow.amount = payoff
            flow.derivatives[:] = 0.0
            flow.derivatives[i] = accrual
            cash_flow_counts[i] = 1

        self.current_index += 1
        return self.current_index == n_rates


class PathwiseMultiDeflatedCaplet(PathwiseMultiProduct):
    """
    Strip of caplets whose cash flows are deflated along the path.

    Each payoff is divided by the numeraire growth 1 + tau_i f_i realised
    over its accrual period before emission, and the derivative vector is
    the exact derivative of the deflated amount.

    Parameters
    ----------
    rate_times : sequence of float
        Rate times, length n_rates + 1
    accruals : sequence of float
        Accrual fractions, length n_rates
    payment_times : sequence of float
        Payment times, length n_rates
    strikes : float or sequence of float
        Common strike, or one strike per caplet
    """

    kind = ProductKind.DEFLATED_CAPLET

    def __init__(
        self,
        rate_times: Sequence[float],
        accruals: Sequence[float],
        payment_times: Sequence[float],
        strikes: Union[float, Sequence[float]],
    ):
        self.schedule = AccrualSchedule.build(rate_times, accruals, payment_times, strikes)
        self.current_index = 0

    def evolution(self) -> EvolutionDescription:
        return self.schedule.evolution

    def suggested_numeraires(self) -> list[int]:
        return [i + 1 for i in range(self.schedule.number_of_rates)]

    def possible_cash_flow_times(self) -> np.ndarray:
        return self.schedule.payment_times

    def number_of_products(self) -> int:
        return self.schedule.number_of_rates

    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        return 1

    def already_deflated(self) -> bool:
        return True

    def reset(self) -> None:
        self.current_index = 0

    def next_time_step(
        self,
        current_state: LMMCurveState,
        cash_flow_counts: np.ndarray,
        cash_flows: list[list[PathwiseCashFlow]],
    ) -> bool:
        n_rates = self.schedule.number_of_rates
        _check_not_finished(self.current_index, n_rates)

        i = self.current_index
        accrual = self.schedule.accruals[i]
        payoff = caplet_payoff(current_state.forward_rate(i), accrual, self.schedule.strikes[i])

        cash_flow_counts[:] = 0
        if payoff > 0.0:
            tau = current_state.rate_taus()[i]
            growth = current_state.discount_ratio(i, i + 1)

            flow = cash_flows[i][0]
            flow.time_index = i
            flow.amount = payoff / growth
            flow.derivatives[:] = 0.0
            flow.derivatives[i] = accrual / growth - payoff * tau / growth**2
            cash_flow_counts[i] = 1

        self.current_index += 1
        return self.current_index == n_rates


class PathwiseMultiDeflatedCap(PathwiseMultiProduct):
    """
    Several caps priced at once from one deflated caplet strip.

    Cap k covers caplets [start_k, end_k). Each step the inner strip is
    advanced and its flows are summed, amount and derivatives, into every
    cap whose range contains the fixing caplet. Ranges may overlap; an
    overlapping caplet contributes in full to each cap that contains it.

    Parameters
    ----------
    rate_times : sequence of float
        Rate times, length n_rates + 1
    accruals : sequence of float
        Accrual fractions, length n_rates
    payment_times : sequence of float
        Payment times, length n_rates
    strike : float
        Common strike of all caplets
    starts_and_ends : sequence of (int, int)
        Caplet index ranges, 0 <= start < end <= n_rates

    Examples
    --------
    >>> cap = PathwiseMultiDeflatedCap(
    ...     rate_times=[0.5, 1.0, 1.5, 2.0],
    ...     accruals=[0.5, 0.5, 0.5],
    ...     payment_times=[1.0, 1.5, 2.0],
    ...     strike=0.04,
    ...     starts_and_ends=[(0, 2), (1, 3)],
    ... )
    >>> cap.number_of_products()
    2
    """

    kind = ProductKind.DEFLATED_CAP

    def __init__(
        self,
        rate_times: Sequence[float],
        accruals: Sequence[float],
        payment_times: Sequence[float],
        strike: float,
        starts_and_ends: Sequence[tuple[int, int]],
    ):
        if np.ndim(strike) != 0:
            raise ContractViolationError("CRITICAL: a cap takes a single strike")
        self.underlying_caplets = PathwiseMultiDeflatedCaplet(
            rate_times, accruals, payment_times, float(strike)
        )
        n_rates = self.underlying_caplets.number_of_products()

        if len(starts_and_ends) == 0:
            raise ContractViolationError("CRITICAL: at least one cap is required")
        ranges = []
        for start, end in starts_and_ends:
            if start < 0:
                raise ContractViolationError(f"CRITICAL: a cap cannot start at {start}")
            if start >= end:
                raise ContractViolationError(
                    f"CRITICAL: a cap must start before it ends, got ({start}, {end})"
                )
            if end > n_rates:
                raise ContractViolationError(
                    f"CRITICAL: a cap must end when the underlying rates do, "
                    f"got end {end} > {n_rates}"
                )
            ranges.append((int(start), int(end)))
        self.starts_and_ends = tuple(ranges)

        coverage = np.zeros(n_rates, dtype=int)
        for start, end in self.starts_and_ends:
            coverage[start:end] += 1
        if np.any(coverage > 1):
            logger.debug(
                f"Overlapping cap ranges: caplets {np.flatnonzero(coverage > 1).tolist()} "
                f"contribute to more than one cap"
            )

        self.current_index = 0
        self._inner_counts, self._inner_flows = make_cash_flow_buffers(self.underlying_caplets)

    def evolution(self) -> EvolutionDescription:
        return self.underlying_caplets.evolution()

    def suggested_numeraires(self) -> list[int]:
        return self.underlying_caplets.suggested_numeraires()

    def possible_cash_flow_times(self) -> np.ndarray:
        return self.underlying_caplets.possible_cash_flow_times()

    def number_of_products(self) -> int:
        return len(self.starts_and_ends)

    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        return 1

    def already_deflated(self) -> bool:
        return True

    def reset(self) -> None:
        self.underlying_caplets.reset()
        self.current_index = 0

    def next_time_step(
        self,
        current_state: LMMCurveState,
        cash_flow_counts: np.ndarray,
        cash_flows: list[list[PathwiseCashFlow]],
    ) -> bool:
        _check_not_finished(self.current_index, self.underlying_caplets.number_of_products())
        done = self.underlying_caplets.next_time_step(
            current_state, self._inner_counts, self._inner_flows
        )

        cash_flow_counts[:] = 0
        for caplet in np.flatnonzero(self._inner_counts):
            for k, (start, end) in enumerate(self.starts_and_ends):
                if not start <= caplet < end:
                    continue
                flow = cash_flows[k][0]
                if cash_flow_counts[k] == 0:
                    flow.time_index = self._inner_flows[caplet][0].time_index
                    flow.amount = 0.0
                    flow.derivatives[:] = 0.0
                    cash_flow_counts[k] = 1
                for j in range(self._inner_counts[caplet]):
                    flow.accumulate(self._inner_flows[caplet][j])

        self.current_index += 1
        return done
