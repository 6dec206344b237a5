"""
Simulation time grid for market-model evolutions.

An EvolutionDescription fixes the rate-reset grid and the times at which the
curve state is evolved. It is built once and shared read-only by every
product and evolver working on the same simulation.

[T1] Rate i accrues over [t_i, t_{i+1}] and resets at t_i; it stops
being "alive" once the evolution has passed t_i.

See: Joshi (2003) "The Concepts and Practice of Mathematical Finance", Ch. 18
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from rates_mc.errors import ContractViolationError, UsageProtocolError


def _read_only(values: Sequence[float]) -> np.ndarray:
    """Copy values into a float array that cannot be mutated."""
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


def check_increasing_times(times: np.ndarray, name: str) -> None:
    """
    Validate a non-empty, strictly increasing, non-negative time sequence.

    Raises
    ------
    ContractViolationError
        If the sequence is empty, decreasing, repeated or negative
    """
    if times.size == 0:
        raise ContractViolationError(f"CRITICAL: {name} must not be empty")
    if times[0] < 0.0:
        raise ContractViolationError(
            f"CRITICAL: {name} must be non-negative, got first time {times[0]}"
        )
    steps = np.diff(times)
    if np.any(steps <= 0.0):
        bad = int(np.argmax(steps <= 0.0))
        raise ContractViolationError(
            f"CRITICAL: {name} must be strictly increasing, "
            f"got {times[bad]} followed by {times[bad + 1]}"
        )


@dataclass(frozen=True, eq=False)
class EvolutionDescription:
    """
    Immutable simulation grid.

    Attributes
    ----------
    rate_times : np.ndarray
        Rate reset/end times, shape (n_rates + 1,)
    evolution_times : np.ndarray
        Times at which the curve state is evolved, shape (n_steps,).
        Defaults to the reset times of all rates, i.e. rate_times[:-1].
    first_alive_rate : np.ndarray
        For each step, index of the first rate that has not reset
        strictly before the step's evolution time
    """

    rate_times: np.ndarray
    evolution_times: Optional[np.ndarray] = None
    first_alive_rate: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        """Validate the grid and derive per-step alive rates."""
        rate_times = _read_only(self.rate_times)
        check_increasing_times(rate_times, "rate_times")
        if rate_times.size < 2:
            raise ContractViolationError(
                f"CRITICAL: rate_times must define at least one rate, got {rate_times.size} time(s)"
            )

        if self.evolution_times is None:
            evolution_times = _read_only(rate_times[:-1])
        else:
            evolution_times = _read_only(self.evolution_times)
        check_increasing_times(evolution_times, "evolution_times")
        if evolution_times[-1] > rate_times[-1]:
            raise ContractViolationError(
                f"CRITICAL: last evolution time {evolution_times[-1]} is after "
                f"the last rate time {rate_times[-1]}"
            )

        first_alive = np.searchsorted(rate_times, evolution_times, side="left")
        first_alive.setflags(write=False)

        # Frozen dataclass workaround: use object.__setattr__
        object.__setattr__(self, "rate_times", rate_times)
        object.__setattr__(self, "evolution_times", evolution_times)
        object.__setattr__(self, "first_alive_rate", first_alive)

    def __deepcopy__(self, memo: dict) -> "EvolutionDescription":
        # Immutable: copies share the grid
        return self

    @property
    def number_of_rates(self) -> int:
        """Number of forward rates on the grid."""
        return self.rate_times.size - 1

    @property
    def number_of_steps(self) -> int:
        """Number of evolution steps."""
        return self.evolution_times.size

    @property
    def rate_taus(self) -> np.ndarray:
        """Accrual lengths t_{i+1} - t_i implied by the rate times."""
        return np.diff(self.rate_times)

    def alive_rates(self, step: int) -> range:
        """Indices of the rates still alive at a given step."""
        if step < 0 or step >= self.number_of_steps:
            raise UsageProtocolError(
                f"CRITICAL: step must be in [0, {self.number_of_steps}), got {step}"
            )
        return range(int(self.first_alive_rate[step]), self.number_of_rates)
