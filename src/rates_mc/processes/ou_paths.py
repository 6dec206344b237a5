"""
Path generation for (extended) Ornstein-Uhlenbeck processes.

Paths are built with the exact Gaussian transition
    x(t + dt) = E[x(t + dt) | x(t)] + StdDev * Z
where the conditional mean uses the process's discretization scheme for the
forcing term. Increments come from a BrownianGeneratorFactory, so the same
code runs with pseudo-random or Sobol draws.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from rates_mc.errors import ContractViolationError
from rates_mc.models.evolution import check_increasing_times
from rates_mc.processes.ornstein_uhlenbeck import (
    ExtendedOrnsteinUhlenbeckProcess,
    OrnsteinUhlenbeckProcess,
)
from rates_mc.simulation.brownian import BrownianGeneratorFactory, MTBrownianGeneratorFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class OUPathResult:
    """
    Result of OU path generation.

    Attributes
    ----------
    paths : np.ndarray
        Simulated paths, shape (n_paths, n_steps + 1)
    times : np.ndarray
        Time points, shape (n_steps + 1,)
    weights : np.ndarray
        Product of path and step weights for each path, shape (n_paths,)
    discretization : str
        Expectation scheme used ("exact" for the plain OU process)
    """

    paths: np.ndarray
    times: np.ndarray
    weights: np.ndarray
    discretization: str

    @property
    def n_paths(self) -> int:
        """Number of paths."""
        return self.paths.shape[0]

    @property
    def n_steps(self) -> int:
        """Number of time steps."""
        return self.paths.shape[1] - 1

    @property
    def terminal_values(self) -> np.ndarray:
        """Terminal values of all paths."""
        return self.paths[:, -1]

    def weighted_mean(self) -> np.ndarray:
        """Weighted sample mean at every time point."""
        return np.average(self.paths, axis=0, weights=self.weights)

    def to_frame(self) -> pd.DataFrame:
        """Paths as a DataFrame, one row per path, one column per time."""
        return pd.DataFrame(self.paths, columns=[float(t) for t in self.times])


def generate_extended_ou_paths(
    process: Union[ExtendedOrnsteinUhlenbeckProcess, OrnsteinUhlenbeckProcess],
    times: Sequence[float],
    n_paths: int,
    generator_factory: Optional[BrownianGeneratorFactory] = None,
) -> OUPathResult:
    """
    Simulate paths on a time grid starting from process.x0.

    Parameters
    ----------
    process : ExtendedOrnsteinUhlenbeckProcess or OrnsteinUhlenbeckProcess
        Process to simulate
    times : sequence of float
        Strictly increasing time grid; the first entry is the start time
    n_paths : int
        Number of paths
    generator_factory : BrownianGeneratorFactory, optional
        Source of increments. Defaults to MTBrownianGeneratorFactory().

    Returns
    -------
    OUPathResult
        Simulated paths and weights

    Examples
    --------
    >>> process = ExtendedOrnsteinUhlenbeckProcess(
    ...     speed=1.0, volatility=0.2, x0=0.0, b=lambda t: 0.05
    ... )
    >>> result = generate_extended_ou_paths(process, [0.0, 0.5, 1.0], n_paths=100)
    >>> result.paths.shape
    (100, 3)
    """
    if n_paths <= 0:
        raise ContractViolationError(f"CRITICAL: n_paths must be > 0, got {n_paths}")
    times = np.asarray(times, dtype=float)
    check_increasing_times(times, "times")
    if times.size < 2:
        raise ContractViolationError("CRITICAL: times must contain at least two points")

    if generator_factory is None:
        generator_factory = MTBrownianGeneratorFactory()

    n_steps = times.size - 1
    generator = generator_factory.create(1, n_steps)
    draw = np.empty(1)

    paths = np.empty((n_paths, n_steps + 1))
    paths[:, 0] = process.x0
    weights = np.empty(n_paths)

    for p in range(n_paths):
        weight = generator.next_path()
        x = process.x0
        for k in range(n_steps):
            weight *= generator.next_step(draw)
            dt = times[k + 1] - times[k]
            x = process.evolve(times[k], x, dt, draw[0])
            paths[p, k + 1] = x
        weights[p] = weight

    if isinstance(process, ExtendedOrnsteinUhlenbeckProcess):
        scheme = getattr(process.discretization, "value", process.discretization)
    else:
        scheme = "exact"
    logger.info(f"Generated {n_paths} OU paths over {n_steps} steps ({scheme})")

    return OUPathResult(
        paths=paths,
        times=times,
        weights=weights,
        discretization=str(scheme),
    )
