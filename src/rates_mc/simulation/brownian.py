"""
Brownian increment generators for market-model simulation.

A BrownianGenerator hands out one path's worth of standard-normal increments,
one evolution step at a time. Generators are stateful and belong to exactly
one simulation worker; a BrownianGeneratorFactory creates fresh, independent
generators for a fixed (factors, steps) configuration.

Implementations:
- MTBrownianGenerator: pseudo-random normals (NumPy PCG64)
- SobolBrownianGenerator: scrambled Sobol points mapped through the normal
  inverse CDF, one point of dimension factors * steps per path

[T1] Each call to next_step returns a weight that multiplies the path
estimator; plain pseudo-random and quasi-random schemes return 1.0.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 5
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.stats import norm, qmc

from rates_mc.config.settings import SETTINGS
from rates_mc.errors import ContractViolationError, UsageProtocolError

logger = logging.getLogger(__name__)


def _check_dimensions(factors: int, steps: int) -> None:
    if factors <= 0:
        raise ContractViolationError(f"CRITICAL: factors must be > 0, got {factors}")
    if steps <= 0:
        raise ContractViolationError(f"CRITICAL: steps must be > 0, got {steps}")


class BrownianGenerator(ABC):
    """
    Abstract generator of Gaussian increments for one path at a time.

    Calling protocol per path:
    1. next_path() to start the path
    2. next_step(buffer) exactly number_of_steps() times

    Subclasses implement _draw(); the base class enforces the protocol.
    """

    def __init__(self, factors: int, steps: int):
        _check_dimensions(factors, steps)
        self._factors = factors
        self._steps = steps
        self._current_step = 0

    def number_of_factors(self) -> int:
        """Number of Brownian factors per step."""
        return self._factors

    def number_of_steps(self) -> int:
        """Number of steps per path."""
        return self._steps

    def next_step(self, output: np.ndarray) -> float:
        """
        Fill output with one step of standard-normal draws.

        Parameters
        ----------
        output : np.ndarray
            Caller buffer, shape (number_of_factors(),). Overwritten in place.

        Returns
        -------
        float
            Weight for this step

        Raises
        ------
        UsageProtocolError
            If the buffer has the wrong shape or the path is exhausted
        """
        if output.shape != (self._factors,):
            raise UsageProtocolError(
                f"CRITICAL: buffer must have shape ({self._factors},), got {output.shape}"
            )
        if self._current_step >= self._steps:
            raise UsageProtocolError(
                f"CRITICAL: all {self._steps} steps of the path were drawn; "
                f"call next_path() first"
            )
        weight = self._draw(self._current_step, output)
        self._current_step += 1
        return weight

    def next_path(self) -> float:
        """
        Start a new path.

        Returns
        -------
        float
            Weight for the path
        """
        self._current_step = 0
        return self._start_path()

    @abstractmethod
    def _draw(self, step: int, output: np.ndarray) -> float:
        """Write the draws for a step into output and return its weight."""
        pass

    @abstractmethod
    def _start_path(self) -> float:
        """Prepare the next path and return its weight."""
        pass


class BrownianGeneratorFactory(ABC):
    """Abstract factory for independent BrownianGenerator instances."""

    @abstractmethod
    def create(self, factors: int, steps: int) -> BrownianGenerator:
        """
        Create a new generator.

        Parameters
        ----------
        factors : int
            Number of factors per step
        steps : int
            Number of steps per path

        Returns
        -------
        BrownianGenerator
            Fresh generator sharing no mutable state with earlier ones
        """
        pass


class MTBrownianGenerator(BrownianGenerator):
    """
    Pseudo-random Brownian generator.

    Parameters
    ----------
    factors : int
        Number of factors per step
    steps : int
        Number of steps per path
    seed : int or np.random.SeedSequence, optional
        Seed for reproducibility

    Examples
    --------
    >>> gen = MTBrownianGenerator(factors=3, steps=10, seed=42)
    >>> buffer = np.empty(3)
    >>> gen.next_path()
    1.0
    >>> gen.next_step(buffer)
    1.0
    """

    def __init__(self, factors: int, steps: int, seed=None):
        super().__init__(factors, steps)
        self._rng = np.random.default_rng(seed)

    def _draw(self, step: int, output: np.ndarray) -> float:
        output[:] = self._rng.standard_normal(self._factors)
        return 1.0

    def _start_path(self) -> float:
        return 1.0


class MTBrownianGeneratorFactory(BrownianGeneratorFactory):
    """
    Factory for pseudo-random generators.

    Each created generator gets its own child seed spawned from one
    SeedSequence, so generators are reproducible and statistically
    independent.

    Parameters
    ----------
    seed : int, optional
        Root seed. Defaults to SETTINGS.simulation.seed.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = SETTINGS.simulation.seed if seed is None else seed
        self._seed_sequence = np.random.SeedSequence(self.seed)

    def create(self, factors: int, steps: int) -> MTBrownianGenerator:
        child = self._seed_sequence.spawn(1)[0]
        return MTBrownianGenerator(factors, steps, seed=child)


class SobolBrownianGenerator(BrownianGenerator):
    """
    Quasi-random Brownian generator based on Sobol sequences.

    Each path consumes one Sobol point of dimension factors * steps; step k
    reads coordinates [k * factors, (k + 1) * factors). Points are produced
    in blocks whose sizes keep the total drawn a power of two (2**block_log2,
    then doubling), preserving the balance properties of the sequence.

    Parameters
    ----------
    factors : int
        Number of factors per step
    steps : int
        Number of steps per path
    seed : int, optional
        Seed for the scrambling
    scramble : bool, optional
        Owen scrambling. Defaults to SETTINGS.simulation.sobol_scramble.
    block_log2 : int, default 10
        Points are drawn 2**block_log2 at a time
    """

    def __init__(
        self,
        factors: int,
        steps: int,
        seed=None,
        scramble: Optional[bool] = None,
        block_log2: int = 10,
    ):
        super().__init__(factors, steps)
        if block_log2 < 0:
            raise ContractViolationError(f"CRITICAL: block_log2 must be >= 0, got {block_log2}")
        if scramble is None:
            scramble = SETTINGS.simulation.sobol_scramble

        self.dimension = factors * steps
        self._sampler = qmc.Sobol(
            d=self.dimension, scramble=scramble, seed=np.random.default_rng(seed)
        )
        self._block_log2 = block_log2
        self._block = np.empty((0, self.dimension))
        self._block_position = 0
        self._point: Optional[np.ndarray] = None

    def _next_point(self) -> np.ndarray:
        if self._block_position >= self._block.shape[0]:
            generated = self._sampler.num_generated
            # Total drawn must stay a power of two: first block, then doubling
            m = self._block_log2 if generated == 0 else generated.bit_length() - 1
            uniforms = self._sampler.random_base2(m=m)
            # Unscrambled sequences start at the origin
            eps = np.finfo(float).eps
            self._block = norm.ppf(np.clip(uniforms, eps, 1.0 - eps))
            self._block_position = 0
        point = self._block[self._block_position]
        self._block_position += 1
        return point

    def _draw(self, step: int, output: np.ndarray) -> float:
        if self._point is None:
            self._point = self._next_point()
        start = step * self._factors
        output[:] = self._point[start:start + self._factors]
        return 1.0

    def _start_path(self) -> float:
        self._point = self._next_point()
        return 1.0


class SobolBrownianGeneratorFactory(BrownianGeneratorFactory):
    """
    Factory for Sobol generators.

    Parameters
    ----------
    seed : int, optional
        Root seed for scrambling. Defaults to SETTINGS.simulation.seed.
    scramble : bool, optional
        Owen scrambling. Defaults to SETTINGS.simulation.sobol_scramble.
    """

    def __init__(self, seed: Optional[int] = None, scramble: Optional[bool] = None):
        self.seed = SETTINGS.simulation.seed if seed is None else seed
        self.scramble = SETTINGS.simulation.sobol_scramble if scramble is None else scramble
        self._seed_sequence = np.random.SeedSequence(self.seed)

    def create(self, factors: int, steps: int) -> SobolBrownianGenerator:
        child = self._seed_sequence.spawn(1)[0]
        logger.debug(f"Creating Sobol generator: {factors} factors x {steps} steps")
        return SobolBrownianGenerator(factors, steps, seed=child, scramble=self.scramble)
