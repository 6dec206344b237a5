"""
Frozen configuration settings for rate-model simulation.

All configuration is immutable (frozen dataclasses) to ensure reproducibility.
Tolerances live in config/tolerances.py.
"""

import os
from dataclasses import dataclass

from rates_mc.config.tolerances import INTEGRATION_TOLERANCE

# =============================================================================
# Simulation Configuration
# =============================================================================

def _resolve_seed() -> int:
    """
    Resolve the default random seed with environment variable override.

    Priority:
    1. RATES_MC_SEED environment variable (if set)
    2. Default: 42

    Returns
    -------
    int
        Seed used by generator factories when none is given
    """
    env_seed = os.environ.get("RATES_MC_SEED")
    if env_seed:
        return int(env_seed)
    return 42


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable path-simulation configuration.

    Attributes
    ----------
    seed : int
        Default seed for generator factories. Override with RATES_MC_SEED.
    sobol_scramble : bool
        Whether Sobol generators apply Owen scrambling by default
    """

    seed: int = None  # type: ignore[assignment]  # Set in __post_init__
    sobol_scramble: bool = True

    def __post_init__(self) -> None:
        """Initialize seed using resolver function."""
        # Frozen dataclass workaround: use object.__setattr__
        if self.seed is None:
            object.__setattr__(self, "seed", _resolve_seed())


# =============================================================================
# Diffusion Process Configuration
# =============================================================================

@dataclass(frozen=True)
class ProcessConfig:
    """
    Immutable diffusion-process configuration.

    Attributes
    ----------
    integration_tolerance : float
        Absolute tolerance of the adaptive quadrature scheme
    max_integration_evaluations : int
        Integrand evaluation budget of the adaptive quadrature scheme
    default_discretization : str
        Name of the expectation scheme used when none is given
    """

    integration_tolerance: float = INTEGRATION_TOLERANCE
    max_integration_evaluations: int = 100_000
    default_discretization: str = "midpoint"


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from rates_mc.config.settings import SETTINGS
    >>> SETTINGS.process.max_integration_evaluations
    100000
    """

    simulation: SimulationConfig = SimulationConfig()
    process: ProcessConfig = ProcessConfig()


# Singleton instance - import this
SETTINGS = Settings()
