"""
Mean-reverting diffusion processes.

Provides:
- Ornstein-Uhlenbeck process
- Extended OU process with deterministic forcing and three expectation schemes
- Path generation driven by Brownian generator factories
"""

from rates_mc.processes.ornstein_uhlenbeck import (
    Discretization,
    ExtendedOrnsteinUhlenbeckProcess,
    OrnsteinUhlenbeckProcess,
)
from rates_mc.processes.ou_paths import OUPathResult, generate_extended_ou_paths

__all__ = [
    "Discretization",
    "ExtendedOrnsteinUhlenbeckProcess",
    "OrnsteinUhlenbeckProcess",
    "OUPathResult",
    "generate_extended_ou_paths",
]
