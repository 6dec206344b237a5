"""
Centralized tolerance framework for rate-model simulation.

Tolerance Tiers:
    Tier 1 (Analytical): Closed-form results, machine precision achievable
    Tier 2 (Scheme Agreement): Alternative discretizations of the same quantity
    Tier 3 (Finite Difference): Pathwise derivatives vs bumped revaluation
    Tier 4 (Stochastic): CLT-derived, sample-moment checks

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Glasserman (2003) Ch. 7 - Estimating sensitivities
"""

from typing import Final

import numpy as np

# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================

#: Payoff identities (caplet formula, deflation round-trip, aggregation)
ANALYTICAL_TOLERANCE: Final[float] = 1e-12

#: Default absolute tolerance for the adaptive quadrature expectation scheme
INTEGRATION_TOLERANCE: Final[float] = 1e-4


# =============================================================================
# Tier 2: Scheme Agreement
# =============================================================================

#: Midpoint / trapezoidal / quadrature agreement for affine forcing
SCHEME_AGREEMENT_TOLERANCE: Final[float] = 1e-6


# =============================================================================
# Tier 3: Finite-Difference Tolerances
# =============================================================================

#: Bump size for central finite differences on forward rates
FINITE_DIFFERENCE_BUMP: Final[float] = 1e-6

#: Pathwise derivative vs central finite difference
#: Central difference error is O(h^2) plus roundoff O(eps/h) ~ 1e-10
PATHWISE_DERIVATIVE_TOLERANCE: Final[float] = 1e-7


# =============================================================================
# Tier 4: Stochastic Tolerances (CLT-Derived)
# =============================================================================


def mc_tolerance(n_paths: int, sigma: float = 1.0, confidence: float = 4.0) -> float:
    """
    Calculate CLT-derived Monte Carlo tolerance.

    [T1] Standard error of a sample mean is σ/√N.

    Parameters
    ----------
    n_paths : int
        Number of samples
    sigma : float
        Standard deviation of a single sample (1.0 for standard normals)
    confidence : float
        Number of standard deviations (default 4)

    Returns
    -------
    float
        Tolerance for sample mean vs theoretical mean

    Examples
    --------
    >>> mc_tolerance(10_000)
    0.04
    """
    return float(confidence * sigma / np.sqrt(n_paths))


#: Sample mean of 10,000 standard normals: 4 / sqrt(10000)
MC_10K_TOLERANCE: Final[float] = 0.04

#: Sample variance of 10,000 standard normals (sd of s^2 is ~ sqrt(2/N))
MC_10K_VARIANCE_TOLERANCE: Final[float] = 0.06


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    "analytical": ANALYTICAL_TOLERANCE,
    "integration": INTEGRATION_TOLERANCE,
    "scheme_agreement": SCHEME_AGREEMENT_TOLERANCE,
    "finite_difference_bump": FINITE_DIFFERENCE_BUMP,
    "pathwise_derivative": PATHWISE_DERIVATIVE_TOLERANCE,
    "mc_10k": MC_10K_TOLERANCE,
    "mc_10k_variance": MC_10K_VARIANCE_TOLERANCE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
