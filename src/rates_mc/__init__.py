"""
rates-mc: Monte Carlo path simulation for interest-rate market models.

Quick Start
-----------
>>> from rates_mc import PathwiseMultiDeflatedCap, LMMCurveState, run_product_path
>>> cap = PathwiseMultiDeflatedCap(
...     rate_times=[0.5, 1.0, 1.5, 2.0],
...     accruals=[0.5, 0.5, 0.5],
...     payment_times=[1.0, 1.5, 2.0],
...     strike=0.04,
...     starts_and_ends=[(0, 3)],
... )

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Simulation Grid and Curve State
# =============================================================================
from rates_mc.models.evolution import EvolutionDescription
from rates_mc.models.curve_state import LMMCurveState

# =============================================================================
# Brownian Generators
# =============================================================================
from rates_mc.simulation.brownian import (
    BrownianGenerator,
    BrownianGeneratorFactory,
    MTBrownianGeneratorFactory,
    SobolBrownianGeneratorFactory,
)

# =============================================================================
# Pathwise Products
# =============================================================================
from rates_mc.products import (
    PathwiseCashFlow,
    PathwiseMultiProduct,
    PathwiseMultiCaplet,
    PathwiseMultiDeflatedCaplet,
    PathwiseMultiDeflatedCap,
    ProductKind,
    make_cash_flow_buffers,
)
from rates_mc.simulation.pathwise import run_product_path, path_totals

# =============================================================================
# Diffusion Processes
# =============================================================================
from rates_mc.processes import (
    Discretization,
    ExtendedOrnsteinUhlenbeckProcess,
    OrnsteinUhlenbeckProcess,
    generate_extended_ou_paths,
)

# =============================================================================
# Configuration and Errors
# =============================================================================
from rates_mc.config.settings import SETTINGS
from rates_mc.errors import (
    ConfigurationError,
    ContractViolationError,
    NumericalConvergenceError,
    UsageProtocolError,
)

__all__ = [
    # Version
    "__version__",
    # Grid
    "EvolutionDescription",
    "LMMCurveState",
    # Generators
    "BrownianGenerator",
    "BrownianGeneratorFactory",
    "MTBrownianGeneratorFactory",
    "SobolBrownianGeneratorFactory",
    # Products
    "PathwiseCashFlow",
    "PathwiseMultiProduct",
    "PathwiseMultiCaplet",
    "PathwiseMultiDeflatedCaplet",
    "PathwiseMultiDeflatedCap",
    "ProductKind",
    "make_cash_flow_buffers",
    "run_product_path",
    "path_totals",
    # Processes
    "Discretization",
    "ExtendedOrnsteinUhlenbeckProcess",
    "OrnsteinUhlenbeckProcess",
    "generate_extended_ou_paths",
    # Config
    "SETTINGS",
    # Errors
    "ConfigurationError",
    "ContractViolationError",
    "NumericalConvergenceError",
    "UsageProtocolError",
]
