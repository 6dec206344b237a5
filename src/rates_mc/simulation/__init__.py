"""
Path simulation for market models.

Provides:
- Brownian generator contract and factories (pseudo-random, Sobol)
- Single-path driver for pathwise products
"""

from rates_mc.simulation.brownian import (
    BrownianGenerator,
    BrownianGeneratorFactory,
    MTBrownianGenerator,
    MTBrownianGeneratorFactory,
    SobolBrownianGenerator,
    SobolBrownianGeneratorFactory,
)
from rates_mc.simulation.pathwise import (
    StepCashFlows,
    path_totals,
    run_product_path,
)

__all__ = [
    # Generators
    "BrownianGenerator",
    "BrownianGeneratorFactory",
    "MTBrownianGenerator",
    "MTBrownianGeneratorFactory",
    "SobolBrownianGenerator",
    "SobolBrownianGeneratorFactory",
    # Path driver
    "StepCashFlows",
    "path_totals",
    "run_product_path",
]
