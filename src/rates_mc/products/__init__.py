"""
Pathwise products for market-model Monte Carlo.

Each product emits cash flows with their derivatives with respect to every
forward rate, one evolution step at a time.
"""

from rates_mc.products.base import (
    PathwiseCashFlow,
    PathwiseMultiProduct,
    ProductKind,
    make_cash_flow_buffers,
)
from rates_mc.products.caplet import (
    AccrualSchedule,
    PathwiseMultiCaplet,
    PathwiseMultiDeflatedCap,
    PathwiseMultiDeflatedCaplet,
    caplet_payoff,
)

__all__ = [
    # Contract
    "PathwiseCashFlow",
    "PathwiseMultiProduct",
    "ProductKind",
    "make_cash_flow_buffers",
    # Caplets and caps
    "AccrualSchedule",
    "PathwiseMultiCaplet",
    "PathwiseMultiDeflatedCaplet",
    "PathwiseMultiDeflatedCap",
    "caplet_payoff",
]
