"""
Single-path driver for pathwise products.

Walks a product over a precomputed sequence of curve states and collects
the cash flows it emits at each step. Useful for replaying a path, testing
products and debugging evolvers; a full Monte Carlo engine performs the
same loop while evolving the curve state from Brownian increments.
"""

import copy
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from rates_mc.errors import UsageProtocolError
from rates_mc.models.curve_state import LMMCurveState
from rates_mc.products.base import (
    PathwiseCashFlow,
    PathwiseMultiProduct,
    make_cash_flow_buffers,
)


@dataclass(frozen=True)
class StepCashFlows:
    """
    Cash flows emitted by a product during one step.

    Attributes
    ----------
    step : int
        Evolution step index
    counts : np.ndarray
        Number of flows per product, shape (n_products,)
    cash_flows : list[list[PathwiseCashFlow]]
        Emitted flows per product (only valid entries, copied)
    """

    step: int
    counts: np.ndarray
    cash_flows: list[list[PathwiseCashFlow]]

    def amount(self, product_index: int) -> float:
        """Total amount emitted by one product at this step."""
        return float(sum(flow.amount for flow in self.cash_flows[product_index]))


def run_product_path(
    product: PathwiseMultiProduct,
    curve_states: Sequence[LMMCurveState],
) -> list[StepCashFlows]:
    """
    Reset a product and run it over one path of curve states.

    Parameters
    ----------
    product : PathwiseMultiProduct
        Product to drive (reset before the path starts)
    curve_states : sequence of LMMCurveState
        Curve state reached at each evolution step

    Returns
    -------
    list[StepCashFlows]
        One entry per step until the product reports completion

    Raises
    ------
    UsageProtocolError
        If the states run out before the product finishes
    """
    counts, buffers = make_cash_flow_buffers(product)
    product.reset()

    results: list[StepCashFlows] = []
    done = False
    for step, state in enumerate(curve_states):
        done = product.next_time_step(state, counts, buffers)
        emitted = [
            [copy.deepcopy(buffers[p][j]) for j in range(counts[p])]
            for p in range(len(buffers))
        ]
        results.append(StepCashFlows(step=step, counts=counts.copy(), cash_flows=emitted))
        if done:
            break

    if not done:
        raise UsageProtocolError(
            f"CRITICAL: product needs {product.evolution().number_of_steps} steps, "
            f"got {len(curve_states)} curve states"
        )
    return results


def path_totals(
    product: PathwiseMultiProduct,
    steps: Sequence[StepCashFlows],
) -> pd.DataFrame:
    """
    Sum amounts and derivatives per product over a path.

    Parameters
    ----------
    product : PathwiseMultiProduct
        Product that produced the steps
    steps : sequence of StepCashFlows
        Output of run_product_path

    Returns
    -------
    pd.DataFrame
        One row per product; column "amount" plus one column "d_f{j}" per
        forward rate
    """
    n_rates = product.evolution().number_of_rates
    totals = np.zeros((product.number_of_products(), n_rates + 1))
    for step in steps:
        for p, flows in enumerate(step.cash_flows):
            for flow in flows:
                totals[p, 0] += flow.amount
                totals[p, 1:] += flow.derivatives

    columns = ["amount"] + [f"d_f{j}" for j in range(n_rates)]
    return pd.DataFrame(totals, columns=columns)
