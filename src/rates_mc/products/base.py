"""
Base classes for pathwise market-model products.

A pathwise product walks a simulated curve-state trajectory one evolution
step at a time and emits cash flows together with their derivatives with
respect to every forward rate, so Monte Carlo Greeks can be computed along
the path without bumping.

See: Glasserman & Zhao (1999) "Fast Greeks by simulation in forward LIBOR models"
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np

from rates_mc.models.curve_state import LMMCurveState
from rates_mc.models.evolution import EvolutionDescription


class ProductKind(Enum):
    """Pathwise product variant tag."""

    CAPLET = "caplet"
    DEFLATED_CAPLET = "deflated_caplet"
    DEFLATED_CAP = "deflated_cap"


@dataclass
class PathwiseCashFlow:
    """
    Cash flow emitted during one evolution step.

    Attributes
    ----------
    time_index : int
        Index into the product's possible_cash_flow_times()
    amount : float
        Cash-flow value (deflated if the product says so)
    derivatives : np.ndarray
        d(amount)/d(f_j) for every forward rate j, shape (n_rates,).
        Entries for rates not resolved by the emitting step are zero.
    """

    time_index: int
    amount: float
    derivatives: np.ndarray

    @classmethod
    def empty(cls, number_of_rates: int) -> "PathwiseCashFlow":
        """Zero cash flow sized for number_of_rates."""
        return cls(time_index=0, amount=0.0, derivatives=np.zeros(number_of_rates))

    def accumulate(self, other: "PathwiseCashFlow") -> None:
        """Add another cash flow's amount and derivatives into this one."""
        self.amount += other.amount
        self.derivatives += other.derivatives


def make_cash_flow_buffers(
    product: "PathwiseMultiProduct",
) -> tuple[np.ndarray, list[list[PathwiseCashFlow]]]:
    """
    Preallocate per-step output structures for a product.

    Returns
    -------
    tuple[np.ndarray, list[list[PathwiseCashFlow]]]
        (counts, cash_flows) where counts has shape (number_of_products(),)
        and cash_flows[p] holds max_number_of_cash_flows_per_product_per_step()
        slots for product p
    """
    n_products = product.number_of_products()
    n_slots = product.max_number_of_cash_flows_per_product_per_step()
    n_rates = product.evolution().number_of_rates
    counts = np.zeros(n_products, dtype=int)
    cash_flows = [
        [PathwiseCashFlow.empty(n_rates) for _ in range(n_slots)]
        for _ in range(n_products)
    ]
    return counts, cash_flows


class PathwiseMultiProduct(ABC):
    """
    Abstract base class for pathwise multi-products.

    A multi-product prices number_of_products() payoffs in one pass. All
    implementations must:
    1. Be reset() before each path
    2. Receive next_time_step() calls in increasing step order
    3. Report True from next_time_step() exactly at the terminal step
    4. Hold no randomness: identical curve states give identical flows

    Subclasses: PathwiseMultiCaplet, PathwiseMultiDeflatedCaplet,
    PathwiseMultiDeflatedCap
    """

    kind: ProductKind

    @abstractmethod
    def evolution(self) -> EvolutionDescription:
        """Simulation grid the product was built on."""
        pass

    @abstractmethod
    def suggested_numeraires(self) -> list[int]:
        """Recommended numeraire bond index for each step."""
        pass

    @abstractmethod
    def possible_cash_flow_times(self) -> np.ndarray:
        """All times at which the product may pay."""
        pass

    @abstractmethod
    def number_of_products(self) -> int:
        """Number of payoffs priced simultaneously."""
        pass

    @abstractmethod
    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        """Upper bound on flows any single payoff emits in one step."""
        pass

    @abstractmethod
    def already_deflated(self) -> bool:
        """Whether amounts are already expressed in numeraire units."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Put the product at the start of a path."""
        pass

    @abstractmethod
    def next_time_step(
        self,
        current_state: LMMCurveState,
        cash_flow_counts: np.ndarray,
        cash_flows: list[list[PathwiseCashFlow]],
    ) -> bool:
        """
        Process one evolution step.

        Parameters
        ----------
        current_state : LMMCurveState
            Curve state reached at this step
        cash_flow_counts : np.ndarray
            Per-product number of flows emitted this step (overwritten)
        cash_flows : list[list[PathwiseCashFlow]]
            Per-product flow slots; the first cash_flow_counts[p] entries of
            cash_flows[p] are valid after the call

        Returns
        -------
        bool
            True if the path is finished
        """
        pass

    def clone(self) -> "PathwiseMultiProduct":
        """
        Independent copy for another simulation worker.

        Read-only schedule arrays are shared; path position and scratch
        buffers are copied.
        """
        memo: dict[int, object] = {}
        _share_read_only_arrays(self, memo)
        return copy.deepcopy(self, memo)


def _share_read_only_arrays(product: PathwiseMultiProduct, memo: dict[int, object]) -> None:
    for value in vars(product).values():
        if isinstance(value, np.ndarray) and not value.flags.writeable:
            memo[id(value)] = value
        elif isinstance(value, PathwiseMultiProduct):
            _share_read_only_arrays(value, memo)
