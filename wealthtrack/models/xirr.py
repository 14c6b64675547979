"""
XIRR (extended internal rate of return) calculations.

This module solves for the annualised rate that discounts an irregularly dated
series of cash flows to a net present value of zero. The solver is a
Newton-Raphson iteration over numpy arrays, and it never raises: degenerate
ledgers (no flows, one flow, flows of a single sign) produce a clamped
best-effort rate with the stop reason recorded on the result.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .ledger import CashFlow, Transaction
from .time_grid import year_fraction

logger = logging.getLogger(__name__)

StopReason = Literal["converged", "flat_derivative", "max_iterations"]


class SolverConfig(BaseModel):
    """Numeric limits for the Newton-Raphson XIRR solver."""

    model_config = ConfigDict(frozen=True)

    initial_guess: float = Field(default=0.1, description="Starting rate (fraction)")
    tolerance: float = Field(
        default=1e-7, gt=0, description="Step size below which the rate is converged"
    )
    derivative_tolerance: float = Field(
        default=1e-7, gt=0, description="Derivative magnitude treated as flat"
    )
    max_iterations: int = Field(default=100, ge=1, description="Iteration limit")
    min_rate: float = Field(default=-0.99, gt=-1, description="Lowest reportable rate")
    max_rate: float = Field(default=10.0, description="Highest reportable rate")

    @model_validator(mode="after")
    def validate_bounds(self) -> "SolverConfig":
        if self.max_rate <= self.min_rate:
            raise ValueError("max_rate must be greater than min_rate")
        return self

    def clamp(self, rate: float) -> float:
        """Restrict a rate to the reportable band."""
        return min(max(rate, self.min_rate), self.max_rate)


class SolverResult(BaseModel):
    """Outcome of a single XIRR solve."""

    rate: float = Field(..., description="Annualised rate as a fraction")
    iterations: int = Field(..., ge=0, description="Newton steps taken")
    converged: bool = Field(..., description="Whether the step tolerance was met")
    stop_reason: StopReason = Field(..., description="Why the iteration stopped")


class XirrResult(BaseModel):
    """Display-ready return figures for a ledger and its current valuation."""

    model_config = ConfigDict(frozen=True)

    rate: Decimal = Field(..., description="Annualised return in percent (2 dp)")
    absolute_gain: Decimal = Field(..., description="Current value minus invested")
    invested: Decimal = Field(..., description="Contributions net of withdrawals")
    current_value: Decimal = Field(..., description="Valuation used as final flow")

    @property
    def displayable(self) -> bool:
        """Whether the rate means anything; a drained or worthless ledger has no IRR."""
        return self.invested > 0 and self.current_value > 0

    @classmethod
    def zero(cls) -> "XirrResult":
        return cls(
            rate=Decimal("0"),
            absolute_gain=Decimal("0"),
            invested=Decimal("0"),
            current_value=Decimal("0"),
        )


def _to_arrays(
    cash_flows: Sequence[CashFlow],
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    origin = min(flow.date for flow in cash_flows)
    years = np.array(
        [year_fraction(origin, flow.date) for flow in cash_flows],
        dtype=np.float64,
    )
    amounts = np.array([float(flow.amount) for flow in cash_flows], dtype=np.float64)
    return years, amounts


def _npv(rate: float, years: NDArray[np.float64], amounts: NDArray[np.float64]) -> float:
    return float(np.sum(amounts / np.power(1.0 + rate, years)))


def _npv_derivative(
    rate: float, years: NDArray[np.float64], amounts: NDArray[np.float64]
) -> float:
    return float(np.sum(-years * amounts / np.power(1.0 + rate, years + 1.0)))


def solve_detailed(
    cash_flows: Sequence[CashFlow], config: Optional[SolverConfig] = None
) -> SolverResult:
    """
    Solve for the XIRR of a cash-flow series.

    Args:
        cash_flows: Signed flows; investments negative, redemptions positive
        config: Solver limits, defaults to SolverConfig()

    Returns:
        SolverResult with the rate as a fraction (0.12 means 12%)
    """
    config = config or SolverConfig()
    if not cash_flows:
        return SolverResult(
            rate=0.0, iterations=0, converged=False, stop_reason="flat_derivative"
        )

    years, amounts = _to_arrays(cash_flows)
    rate = config.clamp(config.initial_guess)

    for iteration in range(config.max_iterations):
        derivative = _npv_derivative(rate, years, amounts)
        if abs(derivative) < config.derivative_tolerance:
            logger.debug(f"XIRR derivative flat at rate {rate} after {iteration} steps")
            return SolverResult(
                rate=rate,
                iterations=iteration,
                converged=False,
                stop_reason="flat_derivative",
            )

        next_rate = config.clamp(rate - _npv(rate, years, amounts) / derivative)
        if abs(next_rate - rate) < config.tolerance:
            return SolverResult(
                rate=next_rate,
                iterations=iteration + 1,
                converged=True,
                stop_reason="converged",
            )
        rate = next_rate

    logger.debug(
        f"XIRR did not converge in {config.max_iterations} steps, last rate {rate}"
    )
    return SolverResult(
        rate=rate,
        iterations=config.max_iterations,
        converged=False,
        stop_reason="max_iterations",
    )


def solve(cash_flows: Sequence[CashFlow], config: Optional[SolverConfig] = None) -> float:
    """Best available XIRR as a fraction; see solve_detailed."""
    return solve_detailed(cash_flows, config).rate


def calculate_xirr(
    transactions: Sequence[Transaction],
    current_valuation: Decimal,
    as_of: Optional[date] = None,
    config: Optional[SolverConfig] = None,
) -> XirrResult:
    """
    Calculate the annualised return of a ledger against its current valuation.

    Contributions become negative flows, withdrawals positive flows, and the
    current valuation is appended as a final positive flow dated `as_of`.

    Args:
        transactions: Ledger entries in booking order
        current_valuation: Present market value of the holding
        as_of: Valuation date, defaults to today
        config: Solver limits

    Returns:
        XirrResult with the rate in percent rounded to 2 dp
    """
    if not transactions:
        return XirrResult.zero()

    valuation_date = as_of or date.today()
    flows: List[CashFlow] = [t.to_cash_flow() for t in transactions]
    flows.append(CashFlow(date=valuation_date, amount=current_valuation))

    invested = sum(
        (t.amount if t.is_contribution else -t.amount for t in transactions),
        Decimal("0"),
    )
    rate = solve(flows, config)

    return XirrResult(
        rate=Decimal(str(round(rate * 100, 2))).quantize(Decimal("0.01")),
        absolute_gain=current_valuation - invested,
        invested=invested,
        current_value=current_valuation,
    )
