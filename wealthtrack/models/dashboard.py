"""
Net-worth dashboard aggregation.

Combines reconciled portfolios and provident-fund accounts into a single view:
asset allocation by class, totals, and blended IRRs computed by pooling every
transaction of a group into one XIRR solve. A blend that cannot be computed is
reported as an explicit "unavailable" outcome rather than as 0%.
"""

import datetime
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from .ledger import AssetClass, Portfolio, Transaction
from .provident_fund import ProvidentFundAccount
from .xirr import SolverConfig, calculate_xirr

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


class BlendedIrr(BaseModel):
    """Blended IRR of a group, or the reason it is not available."""

    status: Literal["available", "unavailable"]
    rate: Optional[Decimal] = Field(default=None, description="Percent, 2 dp")
    reason: Optional[str] = Field(default=None, description="Why no rate exists")

    @classmethod
    def available(cls, rate: Decimal) -> "BlendedIrr":
        return cls(status="available", rate=rate)

    @classmethod
    def unavailable(cls, reason: str) -> "BlendedIrr":
        return cls(status="unavailable", reason=reason)

    @property
    def is_available(self) -> bool:
        return self.status == "available"


class AssetAllocation(BaseModel):
    """Value held in one asset class and its share of net worth."""

    asset_class: AssetClass
    value: Decimal
    percentage: Decimal = Field(..., description="Share of net worth, percent")


class DashboardSummary(BaseModel):
    """Net-worth overview across all holdings."""

    total_net_worth: Decimal
    total_invested: Decimal
    total_gain: Decimal
    gain_percentage: Decimal
    allocations: List[AssetAllocation]
    class_irr: Dict[AssetClass, BlendedIrr]
    overall_irr: BlendedIrr = Field(
        ..., description="Blend over stock, mutual fund and SIP holdings"
    )
    total_epf_value: Decimal


def epf_invested(account: ProvidentFundAccount) -> Decimal:
    """Opening balances plus every booked contribution."""
    return account.opening_balance + sum(
        (c.total for c in account.contributions), ZERO
    )


def blended_irr(
    portfolios: Iterable[Portfolio],
    as_of: Optional[datetime.date] = None,
    config: Optional[SolverConfig] = None,
) -> BlendedIrr:
    """
    Pool the ledgers of several portfolios into one XIRR.

    Returns an unavailable outcome when the pool has no transactions or no
    positive value.
    """
    transactions: List[Transaction] = []
    value = ZERO
    for portfolio in portfolios:
        transactions.extend(portfolio.transactions)
        value += portfolio.current_value

    if not transactions:
        return BlendedIrr.unavailable("no transactions")
    if value <= 0:
        return BlendedIrr.unavailable("no positive current value")
    return BlendedIrr.available(calculate_xirr(transactions, value, as_of, config).rate)


def aggregate(
    portfolios: Sequence[Portfolio],
    provident_funds: Sequence[ProvidentFundAccount] = (),
    as_of: Optional[datetime.date] = None,
    config: Optional[SolverConfig] = None,
) -> DashboardSummary:
    """
    Aggregate holdings into a dashboard summary.

    Args:
        portfolios: Reconciled portfolio snapshots
        provident_funds: EPF accounts, counted in the EPF group
        as_of: Valuation date for IRR calculations, defaults to today
        config: Solver limits

    Returns:
        DashboardSummary with allocation, totals and blended IRRs
    """
    by_class: Dict[AssetClass, List[Portfolio]] = {}
    for portfolio in portfolios:
        by_class.setdefault(portfolio.asset_class, []).append(portfolio)

    values: Dict[AssetClass, Decimal] = {
        asset_class: sum((p.current_value for p in group), ZERO)
        for asset_class, group in by_class.items()
    }
    total_epf_value = sum((a.current_value for a in provident_funds), ZERO)
    if provident_funds:
        values[AssetClass.EPF] = values.get(AssetClass.EPF, ZERO) + total_epf_value

    total = sum(values.values(), ZERO)
    allocations = []
    for asset_class in AssetClass:
        if asset_class not in values:
            continue
        value = values[asset_class]
        percentage = (value / total * 100).quantize(CENT) if total > 0 else ZERO
        allocations.append(
            AssetAllocation(asset_class=asset_class, value=value, percentage=percentage)
        )

    class_irr = {
        asset_class: blended_irr(by_class.get(asset_class, []), as_of, config)
        for asset_class in values
    }
    overall_irr = blended_irr(
        (p for p in portfolios if p.asset_class.is_growth), as_of, config
    )

    invested = sum((p.net_invested() for p in portfolios), ZERO)
    invested += sum((epf_invested(a) for a in provident_funds), ZERO)
    gain = total - invested
    gain_percentage = (gain / invested * 100).quantize(CENT) if invested > 0 else ZERO

    logger.debug(
        f"Aggregated {len(portfolios)} portfolios and {len(provident_funds)} "
        f"EPF accounts, net worth {total}"
    )
    return DashboardSummary(
        total_net_worth=total,
        total_invested=invested,
        total_gain=gain,
        gain_percentage=gain_percentage,
        allocations=allocations,
        class_irr=class_irr,
        overall_irr=overall_irr,
        total_epf_value=total_epf_value,
    )
