"""
Portfolio-level and transaction-level performance metrics.

Builds the summary figures shown for a single holding (amount invested, gain,
gain percentage, XIRR) and the per-transaction breakdown that values each
contribution's units at the current price.
"""

import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .ledger import Portfolio, Transaction, TransactionKind
from .xirr import SolverConfig, calculate_xirr

ZERO = Decimal("0")
CENT = Decimal("0.01")


class PortfolioSummary(BaseModel):
    """Headline performance figures for one portfolio."""

    portfolio_id: str = Field(..., description="Portfolio identifier")
    current_value: Decimal = Field(..., description="Current market value")
    invested: Decimal = Field(..., description="Contributions net of withdrawals")
    gain: Decimal = Field(..., description="Current value minus invested")
    gain_percentage: Decimal = Field(..., description="Gain over invested, percent")
    xirr: Optional[Decimal] = Field(
        default=None, description="Annualised return in percent, when meaningful"
    )


class TransactionDetail(BaseModel):
    """A ledger entry with its own valuation and return figures."""

    date: datetime.date = Field(..., description="Booking date")
    effective_date: Optional[datetime.date] = Field(
        default=None, description="Date the money was invested"
    )
    amount: Decimal = Field(..., description="Transaction amount")
    kind: TransactionKind = Field(..., description="Contribution or withdrawal")
    units: Optional[Decimal] = Field(default=None, description="Recorded units")
    unit_price: Optional[Decimal] = Field(default=None, description="Recorded price")
    current_value: Optional[Decimal] = Field(
        default=None, description="Value of this contribution's units today"
    )
    returns: Optional[Decimal] = Field(
        default=None, description="Current value minus amount"
    )
    xirr: Optional[Decimal] = Field(
        default=None, description="Annualised return of this contribution, percent"
    )


def summarize_portfolio(
    portfolio: Portfolio,
    as_of: Optional[datetime.date] = None,
    config: Optional[SolverConfig] = None,
) -> PortfolioSummary:
    """
    Summarise invested amount, gain and XIRR for a portfolio.

    XIRR is only reported for growth-oriented asset classes that have a ledger
    and a positive current value; accrual schemes report None.
    """
    invested = portfolio.net_invested()
    gain = portfolio.current_value - invested
    gain_percentage = ZERO
    if invested > 0:
        gain_percentage = (gain / invested * 100).quantize(CENT)

    xirr: Optional[Decimal] = None
    if (
        portfolio.asset_class.is_growth
        and portfolio.transactions
        and portfolio.current_value > 0
    ):
        xirr = calculate_xirr(
            portfolio.transactions, portfolio.current_value, as_of, config
        ).rate

    return PortfolioSummary(
        portfolio_id=portfolio.portfolio_id,
        current_value=portfolio.current_value,
        invested=invested,
        gain=gain,
        gain_percentage=gain_percentage,
        xirr=xirr,
    )


def _current_unit_price(
    portfolio: Portfolio, current_unit_price: Optional[Decimal]
) -> Decimal:
    if current_unit_price is not None:
        return current_unit_price
    if portfolio.units_held > 0:
        return portfolio.current_value / portfolio.units_held
    return ZERO


def _contribution_units(
    portfolio: Portfolio, transaction: Transaction, price: Decimal
) -> Optional[Decimal]:
    if transaction.units is not None and transaction.units > 0:
        return transaction.units
    if transaction.amount > 0 and price > 0:
        purchase_price = transaction.unit_price or portfolio.cost_basis
        if purchase_price > 0:
            return transaction.amount / purchase_price
    return None


def transaction_details(
    portfolio: Portfolio,
    current_unit_price: Optional[Decimal] = None,
    as_of: Optional[datetime.date] = None,
    config: Optional[SolverConfig] = None,
) -> List[TransactionDetail]:
    """
    Value each contribution on its own.

    Args:
        portfolio: Reconciled portfolio snapshot
        current_unit_price: Live price; falls back to current_value / units_held
        as_of: Valuation date for the per-contribution XIRR
        config: Solver limits

    Returns:
        One TransactionDetail per ledger entry, in ledger order. Withdrawals
        and contributions whose units cannot be estimated carry no metrics.
    """
    price = _current_unit_price(portfolio, current_unit_price)
    details: List[TransactionDetail] = []

    for transaction in portfolio.transactions:
        current_value: Optional[Decimal] = None
        returns: Optional[Decimal] = None
        xirr: Optional[Decimal] = None

        if transaction.is_contribution:
            units = _contribution_units(portfolio, transaction, price)
            if units is not None:
                current_value = units * price
                returns = current_value - transaction.amount
            if current_value is not None and current_value > 0:
                invested_on = Transaction(
                    date=transaction.effective_date,
                    amount=transaction.amount,
                    kind=TransactionKind.CONTRIBUTION,
                )
                xirr = calculate_xirr([invested_on], current_value, as_of, config).rate

        details.append(
            TransactionDetail(
                date=transaction.date,
                effective_date=transaction.effective_date,
                amount=transaction.amount,
                kind=transaction.kind,
                units=transaction.units,
                unit_price=transaction.unit_price,
                current_value=current_value,
                returns=returns,
                xirr=xirr,
            )
        )

    return details
