"""
Unit and cost-basis reconciliation for portfolio ledgers.

Derives units held, average cost basis and current market value from a
portfolio's transaction ledger. Every function here is a pure transform: the
input snapshot is never modified and an updated copy is returned.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from .ledger import Portfolio, Transaction

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _reconciled_units(portfolio: Portfolio) -> Decimal:
    if not portfolio.has_unit_transactions:
        return portfolio.units_held
    return sum((t.signed_units for t in portfolio.transactions), ZERO)


def _reconciled_cost_basis(portfolio: Portfolio, units_held: Decimal) -> Decimal:
    if not portfolio.transactions:
        return portfolio.cost_basis
    net_invested = portfolio.net_invested()
    if net_invested > 0 and units_held > 0:
        return net_invested / units_held
    if units_held == 0:
        return ZERO
    return portfolio.cost_basis


def _valuation_price(
    portfolio: Portfolio, override_unit_price: Optional[Decimal]
) -> Optional[Decimal]:
    if override_unit_price is not None:
        return override_unit_price
    latest = portfolio.latest_priced_transaction()
    return latest.unit_price if latest is not None else None


def recalculate(
    portfolio: Portfolio, override_unit_price: Optional[Decimal] = None
) -> Portfolio:
    """
    Recompute units held, cost basis and current value from the ledger.

    Units are the signed sum of transaction units when any transaction carries
    units; otherwise the caller-supplied holding is kept. Valuation prefers the
    override price, then the unit price of the most recent priced transaction.
    Fields that cannot be derived are left unchanged.

    Args:
        portfolio: Portfolio snapshot to reconcile
        override_unit_price: Live unit price, when one is available

    Returns:
        New Portfolio snapshot with reconciled fields
    """
    units_held = _reconciled_units(portfolio)
    cost_basis = _reconciled_cost_basis(portfolio, units_held)

    current_value = portfolio.current_value
    price = _valuation_price(portfolio, override_unit_price)
    if price is not None and units_held >= 0:
        current_value = units_held * price

    return portfolio.model_copy(
        update={
            "units_held": units_held,
            "cost_basis": cost_basis,
            "current_value": current_value,
        }
    )


def fill_missing_units(portfolio: Portfolio) -> Portfolio:
    """
    Estimate units and unit prices for transactions recorded by amount only.

    Uses the portfolio's cost basis as the estimated price, then reconciles.
    Returns the input unchanged when no transaction needed repair.
    """
    cost_basis = portfolio.cost_basis
    if cost_basis <= 0:
        return portfolio

    repaired: List[Transaction] = []
    fixed = 0
    for transaction in portfolio.transactions:
        needs_repair = transaction.units is None or transaction.unit_price is None
        if needs_repair and transaction.amount > 0:
            units = transaction.units
            if units is None:
                units = transaction.amount / cost_basis
            unit_price = transaction.unit_price
            if unit_price is None:
                unit_price = cost_basis
            transaction = transaction.model_copy(
                update={"units": units, "unit_price": unit_price}
            )
            fixed += 1
        repaired.append(transaction)

    if fixed == 0:
        return portfolio

    logger.info(
        f"Estimated units for {fixed} transactions in portfolio {portfolio.portfolio_id}"
    )
    return recalculate(portfolio.model_copy(update={"transactions": repaired}))
