"""
Pydantic models for investment ledgers.

This module defines the transaction ledger, the cash flows derived from it and
the portfolio snapshot that the reconciliation and return engines operate on.
Snapshots are frozen: engines return updated copies instead of mutating them.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TransactionKind(str, Enum):
    """Direction of a ledger transaction."""

    CONTRIBUTION = "CONTRIBUTION"
    WITHDRAWAL = "WITHDRAWAL"

    @classmethod
    def _missing_(cls, value: object) -> Optional["TransactionKind"]:
        # Brokerage and fund ledgers use BUY/SELL and DEPOSIT
        aliases = {
            "DEPOSIT": cls.CONTRIBUTION,
            "BUY": cls.CONTRIBUTION,
            "SELL": cls.WITHDRAWAL,
        }
        if isinstance(value, str):
            upper = value.upper()
            if upper in aliases:
                return aliases[upper]
            if upper in cls.__members__:
                return cls[upper]
        return None


class AssetClass(str, Enum):
    """Declared asset class of a portfolio."""

    STOCK = "STOCK"
    MUTUAL_FUND = "MUTUAL_FUND"
    SIP = "SIP"
    EPF = "EPF"
    NPS = "NPS"
    SAVING = "SAVING"

    @property
    def is_growth(self) -> bool:
        """Market-linked classes that take part in blended IRR."""
        return self in GROWTH_ASSET_CLASSES


GROWTH_ASSET_CLASSES = frozenset(
    {AssetClass.STOCK, AssetClass.MUTUAL_FUND, AssetClass.SIP}
)


class CashFlow(BaseModel):
    """A dated, signed cash flow. Outflows are negative, inflows positive."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    amount: Decimal


class Transaction(BaseModel):
    """A single contribution or withdrawal recorded against a portfolio."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date = Field(..., description="Date the transaction was booked")
    amount: Decimal = Field(..., ge=0, description="Unsigned transaction amount")
    kind: TransactionKind = Field(..., description="Contribution or withdrawal")
    units: Optional[Decimal] = Field(
        default=None, ge=0, description="Units bought or sold, when known"
    )
    unit_price: Optional[Decimal] = Field(
        default=None, ge=0, description="Price per unit at the time of booking"
    )
    effective_date: Optional[datetime.date] = Field(
        default=None,
        description="Date the money was actually invested (defaults to date)",
    )

    @model_validator(mode="before")
    @classmethod
    def default_effective_date(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("effective_date") is None:
            data = {**data, "effective_date": data.get("date")}
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            return TransactionKind(v)
        return v

    @property
    def is_contribution(self) -> bool:
        return self.kind == TransactionKind.CONTRIBUTION

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the cash-flow sign convention applied."""
        return -self.amount if self.is_contribution else self.amount

    @property
    def signed_units(self) -> Decimal:
        """Units added (positive) or removed (negative); zero when unknown."""
        if self.units is None:
            return Decimal("0")
        return self.units if self.is_contribution else -self.units

    def to_cash_flow(self) -> CashFlow:
        """Convert to a signed cash flow dated on the booking date."""
        return CashFlow(date=self.date, amount=self.signed_amount)


class Portfolio(BaseModel):
    """Ledger view of a single holding (fund, stock, deposit scheme)."""

    model_config = ConfigDict(frozen=True)

    portfolio_id: str = Field(..., min_length=1, description="Portfolio identifier")
    name: str = Field(default="", description="Human-readable name")
    asset_class: AssetClass = Field(..., description="Declared asset class")
    instrument_id: Optional[str] = Field(
        default=None, description="Scheme code or ticker used for price lookups"
    )
    units_held: Decimal = Field(default=Decimal("0"), description="Units held")
    cost_basis: Decimal = Field(
        default=Decimal("0"), description="Average price paid per unit"
    )
    current_value: Decimal = Field(
        default=Decimal("0"), description="Current market value"
    )
    transactions: List[Transaction] = Field(
        default_factory=list, description="Append-only ledger in booking order"
    )

    @field_validator("units_held", "cost_basis", "current_value", mode="before")
    @classmethod
    def coerce_decimal(cls, v: Any) -> Any:
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @property
    def has_unit_transactions(self) -> bool:
        return any(t.units is not None for t in self.transactions)

    def total_contributed(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.is_contribution), Decimal("0")
        )

    def total_withdrawn(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if not t.is_contribution),
            Decimal("0"),
        )

    def net_invested(self) -> Decimal:
        """Contributions minus withdrawals; negative when more was taken out."""
        return self.total_contributed() - self.total_withdrawn()

    def latest_priced_transaction(self) -> Optional[Transaction]:
        """
        Most recent transaction that carries a unit price.

        Most recent means the latest booking date; among transactions booked on
        the same date the one appended last wins.
        """
        latest: Optional[Transaction] = None
        for transaction in self.transactions:
            if transaction.unit_price is None:
                continue
            if latest is None or transaction.date >= latest.date:
                latest = transaction
        return latest
