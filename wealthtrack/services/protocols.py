"""
Protocol interfaces for the analytics service collaborators.

The engine never persists data or talks to market-data vendors. These
protocols describe what the service layer needs from the outside world so
that any store or price feed can be injected, and so tests can substitute
in-memory fakes.
"""

from decimal import Decimal
from typing import List, Optional, Protocol

from wealthtrack.models.ledger import Portfolio
from wealthtrack.models.provident_fund import ProvidentFundAccount


class PortfolioRepository(Protocol):
    """
    Stores portfolio ledgers.

    Persistence is last-writer-wins; the repository owns the snapshots and
    the engine only ever receives and returns copies.
    """

    def get_portfolio(self, portfolio_id: str) -> Optional[Portfolio]:
        """
        Load a portfolio.

        Args:
            portfolio_id: Portfolio identifier

        Returns:
            The stored snapshot, or None when the id is unknown
        """
        ...

    def save_portfolio(self, portfolio: Portfolio) -> None:
        """Persist a portfolio snapshot, replacing any stored version."""
        ...

    def list_portfolios(self) -> List[Portfolio]:
        """All stored portfolios."""
        ...


class ProvidentFundRepository(Protocol):
    """Stores EPF accounts."""

    def get_account(self, account_id: str) -> Optional[ProvidentFundAccount]:
        """Load an account, or None when the id is unknown."""
        ...

    def save_account(self, account: ProvidentFundAccount) -> None:
        """Persist an account snapshot."""
        ...

    def list_accounts(self) -> List[ProvidentFundAccount]:
        """All stored accounts."""
        ...


class PriceProvider(Protocol):
    """Supplies live unit prices (stock quotes, fund NAVs)."""

    def get_unit_price(self, instrument_id: str) -> Optional[Decimal]:
        """
        Latest unit price for an instrument.

        Args:
            instrument_id: Ticker symbol or scheme code

        Returns:
            Price per unit, or None when no quote is available
        """
        ...
