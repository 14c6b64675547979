"""
Portfolio service coordinating repositories, price lookups and the engine.

The service performs all I/O around the pure analytics routines: it loads
snapshots, fetches live prices, runs reconciliation or EPF extension, and
persists the updated snapshots.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from wealthtrack.models.dashboard import DashboardSummary, aggregate
from wealthtrack.models.errors import PortfolioNotFoundError
from wealthtrack.models.ledger import Portfolio, Transaction
from wealthtrack.models.ledger_reconciler import recalculate
from wealthtrack.models.provident_fund import (
    ProvidentFundAccount,
    ProvidentFundScheduler,
)
from wealthtrack.models.xirr import SolverConfig
from wealthtrack.services.protocols import (
    PortfolioRepository,
    PriceProvider,
    ProvidentFundRepository,
)

logger = logging.getLogger(__name__)


class PortfolioService:
    """Service for refreshing portfolios and building the dashboard."""

    def __init__(
        self,
        portfolios: PortfolioRepository,
        provident_funds: Optional[ProvidentFundRepository] = None,
        prices: Optional[PriceProvider] = None,
        scheduler: Optional[ProvidentFundScheduler] = None,
        solver_config: Optional[SolverConfig] = None,
    ) -> None:
        """Initialize the portfolio service.

        Args:
            portfolios: Portfolio store
            provident_funds: EPF account store
            prices: Live price feed; without one only ledger prices are used
            scheduler: EPF scheduler carrying the contribution policy
            solver_config: XIRR solver limits for dashboard blends
        """
        self.portfolios = portfolios
        self.provident_funds = provident_funds
        self.prices = prices
        self.scheduler = scheduler or ProvidentFundScheduler()
        self.solver_config = solver_config

    def _get_portfolio(self, portfolio_id: str) -> Portfolio:
        portfolio = self.portfolios.get_portfolio(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(f"Portfolio {portfolio_id} not found")
        return portfolio

    def _live_price(self, portfolio: Portfolio) -> Optional[Decimal]:
        if self.prices is None or not portfolio.instrument_id:
            return None
        try:
            return self.prices.get_unit_price(portfolio.instrument_id)
        except Exception as e:
            logger.warning(
                f"Price lookup for {portfolio.instrument_id} failed, "
                f"using ledger prices: {str(e)}"
            )
            return None

    def _reconcile_and_save(self, portfolio: Portfolio) -> Portfolio:
        refreshed = recalculate(portfolio, self._live_price(portfolio))
        self.portfolios.save_portfolio(refreshed)
        return refreshed

    def refresh_portfolio(self, portfolio_id: str) -> Portfolio:
        """Fetch a live price, reconcile the ledger and persist the result.

        Args:
            portfolio_id: Portfolio to refresh

        Returns:
            The refreshed snapshot

        Raises:
            PortfolioNotFoundError: If the id is unknown
        """
        portfolio = self._get_portfolio(portfolio_id)
        refreshed = self._reconcile_and_save(portfolio)
        logger.info(
            f"Refreshed portfolio {portfolio_id}: {refreshed.units_held} units, "
            f"value {refreshed.current_value}"
        )
        return refreshed

    def add_transaction(self, portfolio_id: str, transaction: Transaction) -> Portfolio:
        """Append a transaction to the ledger, then reconcile and persist."""
        portfolio = self._get_portfolio(portfolio_id)
        updated = portfolio.model_copy(
            update={"transactions": portfolio.transactions + [transaction]}
        )
        logger.info(f"Added {transaction.kind.value} to portfolio {portfolio_id}")
        return self._reconcile_and_save(updated)

    def update_transaction(
        self, portfolio_id: str, index: int, transaction: Transaction
    ) -> Portfolio:
        """Replace the transaction at `index` in ledger order.

        Raises:
            PortfolioNotFoundError: If the id is unknown
            IndexError: If no transaction exists at `index`
        """
        portfolio = self._get_portfolio(portfolio_id)
        if not 0 <= index < len(portfolio.transactions):
            raise IndexError(
                f"Portfolio {portfolio_id} has no transaction at index {index}"
            )
        transactions = list(portfolio.transactions)
        transactions[index] = transaction
        updated = portfolio.model_copy(update={"transactions": transactions})
        return self._reconcile_and_save(updated)

    def refresh_provident_fund(
        self, account_id: str, today: Optional[date] = None
    ) -> ProvidentFundAccount:
        """Extend an EPF schedule through the current month and persist it."""
        if self.provident_funds is None:
            raise PortfolioNotFoundError(f"EPF account {account_id} not found")
        account = self.provident_funds.get_account(account_id)
        if account is None:
            raise PortfolioNotFoundError(f"EPF account {account_id} not found")

        extended = self.scheduler.extend_to(account, today or date.today())
        if len(extended.contributions) != len(account.contributions):
            logger.info(
                f"Extended EPF account {account_id} by "
                f"{len(extended.contributions) - len(account.contributions)} months"
            )
        self.provident_funds.save_account(extended)
        return extended

    def dashboard(self, as_of: Optional[date] = None) -> DashboardSummary:
        """Aggregate every stored portfolio and EPF account."""
        accounts = (
            self.provident_funds.list_accounts() if self.provident_funds else []
        )
        return aggregate(
            self.portfolios.list_portfolios(), accounts, as_of, self.solver_config
        )
