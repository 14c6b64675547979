"""Analytics engine models for investment ledgers and projections."""

from .errors import AnalyticsError, InvalidConfigurationError, PortfolioNotFoundError
from .ledger import (
    GROWTH_ASSET_CLASSES,
    AssetClass,
    CashFlow,
    Portfolio,
    Transaction,
    TransactionKind,
)
from .xirr import (
    SolverConfig,
    SolverResult,
    XirrResult,
    calculate_xirr,
    solve,
    solve_detailed,
)
from .ledger_reconciler import fill_missing_units, recalculate
from .portfolio_metrics import (
    PortfolioSummary,
    TransactionDetail,
    summarize_portfolio,
    transaction_details,
)
from .provident_fund import (
    EpfContribution,
    ProvidentFundAccount,
    ProvidentFundPolicy,
    ProvidentFundScheduler,
    ProvidentFundSummary,
)
from .wealth_projection import (
    FireCalculation,
    FireCalculationRequest,
    FireGoal,
    FireProgress,
    FireScenario,
    ProjectionConfig,
    ProjectionPoint,
    WealthProjector,
)
from .dashboard import (
    AssetAllocation,
    BlendedIrr,
    DashboardSummary,
    aggregate,
    blended_irr,
)

__all__ = [
    "AnalyticsError",
    "InvalidConfigurationError",
    "PortfolioNotFoundError",
    "GROWTH_ASSET_CLASSES",
    "AssetClass",
    "CashFlow",
    "Portfolio",
    "Transaction",
    "TransactionKind",
    "SolverConfig",
    "SolverResult",
    "XirrResult",
    "calculate_xirr",
    "solve",
    "solve_detailed",
    "fill_missing_units",
    "recalculate",
    "PortfolioSummary",
    "TransactionDetail",
    "summarize_portfolio",
    "transaction_details",
    "EpfContribution",
    "ProvidentFundAccount",
    "ProvidentFundPolicy",
    "ProvidentFundScheduler",
    "ProvidentFundSummary",
    "FireCalculation",
    "FireCalculationRequest",
    "FireGoal",
    "FireProgress",
    "FireScenario",
    "ProjectionConfig",
    "ProjectionPoint",
    "WealthProjector",
    "AssetAllocation",
    "BlendedIrr",
    "DashboardSummary",
    "aggregate",
    "blended_irr",
]
