"""
Exceptions raised by the analytics engine.

Engine routines are pure functions. They only raise when the caller supplies a
configuration that cannot describe a real plan (negative wages, a return rate
that wipes out the principal). Degenerate ledgers never raise; they produce
best-effort numbers or an explicit "unavailable" outcome instead.
"""


class AnalyticsError(Exception):
    """Base exception for analytics engine errors."""


class InvalidConfigurationError(AnalyticsError, ValueError):
    """Raised when scalar configuration (wage, rate, contribution) is invalid."""


class PortfolioNotFoundError(AnalyticsError):
    """Raised by the service layer when a portfolio or account id is unknown."""
