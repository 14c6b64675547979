"""
Pytest configuration and shared fixtures for the wealthtrack tests.
"""

import os
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from wealthtrack.config import reset_global_settings
from wealthtrack.models.ledger import AssetClass, Portfolio, Transaction, TransactionKind


@pytest.fixture
def app_env():
    """Provide a minimal valid environment for the application."""
    reset_global_settings()
    with patch.dict(
        os.environ, {"SECRET_KEY": "test-secret-key-123", "APP_ENV": "testing"}, clear=True
    ):
        yield
    reset_global_settings()


@pytest.fixture
def client(app_env):
    """Flask test client backed by the testing configuration."""
    from wealthtrack import create_app

    app = create_app("testing")
    return app.test_client()


@pytest.fixture
def monthly_contributions():
    """Twelve monthly contributions of 10,000 through 2023."""
    return [
        Transaction(
            date=date(2023, month, 1),
            amount=Decimal("10000"),
            kind=TransactionKind.CONTRIBUTION,
        )
        for month in range(1, 13)
    ]


@pytest.fixture
def fund_portfolio():
    """A mutual fund with unit-bearing buys and one partial redemption."""
    return Portfolio(
        portfolio_id="mf-1",
        name="Index Fund",
        asset_class=AssetClass.MUTUAL_FUND,
        instrument_id="120503",
        transactions=[
            Transaction(
                date=date(2023, 1, 10),
                amount=Decimal("10000"),
                kind=TransactionKind.CONTRIBUTION,
                units=Decimal("100"),
                unit_price=Decimal("100"),
            ),
            Transaction(
                date=date(2023, 6, 10),
                amount=Decimal("12000"),
                kind=TransactionKind.CONTRIBUTION,
                units=Decimal("100"),
                unit_price=Decimal("120"),
            ),
            Transaction(
                date=date(2023, 9, 10),
                amount=Decimal("6500"),
                kind=TransactionKind.WITHDRAWAL,
                units=Decimal("50"),
                unit_price=Decimal("130"),
            ),
        ],
    )
