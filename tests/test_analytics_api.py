"""
Tests for the analytics API blueprint.

These tests exercise each stateless calculator endpoint through the Flask
test client, including validation and configuration error responses.
"""

from decimal import Decimal
from unittest.mock import patch


def _monthly_contributions():
    return [
        {"date": f"2023-{month:02d}-01", "amount": "10000", "kind": "DEPOSIT"}
        for month in range(1, 13)
    ]


class TestXirrEndpoint:
    """Test POST /api/analytics/xirr."""

    def test_calculates_xirr(self, client):
        """A valid ledger returns rate, gain and invested."""
        response = client.post(
            "/api/analytics/xirr",
            json={
                "transactions": _monthly_contributions(),
                "current_value": "135000",
                "as_of": "2024-01-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert Decimal("5") < Decimal(data["rate"]) < Decimal("25")
        assert Decimal(data["invested"]) == Decimal("120000")
        assert Decimal(data["absolute_gain"]) == Decimal("15000")

    def test_worthless_holding_has_no_rate(self, client):
        """A holding valued at zero reports a null rate, not the solver guess."""
        response = client.post(
            "/api/analytics/xirr",
            json={
                "transactions": [
                    {"date": "2023-01-01", "amount": "1000", "kind": "BUY"}
                ],
                "current_value": "0",
                "as_of": "2024-01-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["rate"] is None
        assert Decimal(data["absolute_gain"]) == Decimal("-1000")

    def test_withdrawn_ledger_has_no_rate(self, client):
        """Withdrawals exceeding contributions leave no rate to show."""
        response = client.post(
            "/api/analytics/xirr",
            json={
                "transactions": [
                    {"date": "2023-01-01", "amount": "1000", "kind": "BUY"},
                    {"date": "2023-06-01", "amount": "3000", "kind": "SELL"},
                ],
                "current_value": "500",
                "as_of": "2024-01-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["rate"] is None
        assert Decimal(data["invested"]) == Decimal("-2000")

    def test_invalid_payload(self, client):
        """Malformed input returns 400 with validation details."""
        response = client.post(
            "/api/analytics/xirr",
            json={"transactions": [{"date": "not-a-date", "amount": "1", "kind": "BUY"}]},
        )

        assert response.status_code == 400
        data = response.get_json()
        assert data["error"] == "Invalid request"
        assert data["details"]

    def test_empty_body(self, client):
        """A missing body is a validation error."""
        response = client.post("/api/analytics/xirr")

        assert response.status_code == 400


class TestRecalculateEndpoint:
    """Test POST /api/analytics/portfolios/recalculate."""

    def test_recalculates_with_override(self, client):
        """The override price values the reconciled holding."""
        response = client.post(
            "/api/analytics/portfolios/recalculate",
            json={
                "portfolio": {
                    "portfolio_id": "mf-1",
                    "asset_class": "MUTUAL_FUND",
                    "transactions": [
                        {
                            "date": "2023-01-10",
                            "amount": "10000",
                            "kind": "BUY",
                            "units": "100",
                            "unit_price": "100",
                        }
                    ],
                },
                "override_unit_price": "120",
                "as_of": "2024-01-10",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert Decimal(data["portfolio"]["units_held"]) == Decimal("100")
        assert Decimal(data["portfolio"]["current_value"]) == Decimal("12000")
        assert Decimal(data["summary"]["gain"]) == Decimal("2000")
        assert Decimal(data["summary"]["xirr"]) == Decimal("20.00")


class TestEpfEndpoint:
    """Test POST /api/analytics/epf/schedule."""

    def test_builds_schedule_for_financial_year(self, client):
        """A financial year generates from April through the given month."""
        response = client.post(
            "/api/analytics/epf/schedule",
            json={
                "account": {
                    "account_id": "epf-1",
                    "wage": "20000",
                    "annual_interest_rate": "8.25",
                },
                "financial_year": 2024,
                "through_month": "2024-06-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert len(data["contributions"]) == 3
        assert Decimal(data["contributions"][0]["pension_contribution"]) == Decimal(
            "1250"
        )
        assert Decimal(data["total_employer_contribution"]) == Decimal("3450")

    def test_negative_wage_is_unprocessable(self, client):
        """Invalid configuration maps to 422."""
        response = client.post(
            "/api/analytics/epf/schedule",
            json={
                "account": {
                    "account_id": "epf-1",
                    "wage": "-1",
                    "annual_interest_rate": "8.25",
                },
                "through_month": "2024-06-01",
            },
        )

        assert response.status_code == 422
        assert response.get_json()["error"] == "Invalid configuration"


class TestFireEndpoints:
    """Test the FIRE calculators."""

    def test_fire_projection(self, client):
        """The FIRE endpoint returns target, projections and FIRE age."""
        response = client.post(
            "/api/analytics/fire",
            json={
                "current_net_worth": "0",
                "current_age": 25,
                "monthly_expenses": "50000",
                "target_amount": "120000",
                "monthly_investment": "10000",
                "expected_annual_return": "0",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["years_to_fire"] == 1
        assert data["fire_age"] == 26
        assert len(data["projections"]) == 2

    def test_negative_contribution_is_unprocessable(self, client):
        """Negative monthly investment maps to 422."""
        response = client.post(
            "/api/analytics/fire",
            json={
                "current_net_worth": "0",
                "current_age": 25,
                "monthly_expenses": "50000",
                "monthly_investment": "-10",
                "expected_annual_return": "10",
            },
        )

        assert response.status_code == 422

    def test_required_contribution(self, client):
        """The solver endpoint returns the contribution and where it leads."""
        response = client.post(
            "/api/analytics/required-contribution",
            json={
                "present_value": "1000",
                "target_value": "13000",
                "months": 12,
                "annual_return_rate": "0",
            },
        )

        assert response.status_code == 200
        assert response.get_json() == {
            "required_contribution": "1000.00",
            "projected_amount": "13000.00",
        }


class TestDashboardEndpoint:
    """Test POST /api/analytics/dashboard."""

    def test_dashboard(self, client):
        """Posted holdings are aggregated into allocation and blends."""
        response = client.post(
            "/api/analytics/dashboard",
            json={
                "portfolios": [
                    {
                        "portfolio_id": "s",
                        "asset_class": "STOCK",
                        "current_value": "11000",
                        "transactions": [
                            {"date": "2023-01-01", "amount": "10000", "kind": "BUY"}
                        ],
                    },
                    {
                        "portfolio_id": "b",
                        "asset_class": "SAVING",
                        "current_value": "9000",
                    },
                ],
                "as_of": "2024-01-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert Decimal(data["total_net_worth"]) == Decimal("20000")
        assert data["overall_irr"]["status"] == "available"
        assert Decimal(data["overall_irr"]["rate"]) == Decimal("10.00")
        assert data["class_irr"]["SAVING"]["status"] == "unavailable"

    def test_unexpected_error_is_logged(self, client):
        """Unexpected failures return 500 and are logged."""
        with patch(
            "wealthtrack.blueprints.analytics.aggregate",
            side_effect=RuntimeError("boom"),
        ):
            with patch.object(client.application.logger, "error") as log_error:
                response = client.post("/api/analytics/dashboard", json={})

        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}
        log_error.assert_called_once()
        assert "boom" in log_error.call_args[0][0]
