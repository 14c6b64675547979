"""
Analytics blueprint exposing the calculators as stateless JSON endpoints.

Every endpoint takes the full input in the request body, runs one engine
operation and returns the result. Nothing is persisted.
"""

import json
from datetime import date
from decimal import Decimal
from functools import wraps
from typing import Any, Callable, List, Optional

from flask import Blueprint, current_app, jsonify, request
from pydantic import BaseModel, Field, ValidationError

from wealthtrack.models.dashboard import aggregate
from wealthtrack.models.errors import InvalidConfigurationError
from wealthtrack.models.ledger import Portfolio, Transaction
from wealthtrack.models.ledger_reconciler import fill_missing_units, recalculate
from wealthtrack.models.portfolio_metrics import summarize_portfolio
from wealthtrack.models.provident_fund import ProvidentFundAccount
from wealthtrack.models.time_grid import financial_year_start
from wealthtrack.models.wealth_projection import FireCalculationRequest
from wealthtrack.models.xirr import calculate_xirr

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


class XirrRequest(BaseModel):
    transactions: List[Transaction] = Field(default_factory=list)
    current_value: Decimal
    as_of: Optional[date] = None


class RecalculateRequest(BaseModel):
    portfolio: Portfolio
    override_unit_price: Optional[Decimal] = Field(default=None, ge=0)
    fill_missing_units: bool = False
    as_of: Optional[date] = None


class EpfScheduleRequest(BaseModel):
    account: ProvidentFundAccount
    through_month: date
    start_month: Optional[date] = None
    financial_year: Optional[int] = Field(default=None, ge=1950, le=2100)
    new_wage: Optional[Decimal] = None
    wage_effective_from: Optional[date] = None


class RequiredContributionRequest(BaseModel):
    present_value: Decimal
    target_value: Decimal
    months: int
    annual_return_rate: Decimal


class DashboardRequest(BaseModel):
    portfolios: List[Portfolio] = Field(default_factory=list)
    provident_funds: List[ProvidentFundAccount] = Field(default_factory=list)
    as_of: Optional[date] = None


def _engine(name: str) -> Any:
    return current_app.extensions["wealthtrack"][name]


def analytics_endpoint(action: str) -> Callable:
    """Map engine and validation errors onto JSON error responses."""

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return view(*args, **kwargs)
            except ValidationError as e:
                return (
                    jsonify(
                        {
                            "error": "Invalid request",
                            "details": json.loads(e.json(include_url=False)),
                        }
                    ),
                    400,
                )
            except InvalidConfigurationError as e:
                return jsonify({"error": "Invalid configuration", "message": str(e)}), 422
            except Exception as e:
                current_app.logger.error(f"Error {action}: {str(e)}")
                return jsonify({"error": "Internal server error"}), 500

        return wrapper

    return decorator


def _body() -> Any:
    return request.get_json(silent=True) or {}


@analytics_bp.route("/xirr", methods=["POST"])
@analytics_endpoint("calculating XIRR")
def xirr() -> Any:
    """Calculate the XIRR of a ledger against its current value.

    Returns:
        JSON XirrResult with the rate in percent, or a null rate when
        nothing is invested or the holding has no value
    """
    data = XirrRequest.model_validate(_body())
    result = calculate_xirr(
        data.transactions, data.current_value, data.as_of, _engine("solver_config")
    )
    payload = result.model_dump(mode="json")
    if not result.displayable:
        payload["rate"] = None
    return jsonify(payload), 200


@analytics_bp.route("/portfolios/recalculate", methods=["POST"])
@analytics_endpoint("recalculating portfolio")
def recalculate_portfolio() -> Any:
    """Reconcile units, cost basis and value for a posted portfolio.

    Returns:
        JSON with the reconciled portfolio and its summary metrics
    """
    data = RecalculateRequest.model_validate(_body())
    portfolio = recalculate(data.portfolio, data.override_unit_price)
    if data.fill_missing_units:
        portfolio = fill_missing_units(portfolio)
    summary = summarize_portfolio(portfolio, data.as_of, _engine("solver_config"))
    return (
        jsonify(
            {
                "portfolio": portfolio.model_dump(mode="json"),
                "summary": summary.model_dump(mode="json"),
            }
        ),
        200,
    )


@analytics_bp.route("/epf/schedule", methods=["POST"])
@analytics_endpoint("building EPF schedule")
def epf_schedule() -> Any:
    """Generate (or extend) an EPF schedule and summarise the account.

    The schedule starts at `start_month`, else April of `financial_year`,
    else `through_month`. An optional wage revision is applied afterwards.
    """
    data = EpfScheduleRequest.model_validate(_body())
    scheduler = _engine("provident_fund_scheduler")

    start_month = data.start_month
    if start_month is None and data.financial_year is not None:
        start_month = financial_year_start(data.financial_year)
    account = scheduler.generate(
        data.account, start_month or data.through_month, data.through_month
    )
    if data.new_wage is not None:
        account = scheduler.apply_wage_change(
            account, data.new_wage, data.wage_effective_from or data.through_month
        )
    return jsonify(scheduler.summarize(account).model_dump(mode="json")), 200


@analytics_bp.route("/fire", methods=["POST"])
@analytics_endpoint("calculating FIRE projection")
def fire() -> Any:
    """Project wealth towards financial independence."""
    data = FireCalculationRequest.model_validate(_body())
    result = _engine("wealth_projector").calculate_fire(data)
    return jsonify(result.model_dump(mode="json")), 200


@analytics_bp.route("/required-contribution", methods=["POST"])
@analytics_endpoint("calculating required contribution")
def required_contribution() -> Any:
    """Monthly contribution needed to reach a target, and where it leads."""
    data = RequiredContributionRequest.model_validate(_body())
    projector = _engine("wealth_projector")
    contribution = projector.required_contribution(
        data.present_value, data.target_value, data.months, data.annual_return_rate
    )
    projected = projector.projected_amount(
        data.present_value, contribution, data.months, data.annual_return_rate
    )
    return (
        jsonify(
            {
                "required_contribution": str(contribution.quantize(Decimal("0.01"))),
                "projected_amount": str(projected),
            }
        ),
        200,
    )


@analytics_bp.route("/dashboard", methods=["POST"])
@analytics_endpoint("aggregating dashboard")
def dashboard() -> Any:
    """Aggregate posted portfolios and EPF accounts into a dashboard."""
    data = DashboardRequest.model_validate(_body())
    summary = aggregate(
        data.portfolios, data.provident_funds, data.as_of, _engine("solver_config")
    )
    return jsonify(summary.model_dump(mode="json")), 200
