"""
Long-horizon wealth projections for financial independence (FIRE) planning.

This module projects wealth year by year under a fixed monthly contribution
and a constant annual return, solves for the monthly contribution needed to
reach a target corpus, and derives goal tracking figures (progress, gap,
scenario comparisons) from those closed-form annuity calculations.
"""

from decimal import Decimal
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import InvalidConfigurationError
from .ledger import AssetClass, Portfolio

ZERO = Decimal("0")
CENT = Decimal("0.01")
MONTHS_PER_YEAR = 12


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _monthly_rate(annual_return_rate: Decimal) -> Decimal:
    return annual_return_rate / 100 / MONTHS_PER_YEAR


class ProjectionConfig(BaseModel):
    """Defaults for wealth projections."""

    model_config = ConfigDict(frozen=True)

    default_horizon_years: int = Field(
        default=50, ge=0, description="Years projected when no horizon age is given"
    )
    expense_multiple: Decimal = Field(
        default=Decimal("25"), gt=0, description="Target corpus in annual expenses"
    )


class ProjectionPoint(BaseModel):
    """Projected wealth at the end of one projection year."""

    year_index: int = Field(..., ge=0, description="Years from today")
    age: int = Field(..., description="Age at this point")
    projected_wealth: Decimal = Field(..., description="Wealth at year end (2 dp)")
    annual_contribution: Decimal = Field(..., description="Contributions this year")
    annual_growth: Decimal = Field(..., description="Investment growth this year")


class FireCalculationRequest(BaseModel):
    """Inputs for a one-off FIRE calculation."""

    current_net_worth: Decimal = Field(..., description="Current investable wealth")
    current_age: int = Field(..., ge=0, le=120, description="Current age")
    monthly_expenses: Decimal = Field(..., ge=0, description="Monthly spending")
    target_amount: Optional[Decimal] = Field(
        default=None, gt=0, description="Target corpus; defaults to 25x expenses"
    )
    target_age: Optional[int] = Field(
        default=None, ge=0, le=120, description="Age at which projection stops"
    )
    monthly_investment: Decimal = Field(..., description="Monthly contribution")
    expected_annual_return: Decimal = Field(
        ..., description="Expected annual return in percent"
    )
    withdrawal_rate: Decimal = Field(
        default=Decimal("4"), ge=0, description="Safe withdrawal rate in percent"
    )


class FireCalculation(BaseModel):
    """Result of a FIRE calculation."""

    current_net_worth: Decimal
    target_amount: Decimal
    progress_percentage: Decimal
    years_to_fire: int
    fire_age: int
    monthly_passive_income: Decimal
    annual_expenses: Decimal
    projections: List[ProjectionPoint]


class FireGoal(BaseModel):
    """A saved FIRE goal with its scenario return assumptions."""

    target_amount: Decimal = Field(..., gt=0, description="Target corpus")
    start_year: int = Field(..., description="Year the goal was set")
    target_year: int = Field(..., description="Year the target should be reached")
    target_age: Optional[int] = Field(default=None, description="Target FIRE age")
    expected_annual_return: Decimal = Field(
        default=Decimal("12"), description="Moderate return assumption, percent"
    )
    conservative_return: Decimal = Field(
        default=Decimal("8"), description="Conservative return assumption, percent"
    )
    aggressive_return: Decimal = Field(
        default=Decimal("15"), description="Aggressive return assumption, percent"
    )
    inflation_rate: Decimal = Field(default=Decimal("6"), description="Inflation")
    withdrawal_rate: Decimal = Field(default=Decimal("4"), description="Withdrawal")
    monthly_expenses: Decimal = Field(default=ZERO, ge=0, description="Spending")

    @model_validator(mode="after")
    def validate_years(self) -> "FireGoal":
        if self.target_year < self.start_year:
            raise ValueError("target_year cannot be before start_year")
        return self


class FireProgress(BaseModel):
    """Where a FIRE goal stands today."""

    current_net_worth: Decimal
    target_amount: Decimal
    progress_percentage: Decimal
    years_remaining: int
    months_remaining: int
    gap_amount: Decimal
    current_monthly_contribution: Decimal
    total_monthly_contribution_needed: Decimal
    required_additional_contribution: Decimal
    target_year: int
    projected_fire_age: Optional[int] = None
    on_track: bool = Field(
        ...,
        description=(
            "Heuristic: progress percentage is at least the share of the goal "
            "window already elapsed. Not a projection."
        ),
    )


class FireScenario(BaseModel):
    """Required contribution under one return assumption."""

    name: str
    annual_return_rate: Decimal
    required_contribution: Decimal
    projected_amount: Decimal
    years_to_goal: int


class WealthProjector:
    """Projects wealth towards a target and solves for contributions."""

    def __init__(self, config: Optional[ProjectionConfig] = None):
        self.config = config or ProjectionConfig()

    def project(
        self,
        current_wealth: Any,
        current_age: int,
        monthly_contribution: Any,
        annual_return_rate: Any,
        target: Any,
        horizon_age: Optional[int] = None,
    ) -> List[ProjectionPoint]:
        """
        Project wealth year by year until the target or the horizon is reached.

        Each year applies twelve monthly steps of "add contribution, then
        grow". The series stops at the first year after today where wealth
        meets the target, or at the horizon. A projection with no contribution
        and no growth that already meets the target stops at year 0.

        Args:
            current_wealth: Wealth today
            current_age: Age today
            monthly_contribution: Amount added each month (>= 0)
            annual_return_rate: Annual return in percent (> -100)
            target: Target wealth
            horizon_age: Age at which to stop; defaults to the configured horizon

        Returns:
            Projection points with display values rounded to 2 dp

        Raises:
            InvalidConfigurationError: If contribution or rate is invalid
        """
        wealth = _to_decimal(current_wealth)
        contribution = _to_decimal(monthly_contribution)
        rate = _to_decimal(annual_return_rate)
        target = _to_decimal(target)
        self._validate(contribution, rate)

        if horizon_age is not None:
            horizon = max(horizon_age - current_age, 0)
        else:
            horizon = self.config.default_horizon_years

        monthly_rate = _monthly_rate(rate)
        annual_contribution = contribution * MONTHS_PER_YEAR
        stationary = contribution == 0 and rate == 0
        points: List[ProjectionPoint] = []

        for year in range(horizon + 1):
            year_start = wealth
            for _ in range(MONTHS_PER_YEAR):
                wealth += contribution
                wealth *= 1 + monthly_rate

            points.append(
                ProjectionPoint(
                    year_index=year,
                    age=current_age + year,
                    projected_wealth=wealth.quantize(CENT),
                    annual_contribution=annual_contribution.quantize(CENT),
                    annual_growth=(wealth - year_start - annual_contribution).quantize(
                        CENT
                    ),
                )
            )

            if wealth >= target and (year > 0 or stationary):
                break

        return points

    @staticmethod
    def years_to_target(points: Sequence[ProjectionPoint], target: Any) -> int:
        """Year index of the first point meeting the target, else the last year."""
        if not points:
            return 0
        target = _to_decimal(target)
        single = len(points) == 1
        for point in points:
            if point.projected_wealth >= target and (point.year_index > 0 or single):
                return point.year_index
        return points[-1].year_index

    @staticmethod
    def required_contribution(
        present_value: Any, target_value: Any, months: int, annual_return_rate: Any
    ) -> Decimal:
        """
        Monthly contribution that grows `present_value` to `target_value`.

        Uses the ordinary annuity formula at rate/100/12 per month. At a zero
        rate the gap is simply spread over the months.

        Args:
            present_value: Wealth today
            target_value: Wealth required after `months`
            months: Number of monthly contributions
            annual_return_rate: Annual return in percent

        Returns:
            Required monthly contribution; 0 when months <= 0 or when the
            present value alone reaches the target
        """
        if months <= 0:
            return ZERO

        present = _to_decimal(present_value)
        target = _to_decimal(target_value)
        monthly_rate = _monthly_rate(_to_decimal(annual_return_rate))

        if monthly_rate == 0:
            return (target - present) / months

        growth = (1 + monthly_rate) ** months
        remaining = target - present * growth
        if remaining <= 0:
            return ZERO
        return remaining / ((growth - 1) / monthly_rate)

    @staticmethod
    def projected_amount(
        present_value: Any,
        monthly_contribution: Any,
        months: int,
        annual_return_rate: Any,
    ) -> Decimal:
        """Future value of a lump sum plus monthly contributions, rounded to 2 dp."""
        present = _to_decimal(present_value)
        contribution = _to_decimal(monthly_contribution)
        monthly_rate = _monthly_rate(_to_decimal(annual_return_rate))
        months = max(months, 0)

        growth = (1 + monthly_rate) ** months
        if monthly_rate == 0:
            future_contributions = contribution * months
        else:
            future_contributions = contribution * (growth - 1) / monthly_rate
        return (present * growth + future_contributions).quantize(CENT)

    def calculate_fire(self, request: FireCalculationRequest) -> FireCalculation:
        """
        Project progress towards financial independence.

        The target defaults to a multiple (25x) of annual expenses. Passive
        income is the monthly amount the target sustains at the withdrawal rate.
        """
        annual_expenses = request.monthly_expenses * MONTHS_PER_YEAR
        target = request.target_amount
        if target is None:
            target = annual_expenses * self.config.expense_multiple
        if target <= 0:
            raise InvalidConfigurationError(
                "A FIRE target needs either a target amount or monthly expenses"
            )

        projections = self.project(
            request.current_net_worth,
            request.current_age,
            request.monthly_investment,
            request.expected_annual_return,
            target,
            request.target_age,
        )
        years_to_fire = self.years_to_target(projections, target)
        monthly_passive_income = target * request.withdrawal_rate / 100 / MONTHS_PER_YEAR

        return FireCalculation(
            current_net_worth=request.current_net_worth,
            target_amount=target,
            progress_percentage=(request.current_net_worth / target * 100).quantize(
                CENT
            ),
            years_to_fire=years_to_fire,
            fire_age=request.current_age + years_to_fire,
            monthly_passive_income=monthly_passive_income.quantize(CENT),
            annual_expenses=annual_expenses.quantize(CENT),
            projections=projections,
        )

    def goal_progress(
        self,
        goal: FireGoal,
        current_net_worth: Any,
        current_monthly_contribution: Any,
        current_year: int,
        current_age: Optional[int] = None,
    ) -> FireProgress:
        """
        Measure a saved goal against today's net worth and contributions.

        `on_track` is a heuristic: it compares the share of the target already
        accumulated with the share of the goal window already elapsed.
        """
        net_worth = _to_decimal(current_net_worth)
        current_contribution = _to_decimal(current_monthly_contribution)
        years_remaining = goal.target_year - current_year
        months_remaining = years_remaining * MONTHS_PER_YEAR

        progress = net_worth / goal.target_amount * 100
        total_needed = self.required_contribution(
            net_worth,
            goal.target_amount,
            max(months_remaining, 1),
            goal.expected_annual_return,
        )
        additional = max(ZERO, total_needed - current_contribution)

        window = goal.target_year - goal.start_year
        if window > 0:
            elapsed = Decimal(current_year - goal.start_year) / window * 100
        else:
            elapsed = Decimal("100")

        projected_fire_age = None
        if current_age is not None:
            projected_fire_age = current_age + max(years_remaining, 0)

        return FireProgress(
            current_net_worth=net_worth,
            target_amount=goal.target_amount,
            progress_percentage=progress.quantize(CENT),
            years_remaining=years_remaining,
            months_remaining=months_remaining,
            gap_amount=(goal.target_amount - net_worth).quantize(CENT),
            current_monthly_contribution=current_contribution.quantize(CENT),
            total_monthly_contribution_needed=total_needed.quantize(CENT),
            required_additional_contribution=additional.quantize(CENT),
            target_year=goal.target_year,
            projected_fire_age=projected_fire_age,
            on_track=progress >= elapsed,
        )

    def goal_scenarios(
        self, goal: FireGoal, current_net_worth: Any, current_year: int
    ) -> List[FireScenario]:
        """Required contribution under conservative, moderate and aggressive returns."""
        net_worth = _to_decimal(current_net_worth)
        years_remaining = goal.target_year - current_year
        months_remaining = years_remaining * MONTHS_PER_YEAR

        scenarios = []
        for name, rate in (
            ("Conservative", goal.conservative_return),
            ("Moderate", goal.expected_annual_return),
            ("Aggressive", goal.aggressive_return),
        ):
            required = self.required_contribution(
                net_worth, goal.target_amount, months_remaining, rate
            )
            scenarios.append(
                FireScenario(
                    name=name,
                    annual_return_rate=rate,
                    required_contribution=required.quantize(CENT),
                    projected_amount=self.projected_amount(
                        net_worth, required, months_remaining, rate
                    ),
                    years_to_goal=years_remaining,
                )
            )
        return scenarios

    @staticmethod
    def estimate_monthly_contribution(portfolios: Sequence[Portfolio]) -> Decimal:
        """Sum over SIP portfolios of their average contribution amount."""
        total = ZERO
        for portfolio in portfolios:
            if portfolio.asset_class != AssetClass.SIP:
                continue
            amounts = [t.amount for t in portfolio.transactions if t.is_contribution]
            if amounts:
                total += sum(amounts, ZERO) / len(amounts)
        return total

    @staticmethod
    def _validate(monthly_contribution: Decimal, annual_return_rate: Decimal) -> None:
        if monthly_contribution < 0:
            raise InvalidConfigurationError(
                f"Monthly contribution cannot be negative: {monthly_contribution}"
            )
        if annual_return_rate <= -100:
            raise InvalidConfigurationError(
                f"Annual return must be greater than -100%: {annual_return_rate}"
            )
