"""
Employees' Provident Fund (EPF) contribution schedules.

This module generates the month-by-month EPF ledger for a salaried account:
the employee share, the employer share and the mandatory pension carve-out
from the employer side, capped at the statutory wage ceiling. It also values
the account with the simple annual interest the fund declares, handles wage
revisions and extends schedules up to the current month.
"""

import datetime
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidConfigurationError
from .time_grid import add_months, financial_year_start, first_of_month, month_range

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class ProvidentFundPolicy(BaseModel):
    """Statutory contribution rates and caps."""

    model_config = ConfigDict(frozen=True)

    employee_rate: Decimal = Field(
        default=Decimal("0.12"), ge=0, description="Employee share of wage"
    )
    employer_rate: Decimal = Field(
        default=Decimal("0.12"), ge=0, description="Employer share of wage"
    )
    pension_rate: Decimal = Field(
        default=Decimal("0.0833"), ge=0, description="Pension carve-out rate"
    )
    pension_wage_ceiling: Decimal = Field(
        default=Decimal("15000"), ge=0, description="Wage ceiling for pension"
    )
    pension_contribution_cap: Decimal = Field(
        default=Decimal("1250"), ge=0, description="Maximum monthly pension amount"
    )
    pension_rounding_quantum: Decimal = Field(
        default=Decimal("1"), gt=0, description="Pension amount rounding step"
    )


class EpfContribution(BaseModel):
    """Contributions booked for one calendar month."""

    model_config = ConfigDict(frozen=True)

    month: datetime.date = Field(..., description="First day of the month")
    wage_base: Decimal = Field(..., ge=0, description="Wage the shares apply to")
    employee_share: Decimal = Field(..., ge=0, description="Employee contribution")
    employer_share: Decimal = Field(..., description="Employer contribution to EPF")
    pension_wage_base: Decimal = Field(
        default=ZERO, ge=0, description="Wage used for the pension carve-out"
    )
    pension_contribution: Decimal = Field(
        default=ZERO, ge=0, description="Employer amount diverted to pension"
    )

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: datetime.date) -> datetime.date:
        if v.day != 1:
            raise ValueError("Contribution month must be the first day of a month")
        return v

    @property
    def total(self) -> Decimal:
        return self.employee_share + self.employer_share


class ProvidentFundAccount(BaseModel):
    """An EPF account with its opening balances and monthly schedule."""

    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., min_length=1, description="Account identifier")
    name: str = Field(default="", description="Employer or fund name")
    opening_employee_balance: Decimal = Field(
        default=ZERO, description="Employee balance carried into the schedule"
    )
    opening_employer_balance: Decimal = Field(
        default=ZERO, description="Employer balance carried into the schedule"
    )
    wage: Decimal = Field(..., description="Current monthly basic wage")
    is_pension_member: bool = Field(
        default=True, description="Whether the pension carve-out applies"
    )
    annual_interest_rate: Decimal = Field(
        ..., description="Declared annual interest rate in percent"
    )
    contributions: List[EpfContribution] = Field(
        default_factory=list, description="Monthly schedule, oldest first"
    )
    current_value: Decimal = Field(default=ZERO, description="Valuation")

    @field_validator("contributions")
    @classmethod
    def validate_contributions(cls, v: List[EpfContribution]) -> List[EpfContribution]:
        for previous, current in zip(v, v[1:]):
            if current.month <= previous.month:
                raise ValueError(
                    "Contributions must be strictly increasing by month "
                    f"({current.month} follows {previous.month})"
                )
        return v

    @property
    def opening_balance(self) -> Decimal:
        return self.opening_employee_balance + self.opening_employer_balance

    @property
    def last_month(self) -> Optional[datetime.date]:
        return self.contributions[-1].month if self.contributions else None


class ProvidentFundSummary(BaseModel):
    """Per-side totals and valuation of an EPF account."""

    account_id: str
    name: str
    opening_employee_balance: Decimal
    opening_employer_balance: Decimal
    total_employee_contribution: Decimal
    total_employer_contribution: Decimal
    current_employee_value: Decimal
    current_employer_value: Decimal
    interest_earned: Decimal
    current_value: Decimal
    annual_interest_rate: Decimal
    is_pension_member: bool
    wage: Decimal
    contributions: List[EpfContribution]


class ProvidentFundScheduler:
    """Builds and values EPF contribution schedules under a policy."""

    def __init__(self, policy: Optional[ProvidentFundPolicy] = None):
        self.policy = policy or ProvidentFundPolicy()

    def contribution_for(
        self, month: datetime.date, wage: Decimal, is_pension_member: bool
    ) -> EpfContribution:
        """
        Compute the contribution split for one month.

        Args:
            month: Month being booked
            wage: Monthly basic wage
            is_pension_member: Whether the pension carve-out applies

        Returns:
            EpfContribution for the month
        """
        if wage < 0:
            raise InvalidConfigurationError(f"Wage cannot be negative: {wage}")

        policy = self.policy
        employee_share = wage * policy.employee_rate
        employer_gross = wage * policy.employer_rate

        pension_wage_base = ZERO
        pension_contribution = ZERO
        if is_pension_member:
            pension_wage_base = min(wage, policy.pension_wage_ceiling)
            pension_contribution = min(
                (pension_wage_base * policy.pension_rate).quantize(
                    policy.pension_rounding_quantum, rounding=ROUND_HALF_UP
                ),
                policy.pension_contribution_cap,
            )

        return EpfContribution(
            month=first_of_month(month),
            wage_base=wage,
            employee_share=employee_share,
            employer_share=employer_gross - pension_contribution,
            pension_wage_base=pension_wage_base,
            pension_contribution=pension_contribution,
        )

    def interest(self, account: ProvidentFundAccount) -> Decimal:
        """Simple interest on opening balance plus contributions, applied once."""
        total = sum((c.total for c in account.contributions), ZERO)
        months_elapsed = Decimal(len(account.contributions))
        rate = account.annual_interest_rate / 100
        return (account.opening_balance + total) * rate * (months_elapsed / 12)

    def current_value(self, account: ProvidentFundAccount) -> Decimal:
        """Opening balance plus contributions plus interest."""
        self._validate(account)
        total = sum((c.total for c in account.contributions), ZERO)
        return account.opening_balance + total + self.interest(account)

    def generate(
        self,
        account: ProvidentFundAccount,
        start_month: datetime.date,
        through_month: datetime.date,
    ) -> ProvidentFundAccount:
        """
        Append monthly contributions up to and including `through_month`.

        When the account already has a schedule, appending resumes from the
        month after the last recorded month so the schedule stays gap-free;
        months already recorded are never rewritten.

        Args:
            account: Account snapshot
            start_month: First month to book for an empty schedule
            through_month: Last month to book (inclusive)

        Returns:
            New account snapshot with the extended schedule and refreshed value
        """
        self._validate(account)
        if account.last_month is not None:
            start_month = add_months(account.last_month, 1)

        new_contributions = [
            self.contribution_for(month, account.wage, account.is_pension_member)
            for month in month_range(start_month, through_month)
        ]
        if new_contributions:
            logger.debug(
                f"Appending {len(new_contributions)} EPF months to {account.account_id}"
            )

        updated = account.model_copy(
            update={"contributions": account.contributions + new_contributions}
        )
        return self._refresh(updated)

    def setup(
        self,
        account: ProvidentFundAccount,
        financial_year: int,
        today: datetime.date,
    ) -> ProvidentFundAccount:
        """Generate the schedule from April of `financial_year` through today."""
        return self.generate(account, financial_year_start(financial_year), today)

    def extend_to(
        self, account: ProvidentFundAccount, today: datetime.date
    ) -> ProvidentFundAccount:
        """Bring an existing schedule up to the month of `today`."""
        if account.last_month is None:
            return account
        return self.generate(account, add_months(account.last_month, 1), today)

    def apply_wage_change(
        self,
        account: ProvidentFundAccount,
        new_wage: Decimal,
        effective_from_month: datetime.date,
    ) -> ProvidentFundAccount:
        """
        Revise the wage from a month onward.

        Every recorded month on or after `effective_from_month` is recomputed
        with the new wage; earlier months are left as booked.
        """
        if new_wage < 0:
            raise InvalidConfigurationError(f"Wage cannot be negative: {new_wage}")

        effective = first_of_month(effective_from_month)
        contributions = [
            self.contribution_for(c.month, new_wage, account.is_pension_member)
            if c.month >= effective
            else c
            for c in account.contributions
        ]
        logger.info(
            f"Wage for EPF account {account.account_id} changed to {new_wage} "
            f"from {effective}"
        )
        updated = account.model_copy(
            update={"wage": new_wage, "contributions": contributions}
        )
        return self._refresh(updated)

    def summarize(self, account: ProvidentFundAccount) -> ProvidentFundSummary:
        """Split the valuation into employee and employer sides."""
        self._validate(account)
        total_employee = sum((c.employee_share for c in account.contributions), ZERO)
        total_employer = sum((c.employer_share for c in account.contributions), ZERO)
        interest = self.interest(account)

        return ProvidentFundSummary(
            account_id=account.account_id,
            name=account.name,
            opening_employee_balance=account.opening_employee_balance,
            opening_employer_balance=account.opening_employer_balance,
            total_employee_contribution=total_employee,
            total_employer_contribution=total_employer,
            current_employee_value=account.opening_employee_balance
            + total_employee
            + interest / 2,
            current_employer_value=account.opening_employer_balance
            + total_employer
            + interest / 2,
            interest_earned=interest,
            current_value=self.current_value(account),
            annual_interest_rate=account.annual_interest_rate,
            is_pension_member=account.is_pension_member,
            wage=account.wage,
            contributions=account.contributions,
        )

    def _refresh(self, account: ProvidentFundAccount) -> ProvidentFundAccount:
        return account.model_copy(update={"current_value": self.current_value(account)})

    @staticmethod
    def _validate(account: ProvidentFundAccount) -> None:
        if account.wage < 0:
            raise InvalidConfigurationError(f"Wage cannot be negative: {account.wage}")
        if account.annual_interest_rate < 0:
            raise InvalidConfigurationError(
                f"Interest rate cannot be negative: {account.annual_interest_rate}"
            )
