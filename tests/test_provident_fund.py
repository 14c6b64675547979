"""
Tests for EPF contribution schedules.

This module tests the monthly contribution split, the pension carve-out cap,
schedule generation and extension, wage revisions and account valuation.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from wealthtrack.models.errors import InvalidConfigurationError
from wealthtrack.models.provident_fund import (
    EpfContribution,
    ProvidentFundAccount,
    ProvidentFundPolicy,
    ProvidentFundScheduler,
)


@pytest.fixture
def scheduler():
    """Scheduler with the statutory default policy."""
    return ProvidentFundScheduler()


@pytest.fixture
def account():
    """A pension member earning 20,000 a month with opening balances."""
    return ProvidentFundAccount(
        account_id="epf-1",
        name="Employer Ltd",
        opening_employee_balance=Decimal("50000"),
        opening_employer_balance=Decimal("30000"),
        wage=Decimal("20000"),
        is_pension_member=True,
        annual_interest_rate=Decimal("8.25"),
    )


class TestContributionSplit:
    """Test the per-month contribution formula."""

    def test_pension_cap_applies_above_ceiling(self, scheduler):
        """Wages above the ceiling divert exactly the capped pension amount."""
        contribution = scheduler.contribution_for(
            date(2024, 4, 1), Decimal("20000"), True
        )

        assert contribution.employee_share == Decimal("2400.00")
        assert contribution.pension_wage_base == Decimal("15000")
        assert contribution.pension_contribution == Decimal("1250.00")
        assert contribution.employer_share == Decimal("1150.00")

    def test_pension_below_ceiling_rounded(self, scheduler):
        """Pension on a lower wage is rounded to whole units."""
        contribution = scheduler.contribution_for(
            date(2024, 4, 1), Decimal("10000"), True
        )

        # 10000 * 0.0833 = 833.0
        assert contribution.pension_contribution == Decimal("833")
        assert contribution.employer_share == Decimal("1200") - Decimal("833")

    def test_fractional_pension_rounds_to_whole_units(self, scheduler):
        """A fractional pension amount below the cap is rounded half-up."""
        contribution = scheduler.contribution_for(
            date(2024, 4, 1), Decimal("12345"), True
        )

        # 12345 * 0.0833 = 1028.3385
        assert contribution.pension_contribution == Decimal("1028")
        assert contribution.employer_share == Decimal("1481.40") - Decimal("1028")

    def test_rounding_quantum_is_configurable(self):
        """A finer quantum keeps paise in the pension amount."""
        scheduler = ProvidentFundScheduler(
            ProvidentFundPolicy(pension_rounding_quantum=Decimal("0.01"))
        )

        contribution = scheduler.contribution_for(
            date(2024, 4, 1), Decimal("12345"), True
        )

        assert contribution.pension_contribution == Decimal("1028.34")

    def test_non_member_keeps_full_employer_share(self, scheduler):
        """Without pension membership the employer share is not split."""
        contribution = scheduler.contribution_for(
            date(2024, 4, 1), Decimal("20000"), False
        )

        assert contribution.employer_share == Decimal("2400.00")
        assert contribution.pension_wage_base == Decimal("0")
        assert contribution.pension_contribution == Decimal("0")

    def test_month_normalised(self, scheduler):
        """Contribution months are first-of-month dates."""
        contribution = scheduler.contribution_for(
            date(2024, 4, 17), Decimal("20000"), True
        )

        assert contribution.month == date(2024, 4, 1)

    def test_custom_policy(self):
        """Policy rates and caps are configurable."""
        scheduler = ProvidentFundScheduler(
            ProvidentFundPolicy(
                pension_wage_ceiling=Decimal("21000"),
                pension_contribution_cap=Decimal("1750"),
            )
        )

        contribution = scheduler.contribution_for(
            date(2024, 4, 1), Decimal("30000"), True
        )

        # 21000 * 0.0833 = 1749.3 -> 1749
        assert contribution.pension_contribution == Decimal("1749")

    def test_negative_wage_rejected(self, scheduler):
        """Negative wages are invalid configuration."""
        with pytest.raises(InvalidConfigurationError):
            scheduler.contribution_for(date(2024, 4, 1), Decimal("-1"), True)


class TestGenerate:
    """Test schedule generation."""

    def test_generate_inclusive_range(self, scheduler, account):
        """Both the start and end months are booked."""
        result = scheduler.generate(account, date(2024, 4, 1), date(2024, 6, 15))

        assert [c.month for c in result.contributions] == [
            date(2024, 4, 1),
            date(2024, 5, 1),
            date(2024, 6, 1),
        ]

    def test_generate_is_idempotent(self, scheduler, account):
        """Re-running with a covered month appends nothing."""
        once = scheduler.generate(account, date(2024, 4, 1), date(2024, 6, 1))
        twice = scheduler.generate(once, date(2024, 4, 1), date(2024, 6, 1))

        assert twice.contributions == once.contributions
        assert twice.current_value == once.current_value

    def test_generate_appends_after_last_month(self, scheduler, account):
        """Existing schedules resume from the month after the last one."""
        once = scheduler.generate(account, date(2024, 4, 1), date(2024, 5, 1))
        extended = scheduler.generate(once, date(2024, 4, 1), date(2024, 8, 1))

        assert len(extended.contributions) == 5
        assert extended.contributions[:2] == once.contributions
        assert extended.contributions[-1].month == date(2024, 8, 1)

    def test_input_not_modified(self, scheduler, account):
        """Generation returns a new snapshot."""
        scheduler.generate(account, date(2024, 4, 1), date(2024, 6, 1))

        assert account.contributions == []

    def test_setup_starts_in_april(self, scheduler, account):
        """Setup books from April of the financial year through today."""
        result = scheduler.setup(account, 2024, date(2024, 9, 20))

        assert result.contributions[0].month == date(2024, 4, 1)
        assert result.contributions[-1].month == date(2024, 9, 1)
        assert len(result.contributions) == 6

    def test_extend_to(self, scheduler, account):
        """Extension brings the schedule up to the current month."""
        started = scheduler.setup(account, 2024, date(2024, 6, 1))
        extended = scheduler.extend_to(started, date(2025, 1, 3))

        assert extended.contributions[-1].month == date(2025, 1, 1)
        assert len(extended.contributions) == 10

    def test_extend_to_when_current(self, scheduler, account):
        """Extending an up-to-date schedule is a no-op."""
        started = scheduler.setup(account, 2024, date(2024, 6, 1))

        assert scheduler.extend_to(started, date(2024, 6, 28)) == started


class TestValuation:
    """Test interest and current value."""

    def test_current_value_formula(self, scheduler, account):
        """Simple interest on opening balance plus contributions."""
        result = scheduler.generate(account, date(2024, 4, 1), date(2025, 3, 1))

        opening = Decimal("80000")
        total = Decimal("3550") * 12
        interest = (opening + total) * Decimal("8.25") / 100 * (Decimal(12) / 12)
        assert result.current_value == opening + total + interest
        assert result.current_value == Decimal("132714.5")

    def test_empty_schedule_value(self, scheduler, account):
        """No months booked means no interest."""
        assert scheduler.current_value(account) == Decimal("80000")

    def test_summary_splits_interest(self, scheduler, account):
        """Interest is split evenly between the two sides."""
        result = scheduler.generate(account, date(2024, 4, 1), date(2025, 3, 1))

        summary = scheduler.summarize(result)

        assert summary.total_employee_contribution == Decimal("28800")
        assert summary.total_employer_contribution == Decimal("13800")
        assert summary.interest_earned == summary.current_value - Decimal("122600")
        assert (
            summary.current_employee_value + summary.current_employer_value
            == summary.current_value
        )

    def test_negative_interest_rate_rejected(self, scheduler, account):
        """Negative interest rates are invalid configuration."""
        bad = account.model_copy(update={"annual_interest_rate": Decimal("-1")})

        with pytest.raises(InvalidConfigurationError):
            scheduler.current_value(bad)


class TestWageChange:
    """Test wage revisions."""

    def test_rewrites_from_effective_month(self, scheduler, account):
        """Months on or after the effective month use the new wage."""
        result = scheduler.generate(account, date(2024, 4, 1), date(2024, 9, 1))

        revised = scheduler.apply_wage_change(
            result, Decimal("10000"), date(2024, 7, 15)
        )

        assert revised.wage == Decimal("10000")
        assert revised.contributions[:3] == result.contributions[:3]
        assert all(c.wage_base == Decimal("10000") for c in revised.contributions[3:])
        assert revised.current_value < result.current_value

    def test_future_months_use_new_wage(self, scheduler, account):
        """Later extensions pick up the revised wage."""
        result = scheduler.generate(account, date(2024, 4, 1), date(2024, 5, 1))
        revised = scheduler.apply_wage_change(result, Decimal("30000"), date(2024, 6, 1))

        extended = scheduler.extend_to(revised, date(2024, 6, 1))

        assert extended.contributions[-1].wage_base == Decimal("30000")

    def test_negative_wage_rejected(self, scheduler, account):
        """A negative revised wage is invalid configuration."""
        with pytest.raises(InvalidConfigurationError):
            scheduler.apply_wage_change(account, Decimal("-5"), date(2024, 4, 1))


class TestAccountValidation:
    """Test schedule invariants on the account model."""

    def test_duplicate_months_rejected(self, scheduler):
        """Contributions must be strictly increasing by month."""
        month = scheduler.contribution_for(date(2024, 4, 1), Decimal("20000"), True)

        with pytest.raises(ValidationError, match="strictly increasing"):
            ProvidentFundAccount(
                account_id="epf",
                wage=Decimal("20000"),
                annual_interest_rate=Decimal("8.25"),
                contributions=[month, month],
            )

    def test_contribution_month_must_be_first(self):
        """Contribution months are first-of-month dates."""
        with pytest.raises(ValidationError):
            EpfContribution(
                month=date(2024, 4, 2),
                wage_base=Decimal("1"),
                employee_share=Decimal("0"),
                employer_share=Decimal("0"),
            )
