"""
Month grid utilities for contribution schedules and cash-flow timing.

This module provides the calendar helpers shared by the analytics engine:
first-of-month normalisation, month arithmetic, inclusive month ranges and the
day-count convention used to turn dates into fractional years.
"""

from datetime import date
from typing import List

DAYS_PER_YEAR = 365.0

# Indian financial years start in April
FINANCIAL_YEAR_START_MONTH = 4


def first_of_month(value: date) -> date:
    """Normalise a date to the first day of its month."""
    return value.replace(day=1)


def add_months(month: date, count: int) -> date:
    """
    Move a first-of-month date forward (or backward) by whole months.

    Args:
        month: Starting month (any day is normalised to the 1st)
        count: Number of months to move, may be negative

    Returns:
        First day of the resulting month
    """
    index = month.year * 12 + (month.month - 1) + count
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Number of whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_range(start: date, through: date) -> List[date]:
    """
    Inclusive list of months from start through the month of `through`.

    Args:
        start: First month of the range
        through: Last month of the range (inclusive)

    Returns:
        List of first-of-month dates, empty when start is after through
    """
    start_month = first_of_month(start)
    count = months_between(start_month, first_of_month(through)) + 1
    return [add_months(start_month, offset) for offset in range(max(count, 0))]


def financial_year_start(financial_year: int) -> date:
    """First month of the financial year that begins in `financial_year`."""
    return date(financial_year, FINANCIAL_YEAR_START_MONTH, 1)


def year_fraction(start: date, end: date) -> float:
    """Fractional years between two dates using an actual/365 day count."""
    return (end - start).days / DAYS_PER_YEAR
