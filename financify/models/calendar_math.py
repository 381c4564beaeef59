"""
Calendar arithmetic and month grids for the obligation engine.

This module provides pure date arithmetic on calendar dates (no time of day,
no timezone), month grids for trend reporting, and inflation adjustment for
real vs nominal values.
"""

from datetime import date, timedelta
from typing import List, Union

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field

from .errors import MalformedDate

DateLike = Union[date, str]


def parse_date(value: DateLike) -> date:
    """
    Parse a calendar date.

    Args:
        value: A ``date`` or an ISO ``YYYY-MM-DD`` string

    Returns:
        The calendar date

    Raises:
        MalformedDate: If the value is not a valid calendar date
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise MalformedDate(f"Expected a YYYY-MM-DD string, got {value!r}")

    parts = value.strip().split("-")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise MalformedDate(f"Date must be in YYYY-MM-DD format: {value!r}")
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError as e:
        raise MalformedDate(f"Invalid calendar date {value!r}: {e}") from e


def to_date_string(value: DateLike) -> str:
    """Format a calendar date as ``YYYY-MM-DD``."""
    return parse_date(value).isoformat()


def today() -> date:
    """Get the current calendar date."""
    return date.today()


def add_days(value: DateLike, days: int) -> date:
    """Add (or subtract, for negative ``days``) whole days."""
    return parse_date(value) + timedelta(days=days)


def subtract_days(value: DateLike, days: int) -> date:
    """Subtract whole days."""
    return add_days(value, -days)


def add_months(value: DateLike, months: int) -> date:
    """
    Add calendar months, clamping to the last valid day of the target month.

    Jan 31 plus one month is Feb 28 (or Feb 29 in a leap year).
    """
    return parse_date(value) + relativedelta(months=months)


def start_of_month(value: DateLike) -> date:
    """First day of the month containing ``value``."""
    return parse_date(value).replace(day=1)


def end_of_month(value: DateLike) -> date:
    """Last day of the month containing ``value``."""
    return parse_date(value) + relativedelta(day=31)


def start_of_year(value: DateLike) -> date:
    """First day of the year containing ``value``."""
    return parse_date(value).replace(month=1, day=1)


def end_of_year(value: DateLike) -> date:
    """Last day of the year containing ``value``."""
    return parse_date(value).replace(month=12, day=31)


def compare_dates(a: DateLike, b: DateLike) -> int:
    """Compare two calendar dates, returning -1, 0 or 1."""
    first, second = parse_date(a), parse_date(b)
    if first < second:
        return -1
    if first > second:
        return 1
    return 0


def difference_in_days(start: DateLike, end: DateLike) -> int:
    """Number of days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (parse_date(end) - parse_date(start)).days


def within_days(value: DateLike, days: int, reference: DateLike) -> bool:
    """True iff ``value`` lies in ``[reference, reference + days]`` inclusive."""
    diff = difference_in_days(reference, value)
    return 0 <= diff <= days


def month_key(value: DateLike) -> str:
    """Month bucket key in ``YYYY-MM`` form."""
    return parse_date(value).strftime("%Y-%m")


class MonthGrid(BaseModel):
    """Run of consecutive calendar months ending at a reference month."""

    end_month: date = Field(..., description="Any date inside the last month")
    months_back: int = Field(..., ge=0, description="Number of months in the grid")

    def months(self) -> List[date]:
        """Get the first day of every month in the grid, oldest first."""
        last = start_of_month(self.end_month)
        return [add_months(last, -offset) for offset in range(self.months_back - 1, -1, -1)]

    def keys(self) -> List[str]:
        """Get the ``YYYY-MM`` keys of the grid, oldest first."""
        return [month_key(month) for month in self.months()]

    def __len__(self) -> int:
        """Get the number of months in the grid."""
        return self.months_back


class InflationAdjuster(BaseModel):
    """Converts nominal balances into real (start-date purchasing power) values."""

    annual_inflation_rate: float = Field(
        default=0.0, description="Annual inflation rate in percent"
    )

    def inflation_factor(self, months_elapsed: int) -> float:
        """Cumulative price factor after ``months_elapsed`` months."""
        return (1 + self.annual_inflation_rate / 100) ** (months_elapsed / 12)

    def to_real_value(self, nominal_amount: float, months_elapsed: int) -> float:
        """Deflate a nominal amount back to start-date money."""
        return nominal_amount / self.inflation_factor(months_elapsed)

