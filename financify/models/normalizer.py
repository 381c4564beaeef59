"""
Monetary normalization of amounts tied to different frequencies.

Converts an amount per occurrence into comparable monthly and yearly
equivalents using fixed conventions (13 four-week periods, 52 weeks,
26 fortnights and 365 days per year).
"""

from typing import Any, Dict

from .calendar_math import DateLike, month_key
from .records import Obligation, RecurrenceFrequency

# Occurrences per year for each fixed frequency
OCCURRENCES_PER_YEAR: Dict[str, float] = {
    "monthly": 12,
    "yearly": 1,
    "four-weekly": 13,
    "weekly": 52,
    "biweekly": 26,
    # One-time amounts are amortized over a year
    "one-time": 1,
}

DAYS_PER_YEAR = 365


def monthly_equivalent(amount: float, frequency: Any) -> float:
    """
    Convert an amount per occurrence into its monthly equivalent.

    Args:
        amount: Amount per occurrence
        frequency: ``RecurrenceFrequency`` or frequency kind string

    Returns:
        Monthly equivalent amount
    """
    frequency = RecurrenceFrequency.of(frequency)
    if frequency.kind == "monthly":
        return amount
    if frequency.kind == "custom-months":
        return amount / frequency.period_months
    if frequency.kind == "custom-days":
        return amount * DAYS_PER_YEAR / frequency.period_days / 12
    return amount * OCCURRENCES_PER_YEAR[frequency.kind] / 12


def yearly_equivalent(amount: float, frequency: Any) -> float:
    """Convert an amount per occurrence into its yearly equivalent."""
    return monthly_equivalent(amount, frequency) * 12


def obligation_monthly_equivalent(obligation: Obligation) -> float:
    """Monthly equivalent of an obligation's amount."""
    return monthly_equivalent(obligation.amount, obligation.frequency)


def obligation_yearly_equivalent(obligation: Obligation) -> float:
    """Yearly equivalent of an obligation's amount."""
    return yearly_equivalent(obligation.amount, obligation.frequency)


def monthly_equivalent_in_month(obligation: Obligation, month: DateLike) -> float:
    """
    Monthly equivalent an obligation contributes to one month bucket.

    One-time obligations only land in the bucket of their occurrence month
    and contribute nothing to any other month.
    """
    if obligation.frequency.kind == "one-time":
        if month_key(obligation.anchor_date) != month_key(month):
            return 0.0
    return obligation_monthly_equivalent(obligation)
