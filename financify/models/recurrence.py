"""
Recurrence resolution for obligations.

This module turns an obligation's anchor date and frequency into concrete
calendar occurrences: the next occurrence on/after a reference date, the
occurrences inside a date range, cancellation deadlines and upcoming payments.
Every advance loop is bounded by an iteration guard so malformed inputs
still terminate.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from ..config import get_global_settings
from .calendar_math import DateLike, add_days, add_months, parse_date, today, within_days
from .records import Obligation, RecurrenceFrequency

logger = logging.getLogger(__name__)


def advance(candidate: date, frequency: RecurrenceFrequency) -> date:
    """Step a candidate forward by one period, clamping month ends."""
    period_days = frequency.period_days
    if period_days is not None:
        return add_days(candidate, period_days)
    return add_months(candidate, frequency.period_months)


def _iteration_guard(guard: Optional[int]) -> int:
    if guard is not None:
        return guard
    return get_global_settings().recurrence_iteration_guard


def next_occurrence(
    obligation: Obligation,
    reference: Optional[DateLike] = None,
    guard: Optional[int] = None,
) -> date:
    """
    Get the next occurrence of an obligation on or after a reference date.

    An explicit next date always wins and is returned verbatim. One-time
    obligations return their anchor date regardless of the reference date.

    Args:
        obligation: The obligation to resolve
        reference: Reference date (defaults to today)
        guard: Maximum number of advances (defaults to the configured guard)

    Returns:
        The next occurrence date
    """
    if obligation.explicit_next_date is not None:
        return obligation.explicit_next_date

    anchor = obligation.anchor_date
    if obligation.frequency.kind == "one-time":
        return anchor

    reference_date = parse_date(reference) if reference is not None else today()
    max_steps = _iteration_guard(guard)

    candidate = anchor
    steps = 0
    while candidate < reference_date and steps < max_steps:
        steps += 1
        candidate = advance(candidate, obligation.frequency)

    if candidate < reference_date:
        logger.warning(
            f"Iteration guard of {max_steps} hit resolving obligation {obligation.id}; "
            f"returning {candidate.isoformat()}"
        )
    return candidate


def is_visible_in_period(
    obligation: Obligation, period_start: DateLike, period_end: DateLike
) -> bool:
    """
    Check whether an obligation contributes to a billing period.

    Active and paused obligations are visible when they started on or before
    the period end and have not ended before the period start. Cancelled
    obligations are never visible.
    """
    if not obligation.is_visible:
        return False
    if obligation.anchor_date > parse_date(period_end):
        return False
    if obligation.end_date is not None and obligation.end_date < parse_date(period_start):
        return False
    return True


def cancel_by_date(
    obligation: Obligation,
    notice_period_days: int,
    reference: Optional[DateLike] = None,
) -> date:
    """Latest date the holder can act to avoid the next charge."""
    return add_days(next_occurrence(obligation, reference), -notice_period_days)


def upcoming_payments(
    obligations: Sequence[Obligation],
    range_days: Optional[int] = None,
    reference: Optional[DateLike] = None,
) -> List[Tuple[Obligation, date]]:
    """
    List active obligations whose next occurrence falls within a window.

    Paused obligations are excluded. Results are sorted by occurrence date;
    obligations sharing a date keep their input order.

    Args:
        obligations: Obligations to scan
        range_days: Window length in days (defaults to the configured window)
        reference: Window start (defaults to today)

    Returns:
        List of (obligation, next occurrence) pairs
    """
    if range_days is None:
        range_days = get_global_settings().default_upcoming_days
    reference_date = parse_date(reference) if reference is not None else today()

    upcoming = []
    for obligation in obligations:
        if obligation.status != "active":
            continue
        occurrence = next_occurrence(obligation, reference_date)
        if within_days(occurrence, range_days, reference_date):
            upcoming.append((obligation, occurrence))

    return sorted(upcoming, key=lambda pair: pair[1])


def materialize_occurrences(
    obligation: Obligation,
    range_start: DateLike,
    range_end: DateLike,
    guard: Optional[int] = None,
) -> List[date]:
    """
    List every occurrence date of an obligation inside a date range.

    Occurrences after the obligation's end date are dropped. The explicit
    next-date override is ignored here; materialization follows the schedule.

    Args:
        obligation: The obligation to expand
        range_start: First day of the range (inclusive)
        range_end: Last day of the range (inclusive)
        guard: Maximum number of occurrences walked

    Returns:
        Occurrence dates in ascending order
    """
    start = parse_date(range_start)
    end = parse_date(range_end)
    anchor = obligation.anchor_date

    if obligation.end_date is not None and obligation.end_date < start:
        return []
    if anchor > end:
        return []

    if obligation.frequency.kind == "one-time":
        within_end = obligation.end_date is None or anchor <= obligation.end_date
        return [anchor] if start <= anchor and within_end else []

    max_steps = (
        guard if guard is not None else get_global_settings().materialize_iteration_guard
    )

    occurrences = []
    candidate = anchor
    steps = 0
    while candidate <= end and steps < max_steps:
        if obligation.end_date is not None and candidate > obligation.end_date:
            break
        if candidate >= start:
            occurrences.append(candidate)
        steps += 1
        candidate = advance(candidate, obligation.frequency)

    if steps >= max_steps and candidate <= end:
        logger.warning(
            f"Iteration guard of {max_steps} hit materializing obligation {obligation.id}"
        )
    return occurrences
