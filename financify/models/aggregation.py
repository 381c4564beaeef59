"""
Aggregations over normalized obligations for dashboards and statistics.

Every function here is a pure map/filter/reduce over a record snapshot plus a
reference date. Nothing is cached; results can be re-derived at any time.
"""

from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field

from ..config import get_global_settings
from .calendar_math import DateLike, MonthGrid, end_of_month, month_key, parse_date, today
from .normalizer import monthly_equivalent_in_month, obligation_monthly_equivalent
from .records import Obligation
from .recurrence import is_visible_in_period, materialize_occurrences


class TrendPoint(BaseModel):
    """Value of one month bucket."""

    month: str = Field(..., description="Month key (YYYY-MM)")
    value: float = Field(..., description="Bucket total")


class BreakdownRow(BaseModel):
    """Labelled total of a breakdown."""

    label: str = Field(..., description="Group label")
    value: float = Field(..., description="Group total")


class MonthStats(BaseModel):
    """Summary statistics over month buckets."""

    average: float = Field(default=0.0, description="Mean bucket value")
    median: float = Field(default=0.0, description="Median bucket value")
    best: Optional[TrendPoint] = Field(default=None, description="Highest bucket")
    worst: Optional[TrendPoint] = Field(default=None, description="Lowest bucket")


def visible_in_month(items: Sequence[Obligation], month: DateLike) -> List[Obligation]:
    """Restrict a collection to the obligations visible in a month."""
    month_start = parse_date(month).replace(day=1)
    month_end = end_of_month(month_start)
    return [item for item in items if is_visible_in_period(item, month_start, month_end)]


def monthly_total(items: Sequence[Obligation]) -> float:
    """Sum of monthly equivalents."""
    return sum(obligation_monthly_equivalent(item) for item in items)


def yearly_total(items: Sequence[Obligation]) -> float:
    """Sum of yearly equivalents."""
    return monthly_total(items) * 12


def trend(
    items: Sequence[Obligation],
    months_back: Optional[int] = None,
    reference: Optional[DateLike] = None,
) -> List[TrendPoint]:
    """
    Build a monthly trend ending at the reference month.

    Each bucket holds the monthly equivalents of the items visible in that
    month. One-time items only count in their occurrence month.

    Args:
        items: Obligations to aggregate
        months_back: Number of buckets (defaults to the configured length)
        reference: Any date inside the last bucket (defaults to today)

    Returns:
        Exactly ``months_back`` points, oldest first
    """
    if months_back is None:
        months_back = get_global_settings().default_trend_months
    reference_date = parse_date(reference) if reference is not None else today()
    grid = MonthGrid(end_month=reference_date, months_back=max(0, months_back))

    points = []
    for key, month_start in zip(grid.keys(), grid.months()):
        value = sum(
            monthly_equivalent_in_month(item, month_start)
            for item in visible_in_month(items, month_start)
        )
        points.append(TrendPoint(month=key, value=value))
    return points


def breakdown_by(
    items: Sequence[Obligation], key_fn: Callable[[Obligation], str]
) -> List[BreakdownRow]:
    """
    Group items by a key and sum their monthly equivalents.

    Rows are sorted descending by value; ties keep first-seen key order.
    """
    totals: Dict[str, float] = {}
    for item in items:
        label = key_fn(item)
        totals[label] = totals.get(label, 0.0) + obligation_monthly_equivalent(item)

    rows = [BreakdownRow(label=label, value=value) for label, value in totals.items()]
    return sorted(rows, key=lambda row: row.value, reverse=True)


def top_n(items: Sequence[Obligation], n: Optional[int] = None) -> List[Obligation]:
    """Items with the largest monthly equivalents, descending."""
    if n is None:
        n = get_global_settings().default_top_n
    ranked = sorted(items, key=obligation_monthly_equivalent, reverse=True)
    return ranked[: max(0, n)]


def share_of_total(rows: Sequence[BreakdownRow]) -> List[BreakdownRow]:
    """Convert breakdown values into ratios of their total (zero for no data)."""
    total = sum(row.value for row in rows)
    if total == 0:
        return [BreakdownRow(label=row.label, value=0.0) for row in rows]
    return [BreakdownRow(label=row.label, value=row.value / total) for row in rows]


def income_by_month(
    entries: Sequence[Obligation], range_start: DateLike, range_end: DateLike
) -> List[TrendPoint]:
    """
    Sum the actual income received per month inside a date range.

    Recurring entries are expanded into their concrete occurrences first;
    cancelled entries are ignored. Months without income are omitted.

    Returns:
        Points sorted by month ascending
    """
    totals: Dict[str, float] = defaultdict(float)
    for entry in entries:
        if not entry.is_visible:
            continue
        for occurrence in materialize_occurrences(entry, range_start, range_end):
            totals[month_key(occurrence)] += entry.amount

    return [TrendPoint(month=month, value=totals[month]) for month in sorted(totals)]


def month_stats(points: Sequence[TrendPoint]) -> MonthStats:
    """Average, median, best and worst month of a series."""
    if not points:
        return MonthStats()

    values = np.array([point.value for point in points], dtype=np.float64)
    ranked = sorted(points, key=lambda point: point.value, reverse=True)
    return MonthStats(
        average=float(np.mean(values)),
        median=float(np.median(values)),
        best=ranked[0],
        worst=ranked[-1],
    )


def month_over_month_change(points: Sequence[TrendPoint]) -> float:
    """Percent change of the last bucket against the one before (0 if undefined)."""
    if len(points) < 2:
        return 0.0
    previous = points[-2].value
    if previous == 0:
        return 0.0
    return (points[-1].value - previous) / previous * 100
