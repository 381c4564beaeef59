"""
Tests for aggregations over obligations.

This module tests totals, monthly trends, breakdowns, rankings, income per
month and month statistics.
"""

import pytest

from financify.models.aggregation import (
    BreakdownRow,
    TrendPoint,
    breakdown_by,
    income_by_month,
    month_over_month_change,
    month_stats,
    monthly_total,
    share_of_total,
    top_n,
    trend,
    visible_in_month,
    yearly_total,
)
from financify.models.records import IncomeEntry, Subscription


def make_subscription(id, amount, anchor_date="2025-01-01", **kwargs):
    """Create a monthly subscription."""
    kwargs.setdefault("frequency", "monthly")
    return Subscription(id=id, amount=amount, anchor_date=anchor_date, **kwargs)


class TestTotals:
    """Test monthly and yearly totals."""

    def test_totals(self):
        """Test totals sum the monthly equivalents."""
        items = [
            make_subscription("a", 10),
            make_subscription("b", 120, frequency="yearly"),
        ]

        assert monthly_total(items) == 20
        assert yearly_total(items) == 240

    def test_empty(self):
        assert monthly_total([]) == 0
        assert yearly_total([]) == 0

    def test_visible_in_month(self):
        """Test cancelled, ended and future items are filtered out."""
        items = [
            make_subscription("live", 10),
            make_subscription("paused", 10, status="paused"),
            make_subscription("cancelled", 10, status="cancelled"),
            make_subscription("ended", 10, end_date="2025-02-28"),
            make_subscription("future", 10, anchor_date="2025-06-01"),
        ]

        visible = visible_in_month(items, "2025-03-15")

        assert [item.id for item in visible] == ["live", "paused"]


class TestTrend:
    """Test monthly trend buckets."""

    def test_items_join_in_their_start_month(self):
        """Test a second subscription raises the trend from its start month."""
        items = [
            make_subscription("1", 10, anchor_date="2025-01-01"),
            make_subscription("2", 10, anchor_date="2025-07-10"),
        ]

        points = trend(items, months_back=4, reference="2025-08-15")

        assert [point.month for point in points] == [
            "2025-05",
            "2025-06",
            "2025-07",
            "2025-08",
        ]
        assert [point.value for point in points] == [10, 10, 20, 20]

    def test_length_matches_months_back(self, streaming_subscription):
        """Test the series always has the requested number of buckets."""
        assert len(trend([streaming_subscription], months_back=7, reference="2025-03-01")) == 7
        assert len(trend([], months_back=3, reference="2025-03-01")) == 3
        assert trend([streaming_subscription], months_back=0, reference="2025-03-01") == []

    def test_default_length_from_settings(self, streaming_subscription):
        """Test the configured trend length is used by default."""
        assert len(trend([streaming_subscription], reference="2025-03-01")) == 12

    def test_one_time_only_in_occurrence_month(self):
        """Test a one-time amount counts only in its own month."""
        repair = make_subscription(
            "repair", 120, anchor_date="2025-07-20", frequency="one-time"
        )

        points = trend([repair], months_back=3, reference="2025-08-01")

        assert [point.value for point in points] == [0, 10, 0]

    def test_year_boundary(self, streaming_subscription):
        """Test buckets before the anchor are empty across a year boundary."""
        points = trend([streaming_subscription], months_back=3, reference="2025-01-31")

        assert [point.month for point in points] == ["2024-11", "2024-12", "2025-01"]
        assert [point.value for point in points] == [0, 0, 12]


class TestBreakdown:
    """Test grouping and ranking."""

    def test_breakdown_by_category(self):
        """Test rows are grouped and sorted descending."""
        items = [
            make_subscription("a", 10, category="Video"),
            make_subscription("b", 10, category="Music"),
            make_subscription("c", 5, category="Video"),
        ]

        rows = breakdown_by(items, lambda item: item.category)

        assert [(row.label, row.value) for row in rows] == [("Video", 15), ("Music", 10)]

    def test_ties_keep_first_seen_order(self):
        """Test equal totals keep the order their keys first appeared."""
        items = [
            make_subscription("a", 5, category="Books"),
            make_subscription("b", 5, category="Apps"),
            make_subscription("c", 5, category="Cloud"),
        ]

        rows = breakdown_by(items, lambda item: item.category)

        assert [row.label for row in rows] == ["Books", "Apps", "Cloud"]

    def test_top_n(self):
        """Test ranking by monthly equivalent."""
        items = [
            make_subscription("small", 5),
            make_subscription("yearly", 240, frequency="yearly"),
            make_subscription("big", 30),
        ]

        assert [item.id for item in top_n(items, 2)] == ["big", "yearly"]
        assert top_n(items, 0) == []

    def test_top_n_default(self):
        """Test the configured default count is used."""
        items = [make_subscription(str(i), i + 1) for i in range(8)]

        assert [item.id for item in top_n(items)] == ["7", "6", "5", "4", "3"]

    def test_share_of_total(self):
        rows = [BreakdownRow(label="a", value=30), BreakdownRow(label="b", value=10)]
        shares = share_of_total(rows)
        assert [row.value for row in shares] == [0.75, 0.25]

    def test_share_of_total_without_data(self):
        """Test an all-zero breakdown gives zero shares instead of failing."""
        rows = [BreakdownRow(label="a", value=0), BreakdownRow(label="b", value=0)]
        assert [row.value for row in share_of_total(rows)] == [0, 0]


class TestIncomeByMonth:
    """Test income received per month."""

    def test_income_by_month(self):
        """Test recurring and one-time income land in their months."""
        entries = [
            IncomeEntry(
                id="salary",
                source="Employer",
                amount=3000,
                frequency="monthly",
                anchor_date="2024-01-25",
            ),
            IncomeEntry(
                id="bonus",
                source="Employer",
                amount=500,
                frequency="one-time",
                anchor_date="2024-03-10",
            ),
            IncomeEntry(
                id="gig",
                amount=200,
                frequency="monthly",
                anchor_date="2024-01-01",
                status="cancelled",
            ),
        ]

        points = income_by_month(entries, "2024-02-01", "2024-04-30")

        assert points == [
            TrendPoint(month="2024-02", value=3000),
            TrendPoint(month="2024-03", value=3500),
            TrendPoint(month="2024-04", value=3000),
        ]

    def test_weekly_income(self):
        """Test weekly income is counted per actual payment."""
        entries = [
            IncomeEntry(id="w", amount=100, frequency="weekly", anchor_date="2024-07-01")
        ]

        points = income_by_month(entries, "2024-07-01", "2024-07-31")

        assert points == [TrendPoint(month="2024-07", value=500)]


class TestMonthStats:
    """Test statistics over month buckets."""

    def test_month_stats(self):
        points = [
            TrendPoint(month="2024-01", value=10),
            TrendPoint(month="2024-02", value=30),
            TrendPoint(month="2024-03", value=20),
        ]

        stats = month_stats(points)

        assert stats.average == pytest.approx(20)
        assert stats.median == pytest.approx(20)
        assert stats.best.month == "2024-02"
        assert stats.worst.month == "2024-01"

    def test_empty(self):
        stats = month_stats([])
        assert stats.average == 0
        assert stats.best is None

    def test_month_over_month_change(self):
        """Test percent change between the last two buckets."""
        points = [TrendPoint(month="2024-01", value=10), TrendPoint(month="2024-02", value=15)]
        assert month_over_month_change(points) == pytest.approx(50)

    def test_month_over_month_undefined(self):
        """Test missing or zero previous buckets give no change."""
        assert month_over_month_change([TrendPoint(month="2024-01", value=5)]) == 0
        points = [TrendPoint(month="2024-01", value=0), TrendPoint(month="2024-02", value=5)]
        assert month_over_month_change(points) == 0
