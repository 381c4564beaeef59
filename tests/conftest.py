"""
Pytest configuration and shared fixtures for the financify engine tests.
"""

import pytest

from financify.config import reset_global_settings
from financify.models.records import (
    HouseholdCost,
    HouseholdMember,
    Payer,
    Subscription,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Make every test start from default settings."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def streaming_subscription():
    """Monthly subscription anchored at the start of 2025."""
    return Subscription(
        id="1",
        name="Streaming",
        provider="Provider",
        category="Entertainment",
        amount=12,
        frequency="monthly",
        anchor_date="2025-01-01",
        notice_period_days=14,
        status="active",
    )


@pytest.fixture
def members():
    """Three active household members and one inactive member."""
    return [
        HouseholdMember(id="anna", name="Anna"),
        HouseholdMember(id="ben", name="Ben"),
        HouseholdMember(id="cleo", name="Cleo"),
        HouseholdMember(id="dora", name="Dora", is_active=False),
    ]


@pytest.fixture
def payers():
    """Household payer plus an external landlord contribution."""
    return [
        Payer(id="household", name="Household", type="household"),
        Payer(id="landlord", name="Landlord", type="external"),
    ]


@pytest.fixture
def rent_cost():
    """Shared monthly rent split equally."""
    return HouseholdCost(
        id="rent",
        title="Rent",
        category="Housing",
        amount=900,
        frequency="monthly",
        anchor_date="2024-01-01",
        is_shared=True,
        split_policy="equal",
    )
