"""
Pydantic models for the records the engine reads.

This module defines recurring obligations (subscriptions, recurring income,
household costs), household members and payers, and the time-bounded cost
versions used by the ledger. The engine only ever reads these snapshots.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .calendar_math import parse_date

FrequencyKind = Literal[
    "monthly",
    "yearly",
    "four-weekly",
    "weekly",
    "biweekly",
    "custom-months",
    "custom-days",
    "one-time",
]

ObligationStatus = Literal["active", "paused", "cancelled"]

SplitPolicyKind = Literal["equal", "weighted", "fixed-amount", "custom"]

VISIBLE_STATUSES = ("active", "paused")


class RecurrenceFrequency(BaseModel):
    """Billing/recurrence frequency of an obligation."""

    model_config = ConfigDict(frozen=True)

    kind: FrequencyKind = Field(..., description="Frequency kind")
    custom_months: Optional[int] = Field(
        default=None, description="Period in months for custom-months"
    )
    custom_days: Optional[int] = Field(
        default=None, description="Period in days for custom-days"
    )

    @model_validator(mode="after")
    def validate_custom_days(self) -> "RecurrenceFrequency":
        if self.kind == "custom-days" and (self.custom_days is None or self.custom_days < 1):
            raise ValueError("custom-days frequencies need a positive day interval")
        return self

    @property
    def period_months(self) -> int:
        """Period in months for month-based frequencies (custom defaults to 1)."""
        if self.kind == "yearly":
            return 12
        if self.kind == "custom-months":
            if self.custom_months and self.custom_months > 0:
                return self.custom_months
            return 1
        return 1

    @property
    def period_days(self) -> Optional[int]:
        """Period in days for day-based frequencies, None otherwise."""
        if self.kind == "custom-days":
            return self.custom_days
        return {"four-weekly": 28, "weekly": 7, "biweekly": 14}.get(self.kind)

    @classmethod
    def of(cls, value: Any) -> "RecurrenceFrequency":
        """Build a frequency from a kind string, mapping or frequency."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(kind=value)
        return cls.model_validate(value)


def _coerce_frequency(value: Any) -> Any:
    if isinstance(value, str):
        return {"kind": value}
    return value


class Obligation(BaseModel):
    """A recurring (or one-time) amount anchored on a calendar date."""

    id: str = Field(..., min_length=1, description="Record identifier")
    amount: float = Field(..., description="Amount per occurrence")
    frequency: RecurrenceFrequency = Field(..., description="Recurrence frequency")
    anchor_date: date = Field(..., description="First occurrence date")
    explicit_next_date: Optional[date] = Field(
        default=None, description="Manual override of the next occurrence"
    )
    end_date: Optional[date] = Field(default=None, description="Last effective date")
    status: ObligationStatus = Field(default="active", description="Lifecycle status")
    currency: Optional[str] = Field(default=None, description="Opaque currency label")

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, v: Any) -> Any:
        return _coerce_frequency(v)

    @field_validator("anchor_date", "explicit_next_date", "end_date", mode="before")
    @classmethod
    def validate_calendar_date(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return parse_date(v)

    @property
    def is_visible(self) -> bool:
        """Active and paused obligations count toward equivalences."""
        return self.status in VISIBLE_STATUSES


class Subscription(Obligation):
    """Subscription with a provider, category and cancellation notice period."""

    name: str = Field(default="", description="Display name")
    provider: str = Field(default="", description="Provider name")
    category: str = Field(default="Other", description="Category label")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    notice_period_days: int = Field(
        default=0, ge=0, description="Days of notice required to cancel"
    )


class IncomeEntry(Obligation):
    """Income received once or on a recurring schedule."""

    source: str = Field(default="", description="Income source label")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")


class HouseholdMember(BaseModel):
    """Resident of a household that can carry a share of costs."""

    id: str = Field(..., min_length=1, description="Member identifier")
    name: str = Field(default="", description="Display name")
    is_active: bool = Field(default=True, description="Whether the member takes shares")


class Payer(BaseModel):
    """Party that pays a household cost."""

    id: str = Field(..., min_length=1, description="Payer identifier")
    name: str = Field(default="", description="Display name")
    type: Literal["member", "household", "external"] = Field(
        default="household", description="Payer type"
    )

    @property
    def is_external(self) -> bool:
        """External payers are excluded from resident totals."""
        return self.type == "external"


class CostTerms(BaseModel):
    """Editable terms of a household cost."""

    amount: float = Field(..., description="Amount per occurrence")
    frequency: RecurrenceFrequency = Field(..., description="Recurrence frequency")
    payer_id: Optional[str] = Field(default=None, description="Paying party")
    is_shared: bool = Field(default=False, description="Split across members")
    split_policy: SplitPolicyKind = Field(default="equal", description="Split rule")
    split_parameters: Dict[str, float] = Field(
        default_factory=dict,
        description="Percent (weighted/custom) or amount (fixed-amount) by member",
    )

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, v: Any) -> Any:
        return _coerce_frequency(v)


class CostVersion(CostTerms):
    """Terms of a household cost valid over ``[valid_from, valid_until)``."""

    cost_id: str = Field(..., min_length=1, description="Logical cost identifier")
    valid_from: date = Field(..., description="First day the terms apply")
    valid_until: Optional[date] = Field(
        default=None, description="First day the terms no longer apply"
    )

    @field_validator("valid_from", "valid_until", mode="before")
    @classmethod
    def validate_calendar_date(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return parse_date(v)

    @model_validator(mode="after")
    def validate_bounds(self) -> "CostVersion":
        if self.valid_until is not None and self.valid_until < self.valid_from:
            raise ValueError("valid_until must be >= valid_from")
        return self

    def terms(self) -> CostTerms:
        """Get the editable terms of this version."""
        return CostTerms(**self.model_dump(include=set(CostTerms.model_fields)))

    def covers(self, day: date) -> bool:
        """Check whether ``day`` falls inside this version's validity window."""
        if day < self.valid_from:
            return False
        return self.valid_until is None or day < self.valid_until


class HouseholdCost(Obligation):
    """Recurring household cost, optionally shared across members."""

    title: str = Field(default="", description="Display title")
    category: str = Field(default="Other", description="Category label")
    subcategory: str = Field(default="", description="Subcategory label")
    payer_id: Optional[str] = Field(default=None, description="Paying party")
    responsible_member_id: Optional[str] = Field(
        default=None, description="Member carrying an unshared cost"
    )
    is_shared: bool = Field(default=False, description="Split across members")
    split_policy: SplitPolicyKind = Field(default="equal", description="Split rule")
    split_parameters: Dict[str, float] = Field(
        default_factory=dict, description="Per-member split parameters"
    )

    @model_validator(mode="after")
    def validate_end_date(self) -> "HouseholdCost":
        if self.end_date is not None and self.end_date < self.anchor_date:
            raise ValueError("End date must be >= anchor date")
        return self

    def terms(self) -> CostTerms:
        """Get the editable terms of this cost."""
        return CostTerms(
            amount=self.amount,
            frequency=self.frequency,
            payer_id=self.payer_id,
            is_shared=self.is_shared,
            split_policy=self.split_policy,
            split_parameters=dict(self.split_parameters),
        )
