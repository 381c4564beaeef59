"""
Income helpers: hourly shift pay and fixed-salary income templates.

Shift pay is computed from HH:MM start and end times (shifts may run past
midnight) and an hourly rate, rounded to the minor currency unit. Fixed-salary
jobs are expanded into recurring ``IncomeEntry`` templates, including the
optional 13th (June) and 14th (November) salaries paid every 365 days.
"""

import logging
import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import get_global_settings
from .calendar_math import DateLike, parse_date, today
from .errors import InvalidShift
from .records import IncomeEntry, RecurrenceFrequency

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Bonus salaries recur yearly as a fixed day interval
BONUS_INTERVAL_DAYS = 365
THIRTEENTH_SALARY_MONTH = 6
FOURTEENTH_SALARY_MONTH = 11

PayInterval = Literal["monthly", "weekly", "biweekly"]


class ShiftIncome(BaseModel):
    """Pay for one worked shift."""

    shift_date: date = Field(..., description="Date the shift starts")
    start_time: str = Field(..., description="Start time (HH:MM)")
    end_time: str = Field(..., description="End time (HH:MM)")
    amount: float = Field(..., description="Pay rounded to the minor unit")
    duration_hours: float = Field(..., description="Worked hours")
    crosses_midnight: bool = Field(..., description="Whether the shift ends the next day")

    def to_income_entry(
        self, entry_id: str, source: str = "", tags: Sequence[str] = ()
    ) -> IncomeEntry:
        """Record the shift as a one-time income entry on its date."""
        return IncomeEntry(
            id=entry_id,
            amount=self.amount,
            frequency="one-time",
            anchor_date=self.shift_date,
            source=source,
            tags=list(tags),
        )


class FixedSalaryJob(BaseModel):
    """Job configuration used to generate salary income."""

    id: str = Field(..., min_length=1, description="Job identifier")
    name: str = Field(default="", description="Employer or job name")
    employment_type: Literal["fixed", "hourly"] = Field(
        default="fixed", description="Fixed salary or hourly pay"
    )
    salary_amount: float = Field(default=0.0, description="Salary per pay interval")
    pay_interval: PayInterval = Field(default="monthly", description="Pay interval")
    start_date: Optional[date] = Field(default=None, description="First pay date")
    has_13th_salary: bool = Field(default=False, description="Extra salary in June")
    has_14th_salary: bool = Field(default=False, description="Extra salary in November")


def _to_minutes(value: str) -> int:
    match = TIME_PATTERN.match(value)
    if not match:
        raise InvalidShift(f"Time must be in HH:MM format: {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def _round_to_minor_unit(value: float) -> float:
    decimals = get_global_settings().minor_unit_decimals
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def calculate_shift_income(
    shift_date: DateLike, start_time: str, end_time: str, hourly_rate: float
) -> ShiftIncome:
    """
    Calculate the pay for a single shift.

    Args:
        shift_date: Date the shift starts
        start_time: Start time in HH:MM (24h)
        end_time: End time in HH:MM; earlier than the start means the next day
        hourly_rate: Pay per hour, must be positive

    Returns:
        Shift pay, duration and midnight flag

    Raises:
        MalformedDate: If the date is invalid
        InvalidShift: If a time is malformed, start equals end, or the rate is
            not positive
    """
    day = parse_date(shift_date)
    if not math.isfinite(hourly_rate) or hourly_rate <= 0:
        raise InvalidShift(f"Hourly rate must be a positive number, got {hourly_rate}")

    start_minutes = _to_minutes(start_time)
    end_minutes = _to_minutes(end_time)
    if start_minutes == end_minutes:
        raise InvalidShift("Shift start and end cannot be identical")

    crosses_midnight = end_minutes < start_minutes
    duration_minutes = end_minutes - start_minutes
    if crosses_midnight:
        duration_minutes += MINUTES_PER_DAY
    duration_hours = duration_minutes / 60

    return ShiftIncome(
        shift_date=day,
        start_time=start_time,
        end_time=end_time,
        amount=_round_to_minor_unit(duration_hours * hourly_rate),
        duration_hours=duration_hours,
        crosses_midnight=crosses_midnight,
    )


def first_bonus_date(start: date, month: int) -> date:
    """
    First bonus payment in ``month`` on or after the start date.

    The start day is kept but capped at the 28th so it exists in every month.
    """
    day = min(max(start.day, 1), 28)
    candidate = date(start.year, month, day)
    if candidate < start:
        candidate = date(start.year + 1, month, day)
    return candidate


def _salary_entry(
    job: FixedSalaryJob,
    suffix: str,
    anchor: date,
    frequency: RecurrenceFrequency,
    extra_tags: Sequence[str] = (),
) -> IncomeEntry:
    return IncomeEntry(
        id=f"job-fixed-{job.id}-{suffix}",
        amount=job.salary_amount,
        frequency=frequency,
        anchor_date=anchor,
        source=job.name,
        tags=["job", "fixed-salary", *extra_tags, job.name],
    )


def build_fixed_salary_entries(
    jobs: Sequence[FixedSalaryJob], reference: Optional[DateLike] = None
) -> List[IncomeEntry]:
    """
    Generate recurring income templates for fixed-salary jobs.

    Hourly jobs and jobs without a positive salary are skipped. Jobs without a
    start date start on the reference date.

    Args:
        jobs: Job configurations
        reference: Start date for jobs without one (defaults to today)

    Returns:
        Base salary entries plus any 13th/14th salary entries, in job order
    """
    fallback_start = parse_date(reference) if reference is not None else today()
    entries = []
    for job in jobs:
        if job.employment_type != "fixed" or not job.salary_amount > 0:
            continue
        start = job.start_date or fallback_start

        entries.append(
            _salary_entry(job, "base", start, RecurrenceFrequency.of(job.pay_interval))
        )

        bonus_frequency = RecurrenceFrequency(
            kind="custom-days", custom_days=BONUS_INTERVAL_DAYS
        )
        if job.has_13th_salary:
            entries.append(
                _salary_entry(
                    job,
                    "13",
                    first_bonus_date(start, THIRTEENTH_SALARY_MONTH),
                    bonus_frequency,
                    ["13th-salary"],
                )
            )
        if job.has_14th_salary:
            entries.append(
                _salary_entry(
                    job,
                    "14",
                    first_bonus_date(start, FOURTEENTH_SALARY_MONTH),
                    bonus_frequency,
                    ["14th-salary"],
                )
            )

    logger.debug(f"Generated {len(entries)} salary template(s) from {len(jobs)} job(s)")
    return entries
