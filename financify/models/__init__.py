"""Engine models and pure computations for recurring obligations."""

from .errors import (
    FinancifyError,
    InvalidEffectiveDate,
    InvalidShift,
    InvalidSplitConfiguration,
    MalformedDate,
)
from .records import (
    CostTerms,
    CostVersion,
    HouseholdCost,
    HouseholdMember,
    IncomeEntry,
    Obligation,
    Payer,
    RecurrenceFrequency,
    Subscription,
)
from .recurrence import (
    cancel_by_date,
    is_visible_in_period,
    materialize_occurrences,
    next_occurrence,
    upcoming_payments,
)
from .normalizer import (
    monthly_equivalent,
    monthly_equivalent_in_month,
    yearly_equivalent,
)
from .cost_ledger import (
    CostVersionChain,
    apply_edit,
    close,
    compare_versions,
    create_chain,
    version_at,
    version_history,
)
from .split_allocator import (
    MemberShare,
    SplitAllocation,
    allocate,
    allocate_occurrence,
    member_breakdown,
    resident_net_total,
)
from .aggregation import (
    BreakdownRow,
    TrendPoint,
    breakdown_by,
    monthly_total,
    top_n,
    trend,
)
from .income import (
    FixedSalaryJob,
    ShiftIncome,
    build_fixed_salary_entries,
    calculate_shift_income,
)
from .interest import (
    InterestPoint,
    InterestResult,
    InterestScenarioInput,
    InterestSimulator,
)

__all__ = [
    "FinancifyError",
    "MalformedDate",
    "InvalidEffectiveDate",
    "InvalidSplitConfiguration",
    "InvalidShift",
    "RecurrenceFrequency",
    "Obligation",
    "Subscription",
    "IncomeEntry",
    "HouseholdCost",
    "HouseholdMember",
    "Payer",
    "CostTerms",
    "CostVersion",
    "next_occurrence",
    "is_visible_in_period",
    "cancel_by_date",
    "upcoming_payments",
    "materialize_occurrences",
    "monthly_equivalent",
    "yearly_equivalent",
    "monthly_equivalent_in_month",
    "CostVersionChain",
    "create_chain",
    "version_at",
    "apply_edit",
    "close",
    "compare_versions",
    "version_history",
    "MemberShare",
    "SplitAllocation",
    "allocate",
    "allocate_occurrence",
    "member_breakdown",
    "resident_net_total",
    "TrendPoint",
    "BreakdownRow",
    "monthly_total",
    "trend",
    "breakdown_by",
    "top_n",
    "ShiftIncome",
    "FixedSalaryJob",
    "calculate_shift_income",
    "build_fixed_salary_entries",
    "InterestScenarioInput",
    "InterestPoint",
    "InterestResult",
    "InterestSimulator",
]
