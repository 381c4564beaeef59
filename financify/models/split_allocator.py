"""
Allocation of shared household costs across members and payers.

Splits one occurrence of a cost version into per-member shares according to
its split policy. All arithmetic happens in integer minor units so the shares
always add up to the occurrence amount exactly; any rounding remainder goes
to the first member in input order.
"""

import logging
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import get_global_settings
from .calendar_math import DateLike, end_of_month, start_of_month
from .cost_ledger import CostVersionChain, version_at
from .errors import InvalidSplitConfiguration
from .normalizer import monthly_equivalent
from .records import CostTerms, HouseholdCost, HouseholdMember, Payer
from .recurrence import is_visible_in_period

logger = logging.getLogger(__name__)

HOUSEHOLD_PAYER_ID = "household"


class MemberShare(BaseModel):
    """Amount carried by one member or payer for one occurrence."""

    member_id: str = Field(..., description="Member or payer identifier")
    amount: float = Field(..., description="Allocated amount")


class SplitAllocation(BaseModel):
    """Complete allocation of one occurrence of a cost."""

    total: float = Field(..., description="Occurrence amount allocated")
    shares: List[MemberShare] = Field(default_factory=list, description="Shares")
    payer_id: Optional[str] = Field(
        default=None, description="Payer of an unshared cost"
    )
    is_external: bool = Field(
        default=False, description="Whether an external party pays the cost"
    )

    def as_dict(self) -> Dict[str, float]:
        """Get shares keyed by member id."""
        return {share.member_id: share.amount for share in self.shares}


class _MinorUnits:
    """Converts between amounts and integer minor units using exact decimals."""

    def __init__(self, decimals: int):
        self.decimals = decimals

    def to_units(self, amount: float) -> int:
        scaled = Decimal(str(amount)).scaleb(self.decimals)
        return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    def to_amount(self, units: int) -> float:
        return float(Decimal(units).scaleb(-self.decimals))

    def percent_of(self, total_units: int, percent: Decimal) -> int:
        """Floor of ``percent`` % of ``total_units``."""
        share = Decimal(total_units) * percent / 100
        return int(share.quantize(Decimal(1), rounding=ROUND_FLOOR))


def _member_ids(members: Sequence) -> List[str]:
    ids = []
    for member in members:
        member_id = member.id if isinstance(member, HouseholdMember) else str(member)
        if member_id not in ids:
            ids.append(member_id)
    return ids


def _settle(
    units: _MinorUnits, total_units: int, raw: List[int], ids: List[str]
) -> List[MemberShare]:
    # Remainder (positive or negative) lands on the first member
    remainder = total_units - sum(raw)
    if remainder:
        logger.debug(f"Assigning rounding remainder of {remainder} unit(s) to {ids[0]}")
    raw[0] += remainder
    return [
        MemberShare(member_id=member_id, amount=units.to_amount(value))
        for member_id, value in zip(ids, raw)
    ]


def allocate(
    occurrence_amount: float,
    policy: str,
    members: Sequence,
    parameters: Optional[Mapping[str, float]] = None,
) -> List[MemberShare]:
    """
    Distribute an occurrence amount across members.

    Args:
        occurrence_amount: Amount of one occurrence of the cost
        policy: One of ``equal``, ``weighted``, ``custom``, ``fixed-amount``
        members: Members (or member ids) in a stable order
        parameters: Percent by member (weighted/custom) or amount by member
            (fixed-amount)

    Returns:
        Shares summing exactly to ``occurrence_amount``

    Raises:
        InvalidSplitConfiguration: If there is no member to allocate to, or
            percentages/fixed amounts do not reconcile to the total
    """
    settings = get_global_settings()
    units = _MinorUnits(settings.minor_unit_decimals)
    parameters = dict(parameters or {})
    total_units = units.to_units(occurrence_amount)

    if policy == "equal":
        ids = _member_ids(members)
        if not ids:
            raise InvalidSplitConfiguration("Cannot split a cost across zero members")
        base = total_units // len(ids)
        return _settle(units, total_units, [base] * len(ids), ids)

    if policy in ("weighted", "custom"):
        ids = _member_ids(members) or list(parameters)
        if not ids:
            raise InvalidSplitConfiguration("Cannot split a cost across zero members")
        unknown = set(parameters) - set(ids)
        if unknown:
            raise InvalidSplitConfiguration(
                f"Split percentages reference unknown members: {sorted(unknown)}"
            )
        percents = [Decimal(str(parameters.get(member_id, 0))) for member_id in ids]
        percent_total = sum(percents, Decimal(0))
        if abs(percent_total - 100) > Decimal(str(settings.split_percent_tolerance)):
            raise InvalidSplitConfiguration(
                f"Split percentages must sum to 100, got {percent_total:.4f}"
            )
        raw = [units.percent_of(total_units, percent) for percent in percents]
        return _settle(units, total_units, raw, ids)

    if policy == "fixed-amount":
        ids = _member_ids(members) or list(parameters)
        if not ids:
            raise InvalidSplitConfiguration("Cannot split a cost across zero members")
        unknown = set(parameters) - set(ids)
        if unknown:
            raise InvalidSplitConfiguration(
                f"Fixed amounts reference unknown members: {sorted(unknown)}"
            )
        raw = [units.to_units(parameters.get(member_id, 0.0)) for member_id in ids]
        if abs(sum(raw) - total_units) > 1:
            raise InvalidSplitConfiguration(
                f"Fixed amounts sum to {units.to_amount(sum(raw))}, "
                f"expected {units.to_amount(total_units)}"
            )
        return _settle(units, total_units, raw, ids)

    raise InvalidSplitConfiguration(f"Unknown split policy: {policy}")


def allocate_occurrence(
    terms: CostTerms,
    members: Sequence[HouseholdMember],
    payers: Sequence[Payer] = (),
    occurrence_amount: Optional[float] = None,
) -> SplitAllocation:
    """
    Resolve one occurrence of a cost into a final allocation.

    Unshared costs bypass the split and go wholly to the configured payer,
    or to the household as implicit sole payer.

    Args:
        terms: Terms (or cost version) in effect for the occurrence
        members: Household members; inactive members take no share
        payers: Known payers, used to flag external payers
        occurrence_amount: Amount to allocate (defaults to ``terms.amount``)

    Returns:
        The allocation for the occurrence
    """
    amount = terms.amount if occurrence_amount is None else occurrence_amount
    external_ids = {payer.id for payer in payers if payer.is_external}
    is_external = terms.payer_id is not None and terms.payer_id in external_ids

    if not terms.is_shared:
        payer_id = terms.payer_id or HOUSEHOLD_PAYER_ID
        return SplitAllocation(
            total=amount,
            shares=[MemberShare(member_id=payer_id, amount=amount)],
            payer_id=payer_id,
            is_external=is_external,
        )

    active = [member for member in members if member.is_active]
    shares = allocate(amount, terms.split_policy, active, terms.split_parameters)
    return SplitAllocation(
        total=amount, shares=shares, payer_id=terms.payer_id, is_external=is_external
    )


def allocate_on_date(
    chain: CostVersionChain,
    day: DateLike,
    members: Sequence[HouseholdMember],
    payers: Sequence[Payer] = (),
) -> Optional[SplitAllocation]:
    """Allocate an occurrence using the version in effect on ``day``."""
    version = version_at(chain, day)
    if version is None:
        return None
    return allocate_occurrence(version, members, payers)


def external_payer_total(allocations: Sequence[SplitAllocation]) -> float:
    """Sum of allocations paid by external parties."""
    return sum(allocation.total for allocation in allocations if allocation.is_external)


def resident_net_total(allocations: Sequence[SplitAllocation]) -> float:
    """Total minus the external payer total, never below zero."""
    total = sum(allocation.total for allocation in allocations)
    return max(0.0, total - external_payer_total(allocations))


def monthly_allocations(
    costs: Sequence[HouseholdCost],
    members: Sequence[HouseholdMember],
    payers: Sequence[Payer],
    month: DateLike,
) -> List[SplitAllocation]:
    """Allocate the monthly equivalent of every cost live in a month."""
    month_start, month_end = start_of_month(month), end_of_month(month)
    allocations = []
    for cost in costs:
        if cost.status != "active" or not is_visible_in_period(cost, month_start, month_end):
            continue
        amount = monthly_equivalent(cost.amount, cost.frequency)
        allocations.append(allocate_occurrence(cost.terms(), members, payers, amount))
    return allocations


def member_breakdown(
    costs: Sequence[HouseholdCost],
    members: Sequence[HouseholdMember],
    payers: Sequence[Payer],
    month: DateLike,
) -> List[MemberShare]:
    """
    Monthly amount each active member carries in a month.

    Costs paid by external payers are skipped. Unshared costs count toward
    their responsible member. Members with nothing to carry are omitted.

    Raises:
        InvalidSplitConfiguration: If a shared cost has an unusable split

    Returns:
        Member totals sorted descending
    """
    month_start, month_end = start_of_month(month), end_of_month(month)
    external_ids = {payer.id for payer in payers if payer.is_external}
    active = [member for member in members if member.is_active]
    totals: Dict[str, float] = {member.id: 0.0 for member in active}

    for cost in costs:
        if cost.status != "active" or not is_visible_in_period(cost, month_start, month_end):
            continue
        if cost.payer_id and cost.payer_id in external_ids:
            continue
        amount = monthly_equivalent(cost.amount, cost.frequency)
        if not cost.is_shared:
            if cost.responsible_member_id in totals:
                totals[cost.responsible_member_id] += amount
            continue
        if not active:
            continue
        shares = allocate(amount, cost.split_policy, active, cost.split_parameters)
        for share in shares:
            totals[share.member_id] += share.amount

    rows = [
        MemberShare(member_id=member_id, amount=value)
        for member_id, value in totals.items()
        if value > 0
    ]
    return sorted(rows, key=lambda row: row.amount, reverse=True)
