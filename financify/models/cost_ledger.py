"""
Versioned ledger of household cost terms.

A logical cost is kept as an ordered, non-overlapping chain of time-bounded
versions. Edits close the version in effect and append a new one, so the
terms in effect on any past date stay answerable. Chains are immutable;
every operation returns a new chain.

DeepDiff is used only for comparing the terms of two versions.
"""

import logging
from bisect import bisect_right
from datetime import date
from typing import Any, Dict, List, Optional

from deepdiff import DeepDiff
from pydantic import BaseModel, Field, model_validator

from .calendar_math import DateLike, parse_date
from .errors import InvalidEffectiveDate
from .records import CostTerms, CostVersion

logger = logging.getLogger(__name__)


class CostVersionChain(BaseModel):
    """Ordered, gap-free chain of versions for one logical cost."""

    cost_id: str = Field(..., min_length=1, description="Logical cost identifier")
    versions: List[CostVersion] = Field(
        ..., min_length=1, description="Versions ordered by valid_from"
    )

    @model_validator(mode="after")
    def validate_chain(self) -> "CostVersionChain":
        for version in self.versions:
            if version.cost_id != self.cost_id:
                raise ValueError(
                    f"Version for cost {version.cost_id} found in chain {self.cost_id}"
                )

        for current, following in zip(self.versions, self.versions[1:]):
            if following.valid_from <= current.valid_from:
                raise ValueError("Versions must be ordered by strictly increasing valid_from")
            if current.valid_until != following.valid_from:
                raise ValueError(
                    f"Version starting {current.valid_from} must end when the next "
                    f"version starts ({following.valid_from})"
                )
        return self

    @property
    def created_from(self) -> date:
        """Creation date of the cost (first version's start)."""
        return self.versions[0].valid_from

    @property
    def latest(self) -> CostVersion:
        """Most recent version."""
        return self.versions[-1]

    @property
    def is_closed(self) -> bool:
        """Whether the cost has been ended."""
        return self.latest.valid_until is not None

    def __len__(self) -> int:
        """Get the number of versions in the chain."""
        return len(self.versions)


def create_chain(
    cost_id: str, terms: CostTerms, created_from: DateLike
) -> CostVersionChain:
    """
    Start a version chain for a new cost.

    Args:
        cost_id: Logical cost identifier
        terms: Initial terms
        created_from: Creation date of the cost

    Returns:
        Chain holding a single open-ended version
    """
    first = CostVersion(
        **terms.model_dump(),
        cost_id=cost_id,
        valid_from=parse_date(created_from),
        valid_until=None,
    )
    return CostVersionChain(cost_id=cost_id, versions=[first])


def version_at(chain: CostVersionChain, day: DateLike) -> Optional[CostVersion]:
    """
    Get the version in effect on a date.

    Args:
        chain: Version chain to search
        day: Date to look up

    Returns:
        The version whose ``[valid_from, valid_until)`` contains the date, or
        None before the first version or after the cost was closed
    """
    target = parse_date(day)
    starts = [version.valid_from for version in chain.versions]
    index = bisect_right(starts, target) - 1
    if index < 0:
        return None

    version = chain.versions[index]
    return version if version.covers(target) else None


def apply_edit(
    chain: CostVersionChain, new_terms: CostTerms, effective_from: DateLike
) -> CostVersionChain:
    """
    Apply an edit to a cost's terms from a given date onward.

    Versions starting on or after ``effective_from`` are discarded, the
    version covering ``effective_from`` is closed on that date, and a new
    open-ended version carrying ``new_terms`` is appended.

    Args:
        chain: Current version chain
        new_terms: Terms taking effect
        effective_from: First day the new terms apply

    Returns:
        The revised chain

    Raises:
        InvalidEffectiveDate: If ``effective_from`` precedes the chain start,
            or falls after the date a closed cost ended
    """
    effective = parse_date(effective_from)
    if effective < chain.created_from:
        raise InvalidEffectiveDate(
            f"Effective date {effective} precedes cost {chain.cost_id} "
            f"creation date {chain.created_from}"
        )
    if chain.is_closed and effective > chain.latest.valid_until:
        raise InvalidEffectiveDate(
            f"Effective date {effective} falls after cost {chain.cost_id} "
            f"ended on {chain.latest.valid_until}"
        )

    kept = [version for version in chain.versions if version.valid_from < effective]
    discarded = len(chain.versions) - len(kept)
    if kept:
        kept[-1] = kept[-1].model_copy(update={"valid_until": effective})

    new_version = CostVersion(
        **new_terms.model_dump(),
        cost_id=chain.cost_id,
        valid_from=effective,
        valid_until=None,
    )

    logger.debug(
        f"Cost {chain.cost_id}: new version from {effective} "
        f"({discarded} superseded version(s) discarded)"
    )
    return CostVersionChain(cost_id=chain.cost_id, versions=kept + [new_version])


def close(chain: CostVersionChain, end_date: DateLike) -> CostVersionChain:
    """
    End a cost: the last version stops applying on ``end_date``.

    Raises:
        InvalidEffectiveDate: If ``end_date`` precedes the last version's start
    """
    end = parse_date(end_date)
    last = chain.latest
    if end < last.valid_from:
        raise InvalidEffectiveDate(
            f"End date {end} precedes the current version start {last.valid_from}"
        )

    versions = chain.versions[:-1] + [last.model_copy(update={"valid_until": end})]
    logger.debug(f"Cost {chain.cost_id} closed on {end}")
    return CostVersionChain(cost_id=chain.cost_id, versions=versions)


def compare_versions(first: CostVersion, second: CostVersion) -> Dict[str, Any]:
    """
    Compare the terms of two versions using DeepDiff.

    Args:
        first: Earlier version
        second: Later version

    Returns:
        Dict with comparison results
    """
    diff = DeepDiff(
        first.terms().model_dump(mode="json"),
        second.terms().model_dump(mode="json"),
        ignore_order=True,
    )

    return {
        "from": first.valid_from,
        "to": second.valid_from,
        "changes": diff,
        "has_changes": bool(diff),
    }


def version_history(chain: CostVersionChain) -> List[Dict[str, Any]]:
    """Get version metadata in chronological order."""
    history = []
    previous: Optional[CostVersion] = None
    for number, version in enumerate(chain.versions, start=1):
        history.append(
            {
                "version": f"v{number}",
                "valid_from": version.valid_from,
                "valid_until": version.valid_until,
                "amount": version.amount,
                "frequency": version.frequency.kind,
                "changed_fields": (
                    sorted(_changed_fields(previous, version)) if previous else []
                ),
            }
        )
        previous = version
    return history


def _changed_fields(previous: CostVersion, current: CostVersion) -> List[str]:
    before = previous.terms().model_dump(mode="json")
    after = current.terms().model_dump(mode="json")
    return [name for name in after if before.get(name) != after[name]]
