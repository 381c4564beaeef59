"""
Tests for the versioned cost ledger.

This module tests chain creation, point-in-time lookup, edits, closing and
version comparison.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from financify.models.cost_ledger import (
    CostVersionChain,
    apply_edit,
    close,
    compare_versions,
    create_chain,
    version_at,
    version_history,
)
from financify.models.errors import InvalidEffectiveDate
from financify.models.records import CostTerms, CostVersion


def make_terms(amount, **kwargs):
    """Create monthly cost terms with the given amount."""
    return CostTerms(amount=amount, frequency=kwargs.pop("frequency", "monthly"), **kwargs)


@pytest.fixture
def chain():
    """Electricity cost created on 2024-01-01 at 80 per month."""
    return create_chain("power", make_terms(80), "2024-01-01")


def assert_contiguous(chain):
    """Assert no gaps or overlaps between consecutive versions."""
    for current, following in zip(chain.versions, chain.versions[1:]):
        assert current.valid_until == following.valid_from


class TestCreateChain:
    """Test starting a chain."""

    def test_single_open_version(self, chain):
        """Test a new chain holds one open-ended version."""
        assert len(chain) == 1
        assert chain.created_from == date(2024, 1, 1)
        assert chain.latest.valid_until is None
        assert chain.is_closed is False
        assert chain.latest.cost_id == "power"

    def test_rejects_gaps(self):
        """Test chains with a gap between versions are rejected."""
        with pytest.raises(ValidationError, match="must end when the next version starts"):
            CostVersionChain(
                cost_id="c",
                versions=[
                    CostVersion(
                        cost_id="c",
                        amount=1,
                        frequency="monthly",
                        valid_from="2024-01-01",
                        valid_until="2024-02-01",
                    ),
                    CostVersion(
                        cost_id="c",
                        amount=2,
                        frequency="monthly",
                        valid_from="2024-03-01",
                    ),
                ],
            )

    def test_rejects_foreign_versions(self):
        """Test versions of another cost cannot join a chain."""
        with pytest.raises(ValidationError, match="found in chain"):
            CostVersionChain(
                cost_id="c",
                versions=[
                    CostVersion(
                        cost_id="other",
                        amount=1,
                        frequency="monthly",
                        valid_from="2024-01-01",
                    )
                ],
            )

    def test_rejects_empty_chain(self):
        """Test a chain needs at least one version."""
        with pytest.raises(ValidationError):
            CostVersionChain(cost_id="c", versions=[])


class TestVersionAt:
    """Test point-in-time lookups."""

    def test_before_creation(self, chain):
        """Test no version exists before the cost was created."""
        assert version_at(chain, "2023-12-31") is None

    def test_open_version(self, chain):
        """Test the open version answers any later date."""
        assert version_at(chain, "2024-01-01").amount == 80
        assert version_at(chain, "2030-06-15").amount == 80

    def test_edit_boundary(self, chain):
        """Test old terms apply up to the day before an edit, new terms from it."""
        edited = apply_edit(chain, make_terms(95), "2024-06-01")

        assert version_at(edited, "2024-05-31").amount == 80
        assert version_at(edited, "2024-06-01").amount == 95
        assert version_at(edited, date(2025, 1, 1)).amount == 95


class TestApplyEdit:
    """Test edits to a cost's terms."""

    def test_edit_appends_version(self, chain):
        """Test an edit closes the current version and appends a new one."""
        edited = apply_edit(chain, make_terms(95), "2024-06-01")

        assert len(edited) == 2
        assert edited.versions[0].valid_until == date(2024, 6, 1)
        assert edited.latest.valid_from == date(2024, 6, 1)
        assert edited.latest.valid_until is None
        assert_contiguous(edited)

    def test_input_chain_unchanged(self, chain):
        """Test edits return a new chain."""
        apply_edit(chain, make_terms(95), "2024-06-01")

        assert len(chain) == 1
        assert chain.latest.valid_until is None

    def test_edit_before_creation_rejected(self, chain):
        """Test an effective date before the creation date fails."""
        with pytest.raises(InvalidEffectiveDate, match="precedes cost power"):
            apply_edit(chain, make_terms(95), "2023-12-31")

    def test_edit_on_creation_date_replaces_terms(self, chain):
        """Test an edit effective on the creation date replaces the first version."""
        edited = apply_edit(chain, make_terms(70), "2024-01-01")

        assert len(edited) == 1
        assert edited.latest.amount == 70
        assert edited.created_from == date(2024, 1, 1)

    def test_past_edit_discards_later_versions(self, chain):
        """Test a back-dated edit supersedes versions starting after it."""
        edited = apply_edit(chain, make_terms(90), "2024-04-01")
        edited = apply_edit(edited, make_terms(100), "2024-08-01")
        edited = apply_edit(edited, make_terms(85), "2024-03-01")

        assert [version.amount for version in edited.versions] == [80, 85]
        assert version_at(edited, "2024-09-01").amount == 85
        assert_contiguous(edited)

    def test_many_edits_stay_contiguous(self, chain):
        """Test that chains stay ordered and gap-free after repeated edits."""
        edited = chain
        for month, amount in [(3, 81), (5, 82), (2, 83), (9, 84), (9, 85), (12, 86)]:
            edited = apply_edit(edited, make_terms(amount), date(2024, month, 1))

        starts = [version.valid_from for version in edited.versions]
        assert starts == sorted(set(starts))
        assert_contiguous(edited)
        assert edited.latest.valid_until is None
        assert version_at(edited, "2024-10-01").amount == 85

    def test_edit_changes_terms(self, chain):
        """Test every term can change in an edit."""
        terms = make_terms(
            120,
            frequency="yearly",
            payer_id="landlord",
            is_shared=True,
            split_policy="weighted",
            split_parameters={"anna": 60, "ben": 40},
        )
        edited = apply_edit(chain, terms, "2024-02-01")

        assert edited.latest.terms() == terms


class TestClose:
    """Test closing a cost."""

    def test_close_ends_last_version(self, chain):
        """Test a closed cost has no version on or after the end date."""
        closed = close(chain, "2024-10-01")

        assert closed.is_closed is True
        assert version_at(closed, "2024-09-30").amount == 80
        assert version_at(closed, "2024-10-01") is None

    def test_close_before_last_version_rejected(self, chain):
        """Test the end date cannot precede the current version."""
        edited = apply_edit(chain, make_terms(95), "2024-06-01")
        with pytest.raises(InvalidEffectiveDate):
            close(edited, "2024-05-01")

    def test_edit_after_close_rejected(self, chain):
        """Test edits after the end date of a closed cost fail."""
        closed = close(chain, "2024-10-01")
        with pytest.raises(InvalidEffectiveDate, match="ended on 2024-10-01"):
            apply_edit(closed, make_terms(95), "2024-11-01")

    def test_edit_inside_closed_window(self, chain):
        """Test an edit before the end date reopens the cost from that date."""
        closed = close(chain, "2024-10-01")
        edited = apply_edit(closed, make_terms(95), "2024-07-01")

        assert edited.is_closed is False
        assert version_at(edited, "2024-12-01").amount == 95


class TestCompareVersions:
    """Test comparison of version terms."""

    def test_amount_change(self, chain):
        """Test that an amount change is reported."""
        edited = apply_edit(chain, make_terms(95), "2024-06-01")
        comparison = compare_versions(edited.versions[0], edited.versions[1])

        assert comparison["has_changes"] is True
        assert comparison["from"] == date(2024, 1, 1)
        assert comparison["to"] == date(2024, 6, 1)
        assert "values_changed" in comparison["changes"]
        assert "root['amount']" in comparison["changes"]["values_changed"]

    def test_identical_terms(self, chain):
        """Test that identical terms report no change."""
        edited = apply_edit(chain, make_terms(80), "2024-06-01")
        comparison = compare_versions(edited.versions[0], edited.versions[1])

        assert comparison["has_changes"] is False


class TestVersionHistory:
    """Test version history listing."""

    def test_history(self, chain):
        """Test labels, windows and changed fields."""
        edited = apply_edit(chain, make_terms(95), "2024-06-01")
        edited = apply_edit(edited, make_terms(95, is_shared=True), "2024-09-01")

        history = version_history(edited)

        assert [entry["version"] for entry in history] == ["v1", "v2", "v3"]
        assert history[0]["changed_fields"] == []
        assert history[1]["changed_fields"] == ["amount"]
        assert history[2]["changed_fields"] == ["is_shared"]
        assert history[0]["valid_until"] == date(2024, 6, 1)
        assert history[2]["valid_until"] is None
        assert history[2]["frequency"] == "monthly"
