"""Tests for CRM record schemas and the in-memory repository.

Covers:
    - parse_money / format_money currency handling
    - DealStage parsing across spellings
    - Deal default-to-zero policy and stage validation
    - InMemoryCRMRepository CRUD, ordering, timestamps and not-found errors
    - Snapshot helpers (open / won deals)
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.crm.errors import RecordNotFoundError
from src.crm.records.repository import InMemoryCRMRepository
from src.crm.records.schemas import (
    AccountCreate,
    ContactCreate,
    Deal,
    DealCreate,
    DealStage,
    LeadCreate,
    format_money,
    parse_money,
)


# -- Money -------------------------------------------------------------------


class TestParseMoney:
    """Currency display strings and numbers normalise to floats."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (125000, 125000.0),
            (99.5, 99.5),
            ("$125,000", 125000.0),
            ("$2.5M", 2_500_000.0),
            ("$5M+", 5_000_000.0),
            ("$500K", 500_000.0),
            ("$3b", 3_000_000_000.0),
            ("75", 75.0),
            ("100 bucks", 100.0),
            ("5 mins", 5.0),
        ],
    )
    def test_parses_amounts(self, raw, expected) -> None:
        assert parse_money(raw) == expected

    @pytest.mark.parametrize(
        "raw", [None, "", "TBD", float("nan"), True, 10**400, "9" * 400]
    )
    def test_unparseable_is_zero(self, raw) -> None:
        assert parse_money(raw) == 0.0

    def test_format_whole_amount(self) -> None:
        assert format_money(200000) == "$200,000"

    def test_format_fractional_amount(self) -> None:
        assert format_money(1234.5) == "$1,234.50"


# -- Stages ------------------------------------------------------------------


class TestDealStage:
    """Stage parsing tolerates label, enum-name and CamelCase spellings."""

    @pytest.mark.parametrize(
        "raw",
        ["Proposal Submitted", "PROPOSAL_SUBMITTED", "ProposalSubmitted", "proposal_submitted"],
    )
    def test_parse_spellings(self, raw) -> None:
        assert DealStage.parse(raw) == DealStage.PROPOSAL_SUBMITTED

    def test_parse_legacy_abbreviation(self) -> None:
        assert DealStage.parse("Opportunity Ident.") == DealStage.OPPORTUNITY_IDENTIFIED

    @pytest.mark.parametrize("raw", ["Discovery", "", None, 3])
    def test_parse_unknown_is_none(self, raw) -> None:
        assert DealStage.parse(raw) is None

    def test_terminal_stages(self) -> None:
        terminal = {stage for stage in DealStage if stage.is_terminal}
        assert terminal == {DealStage.ORDER_WON, DealStage.ORDER_LOST}


# -- Deal Validation ---------------------------------------------------------


class TestDealValidation:
    """Numeric fields never fail; unknown stages do."""

    def test_missing_numbers_default_to_zero(self) -> None:
        deal = DealCreate(name="Empty", value=None, probability=None)
        assert deal.value == 0.0
        assert deal.probability == 0

    def test_currency_value_is_parsed(self) -> None:
        assert DealCreate(name="X", value="$85,000").value == 85000.0

    def test_probability_is_clamped(self) -> None:
        assert DealCreate(name="X", probability=140).probability == 100
        assert DealCreate(name="X", probability=-5).probability == 0

    def test_negative_value_is_zero(self) -> None:
        assert DealCreate(name="X", value=-10).value == 0.0

    def test_oversized_numbers_default_to_zero(self) -> None:
        deal = DealCreate(name="X", value="9" * 400, probability="9" * 400)
        assert deal.value == 0.0
        assert deal.probability == 0

    def test_blank_stage_defaults_to_opportunity(self) -> None:
        assert DealCreate(name="X", stage="").stage == DealStage.OPPORTUNITY_IDENTIFIED

    def test_stage_spelling_normalised(self) -> None:
        assert DealCreate(name="X", stage="ORDER_WON").stage == DealStage.ORDER_WON

    def test_unknown_stage_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DealCreate(name="X", stage="Discovery")

    def test_is_open(self) -> None:
        assert Deal(id="d", name="X", stage="Closing").is_open
        assert not Deal(id="d", name="X", stage="Order Lost").is_open


# -- Repository --------------------------------------------------------------


class TestInMemoryRepository:
    """CRUD against the dict-backed repository."""

    async def test_seeded_records_keep_order(self, demo_repository) -> None:
        deals = await demo_repository.list_deals()
        assert [deal.id for deal in deals][:3] == ["deal-001", "deal-002", "deal-003"]
        assert len(await demo_repository.list_leads()) == 4
        assert len(await demo_repository.list_accounts()) == 4
        assert len(await demo_repository.list_contacts()) == 5

    async def test_create_lead_assigns_id(self) -> None:
        repo = InMemoryCRMRepository()
        lead = await repo.create_lead(LeadCreate(name="Eve Adams", company="Acme", score=70))
        assert lead.id.startswith("lead-")
        assert await repo.get_lead(lead.id) == lead
        assert await repo.list_leads() == [lead]

    async def test_create_deal_stamps_timestamps(self) -> None:
        repo = InMemoryCRMRepository()
        deal = await repo.create_deal(DealCreate(name="New Deal", value=1000))
        assert deal.created_at is not None
        assert deal.updated_at is not None
        assert deal.created_at.tzinfo is not None

    async def test_create_contact_keeps_supplied_timestamp(self) -> None:
        repo = InMemoryCRMRepository()
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        contact = await repo.create_contact(
            ContactCreate(first_name="Ann", last_name="Lee", created_at=created)
        )
        assert contact.created_at == created
        assert contact.full_name == "Ann Lee"

    async def test_update_merges_changes(self, demo_repository) -> None:
        before = await demo_repository.get_deal("deal-002")
        updated = await demo_repository.update_deal("deal-002", {"probability": 85})
        assert updated.probability == 85
        assert updated.name == before.name
        assert updated.updated_at > before.updated_at

    async def test_update_revalidates(self, demo_repository) -> None:
        with pytest.raises(ValidationError):
            await demo_repository.update_deal("deal-002", {"stage": "Discovery"})

    async def test_update_account(self, demo_repository) -> None:
        account = await demo_repository.update_account("account-003", {"rating": "Warm"})
        assert account.rating == "Warm"
        assert account.name == "StartupTech"

    async def test_delete_removes_record(self, demo_repository) -> None:
        await demo_repository.delete_contact("contact-005")
        with pytest.raises(RecordNotFoundError):
            await demo_repository.get_contact("contact-005")
        assert len(await demo_repository.list_contacts()) == 4

    @pytest.mark.parametrize(
        ("method", "kind"),
        [
            ("get_lead", "lead"),
            ("get_account", "account"),
            ("get_contact", "contact"),
            ("get_deal", "deal"),
        ],
    )
    async def test_unknown_id_raises(self, demo_repository, method, kind) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await getattr(demo_repository, method)("missing")
        assert exc_info.value.kind == kind
        assert exc_info.value.message == f"{kind.capitalize()} not found"

    async def test_delete_unknown_raises(self, demo_repository) -> None:
        with pytest.raises(RecordNotFoundError):
            await demo_repository.delete_lead("missing")

    async def test_snapshot(self, demo_repository) -> None:
        snapshot = await demo_repository.snapshot()
        assert isinstance(snapshot.deals, tuple)
        assert len(snapshot.deals) == 6
        assert len(snapshot.open_deals) == 5
        assert [deal.id for deal in snapshot.won_deals] == ["deal-004"]

    async def test_snapshot_is_detached(self) -> None:
        repo = InMemoryCRMRepository()
        snapshot = await repo.snapshot()
        await repo.create_account(AccountCreate(name="Later Corp"))
        assert snapshot.accounts == ()
