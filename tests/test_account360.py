"""Tests for the Account 360 view and account health scoring.

Covers:
    - Health score components (tier prefix, status, has-deals) and the cap
    - Related contact/deal matching by account name
    - Deal totals, pipeline status and contact coverage
    - Recommendations limited to the account's open deals
"""

from __future__ import annotations

import pytest

from src.crm.recommendations.engine import RecommendationEngine
from src.crm.records.account360 import build_account_360, compute_health_score
from src.crm.records.schemas import Account, Contact, CRMSnapshot


@pytest.fixture
def engine() -> RecommendationEngine:
    return RecommendationEngine()


def _account(**overrides) -> Account:
    fields = {"id": "a1", "name": "Acme Corp"}
    fields.update(overrides)
    return Account(**fields)


# -- Health Score ------------------------------------------------------------


class TestComputeHealthScore:
    """Additive score from a base of 50."""

    def test_base_score(self) -> None:
        assert compute_health_score(_account(), deal_count=0) == 50

    @pytest.mark.parametrize(
        ("rating", "bonus"),
        [
            ("Platinum (Must Have)", 25),
            ("Gold (High Priority)", 15),
            ("Silver (Medium Priority)", 5),
            ("gold", 15),
            ("Bronze", 0),
            (None, 0),
        ],
    )
    def test_tier_bonus(self, rating, bonus) -> None:
        assert compute_health_score(_account(account_rating=rating), deal_count=0) == 50 + bonus

    @pytest.mark.parametrize(
        ("status", "bonus"),
        [("Active Deal", 20), ("Prospect", 10), ("Churned", 0), (None, 0)],
    )
    def test_status_bonus(self, status, bonus) -> None:
        assert compute_health_score(_account(status=status), deal_count=0) == 50 + bonus

    def test_deal_bonus(self) -> None:
        assert compute_health_score(_account(), deal_count=3) == 65

    def test_capped_at_100(self) -> None:
        account = _account(account_rating="Platinum (Must Have)", status="Active Deal")
        assert compute_health_score(account, deal_count=1) == 100


# -- Account 360 -------------------------------------------------------------


class TestBuildAccount360:
    """Aggregated view over the demo records."""

    @pytest.mark.parametrize(
        ("index", "expected"),
        [(0, 100), (1, 90), (2, 70), (3, 65)],
    )
    def test_demo_health_scores(self, engine, demo_snapshot, index, expected) -> None:
        view = build_account_360(demo_snapshot.accounts[index], demo_snapshot, engine)
        assert view.health_score == expected

    def test_techcorp_view(self, engine, demo_snapshot) -> None:
        view = build_account_360(demo_snapshot.accounts[0], demo_snapshot, engine)
        assert [c.id for c in view.contacts] == ["contact-001"]
        assert [d.id for d in view.deals] == ["deal-001"]
        assert view.total_deal_value == 125000
        assert view.open_pipeline_value == 125000
        assert view.pipeline_status == "Active"
        assert view.contact_coverage == "Limited"
        assert [r.deal_id for r in view.recommendations] == ["deal-001"]

    def test_closed_deals_excluded_from_pipeline(self, engine, demo_snapshot) -> None:
        view = build_account_360(demo_snapshot.accounts[2], demo_snapshot, engine)
        assert [d.id for d in view.deals] == ["deal-004"]
        assert view.total_deal_value == 45000
        assert view.open_pipeline_value == 0
        assert view.recommendations == []

    def test_account_without_records(self, engine, demo_snapshot) -> None:
        view = build_account_360(_account(name="Nobody Ltd"), demo_snapshot, engine)
        assert view.contacts == []
        assert view.deals == []
        assert view.pipeline_status == "No Deals"
        assert view.contact_coverage == "None"
        assert view.health_score == 50

    def test_name_matching_ignores_case(self, engine) -> None:
        account = _account(name="Acme Corp")
        contacts = tuple(
            Contact(id=f"c{i}", first_name=f"P{i}", associated_account=name)
            for i, name in enumerate(["acme corp", "ACME CORP ", "Acme Corp", "Other"])
        )
        view = build_account_360(account, CRMSnapshot(contacts=contacts), engine)
        assert [c.id for c in view.contacts] == ["c0", "c1", "c2"]
        assert view.contact_coverage == "Good"
