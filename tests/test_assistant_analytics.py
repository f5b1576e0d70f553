"""Tests for the assistant's snapshot analytics.

Covers:
    - Lead / account / contact / deal counts over the demo records
    - Top and weekly lead rankings, top customer accounts
    - Upcoming-deal window relative to an injected date
    - Performance metrics and rule-based advice
    - Stage counts in pipeline order
"""

from __future__ import annotations

from datetime import date

import pytest

from src.crm.assistant.analytics import CRMAnalytics
from src.crm.records.schemas import CRMSnapshot, DealStage


@pytest.fixture
def analytics(demo_snapshot) -> CRMAnalytics:
    return CRMAnalytics(demo_snapshot)


class TestCounts:
    """Record counts by status/type."""

    def test_lead_metrics(self, analytics) -> None:
        metrics = analytics.lead_metrics()
        assert (metrics.total, metrics.new, metrics.qualified, metrics.working) == (4, 1, 1, 1)

    def test_account_metrics(self, analytics) -> None:
        metrics = analytics.account_metrics()
        assert (metrics.total, metrics.customers, metrics.prospects, metrics.partners) == (
            4,
            2,
            1,
            1,
        )

    def test_contact_metrics(self, analytics) -> None:
        metrics = analytics.contact_metrics()
        assert (metrics.total, metrics.active_deal, metrics.prospects, metrics.suspects) == (
            5,
            2,
            2,
            1,
        )

    def test_deal_metrics(self, analytics) -> None:
        metrics = analytics.deal_metrics()
        assert metrics.active == 5
        assert metrics.won == 1
        assert metrics.pipeline_value == 735000
        assert metrics.revenue == 45000
        assert metrics.average_active_size == 147000
        assert metrics.win_rate == pytest.approx(16.67, abs=0.01)

    def test_empty_snapshot_has_no_division_errors(self) -> None:
        analytics = CRMAnalytics(CRMSnapshot())
        assert analytics.deal_metrics().win_rate == 0.0
        assert analytics.performance().conversion_rate == 0.0
        assert analytics.top_leads() == []


class TestRankings:
    """Sorted views over leads and accounts."""

    def test_top_leads(self, analytics) -> None:
        assert [lead.id for lead in analytics.top_leads()] == [
            "lead-002",
            "lead-001",
            "lead-003",
            "lead-004",
        ]

    def test_weekly_leads_only_new_or_qualified(self, analytics) -> None:
        assert [lead.id for lead in analytics.weekly_leads()] == ["lead-002", "lead-001"]

    def test_top_accounts_are_customers(self, analytics) -> None:
        assert [a.id for a in analytics.top_accounts()] == ["account-001", "account-003"]

    def test_upcoming_deals_window(self, analytics) -> None:
        assert analytics.upcoming_deals(date(2024, 3, 1)) == []
        assert [d.id for d in analytics.upcoming_deals(date(2024, 3, 10))] == ["deal-001"]

    def test_upcoming_deals_skip_closed(self, analytics) -> None:
        assert [d.id for d in analytics.upcoming_deals(date(2024, 3, 25))] == []


class TestPerformance:
    """Revenue, conversion and coaching lines."""

    def test_performance(self, analytics) -> None:
        perf = analytics.performance()
        assert perf.revenue == 45000
        assert perf.average_won_size == 45000
        assert perf.conversion_rate == 25.0
        assert perf.customer_count == 2
        assert (perf.active_deals, perf.won_deals) == (5, 1)

    def test_advice(self, analytics) -> None:
        assert analytics.performance_advice() == [
            "Excellent conversion rate! Consider scaling your lead generation",
            "You have many active deals - focus on closing them",
            "Focus on 5 high-value deals for maximum impact",
        ]

    def test_stage_counts(self, analytics) -> None:
        counts = analytics.stage_counts()
        assert list(counts) == list(DealStage)
        assert counts[DealStage.NEGOTIATING] == 2
        assert counts[DealStage.ORDER_LOST] == 0
