"""Read-only CRM metrics used by the assistant's replies.

CRMAnalytics wraps one CRMSnapshot and derives counts, rankings, pipeline
totals and rule-based performance advice from it. Nothing here touches a
clock: methods that need "today" take it as an argument.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from src.crm.records.schemas import (
    Account,
    AccountType,
    ContactStatus,
    CRMSnapshot,
    Deal,
    DealStage,
    Lead,
    LeadStatus,
)

UPCOMING_WINDOW_DAYS = 7
HIGH_PROBABILITY_UPCOMING = 75


@dataclass(frozen=True)
class LeadMetrics:
    total: int
    new: int
    qualified: int
    working: int


@dataclass(frozen=True)
class AccountMetrics:
    total: int
    customers: int
    prospects: int
    partners: int


@dataclass(frozen=True)
class ContactMetrics:
    total: int
    active_deal: int
    prospects: int
    suspects: int


@dataclass(frozen=True)
class DealMetrics:
    active: int
    won: int
    pipeline_value: float
    revenue: float
    average_active_size: float
    win_rate: float  # percent of decided-or-active deals that are won


@dataclass(frozen=True)
class PerformanceMetrics:
    revenue: float
    pipeline_value: float
    average_won_size: float
    conversion_rate: float  # won deals per lead, percent
    lead_count: int
    customer_count: int
    active_deals: int
    won_deals: int


class CRMAnalytics:
    """Metrics over a single CRM snapshot."""

    def __init__(self, snapshot: CRMSnapshot) -> None:
        self.snapshot = snapshot

    # ── Leads ───────────────────────────────────────────────────────────

    def lead_metrics(self) -> LeadMetrics:
        leads = self.snapshot.leads
        return LeadMetrics(
            total=len(leads),
            new=sum(1 for lead in leads if lead.status == LeadStatus.NEW),
            qualified=sum(1 for lead in leads if lead.status == LeadStatus.QUALIFIED),
            working=sum(1 for lead in leads if lead.status == LeadStatus.WORKING),
        )

    def top_leads(self, limit: int = 5) -> list[Lead]:
        """Leads by score, highest first."""
        return sorted(self.snapshot.leads, key=lambda lead: -lead.score)[:limit]

    def weekly_leads(self, limit: int = 3) -> list[Lead]:
        """Best-scoring leads still in play (New or Qualified)."""
        fresh = [
            lead
            for lead in self.snapshot.leads
            if lead.status in (LeadStatus.NEW, LeadStatus.QUALIFIED)
        ]
        return sorted(fresh, key=lambda lead: -lead.score)[:limit]

    # ── Accounts ────────────────────────────────────────────────────────

    def account_metrics(self) -> AccountMetrics:
        accounts = self.snapshot.accounts
        return AccountMetrics(
            total=len(accounts),
            customers=sum(1 for a in accounts if a.type == AccountType.CUSTOMER),
            prospects=sum(1 for a in accounts if a.type == AccountType.PROSPECT),
            partners=sum(1 for a in accounts if a.type == AccountType.PARTNER),
        )

    def top_accounts(self, limit: int = 5) -> list[Account]:
        """Customer accounts by number of active deals."""
        customers = [a for a in self.snapshot.accounts if a.type == AccountType.CUSTOMER]
        return sorted(customers, key=lambda a: -a.active_deals)[:limit]

    # ── Contacts ────────────────────────────────────────────────────────

    def contact_metrics(self) -> ContactMetrics:
        contacts = self.snapshot.contacts
        return ContactMetrics(
            total=len(contacts),
            active_deal=sum(1 for c in contacts if c.status == ContactStatus.ACTIVE_DEAL),
            prospects=sum(1 for c in contacts if c.status == ContactStatus.PROSPECT),
            suspects=sum(1 for c in contacts if c.status == ContactStatus.SUSPECT),
        )

    # ── Deals ───────────────────────────────────────────────────────────

    def deal_metrics(self) -> DealMetrics:
        active = self.snapshot.open_deals
        won = self.snapshot.won_deals
        pipeline_value = sum(deal.value for deal in active)
        decided = len(won) + len(active)
        return DealMetrics(
            active=len(active),
            won=len(won),
            pipeline_value=pipeline_value,
            revenue=sum(deal.value for deal in won),
            average_active_size=pipeline_value / len(active) if active else 0.0,
            win_rate=len(won) / decided * 100 if decided else 0.0,
        )

    def upcoming_deals(self, today: date) -> list[Deal]:
        """Open deals closing within the next week, soonest first."""
        window_end = today + timedelta(days=UPCOMING_WINDOW_DAYS)
        upcoming = [
            deal
            for deal in self.snapshot.open_deals
            if deal.closing_date is not None and today <= deal.closing_date <= window_end
        ]
        return sorted(upcoming, key=lambda deal: deal.closing_date)

    # ── Performance ─────────────────────────────────────────────────────

    def performance(self) -> PerformanceMetrics:
        won = self.snapshot.won_deals
        active = self.snapshot.open_deals
        leads = self.snapshot.leads
        revenue = sum(deal.value for deal in won)
        return PerformanceMetrics(
            revenue=revenue,
            pipeline_value=sum(deal.value for deal in active),
            average_won_size=revenue / len(won) if won else 0.0,
            conversion_rate=len(won) / len(leads) * 100 if leads else 0.0,
            lead_count=len(leads),
            customer_count=self.account_metrics().customers,
            active_deals=len(active),
            won_deals=len(won),
        )

    def performance_advice(self) -> list[str]:
        """Rule-based coaching lines derived from the performance metrics."""
        perf = self.performance()
        advice: list[str] = []

        if perf.conversion_rate < 10:
            advice.append(
                "Focus on lead qualification - your conversion rate needs improvement"
            )
        elif perf.conversion_rate > 20:
            advice.append("Excellent conversion rate! Consider scaling your lead generation")

        if perf.active_deals > perf.won_deals * 2:
            advice.append("You have many active deals - focus on closing them")

        if self.lead_metrics().new > perf.lead_count * 0.5:
            advice.append("Many new leads need follow-up - prioritize outreach")

        high_value = [
            deal
            for deal in self.snapshot.open_deals
            if deal.value > perf.average_won_size * 1.5
        ]
        if high_value:
            advice.append(f"Focus on {len(high_value)} high-value deals for maximum impact")

        return advice

    def stage_counts(self) -> dict[DealStage, int]:
        """Number of deals per pipeline stage, in pipeline order."""
        return {
            stage: sum(1 for deal in self.snapshot.deals if deal.stage == stage)
            for stage in DealStage
        }
