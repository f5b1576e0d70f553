"""Notification feed combining engine recommendations with follow-up rules.

Builds the list of actionable prompts shown to a sales rep. The feed starts
with the top engine recommendations for open deals, then applies fixed
follow-up rules over leads, deals and accounts:

    call         New leads scoring >= 80
    deadline     Open deals closing within 7 days at >= 70% probability
    follow-up    Qualified leads idle for more than 3 days (max 3)
    urgent       Negotiating deals not updated for more than 2 days
    meeting      Customer accounts over $50K revenue idle for 7+ days (max 2)
    opportunity  Proposals worth > 1.5x the average deal value (max 2)

The feed is sorted by priority, then by due date. The reference time is
injected so output is reproducible.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import structlog

from src.crm.recommendations.engine import RecommendationEngine
from src.crm.recommendations.schemas import (
    ActionType,
    Notification,
    NotificationKind,
    Priority,
    RelatedRecord,
)
from src.crm.records.schemas import (
    AccountType,
    CRMSnapshot,
    DealStage,
    LeadStatus,
    format_money,
)

logger = structlog.get_logger(__name__)

HOT_LEAD_SCORE = 80
CLOSING_WINDOW_DAYS = 7
CLOSING_MIN_PROBABILITY = 70
STALE_LEAD_DAYS = 3
STALE_NEGOTIATION_DAYS = 2
KEY_ACCOUNT_REVENUE = 50_000
KEY_ACCOUNT_IDLE_DAYS = 7
HIGH_VALUE_MULTIPLIER = 1.5

AI_ACTION_LABELS: dict[ActionType, str] = {
    ActionType.CALL: "Call Now",
    ActionType.EMAIL: "Send Email",
    ActionType.MEETING: "Schedule Meeting",
    ActionType.PROPOSAL: "Send Proposal",
    ActionType.CASE_STUDY: "Share Case Study",
    ActionType.DISCOUNT: "Offer Discount",
    ActionType.WAIT: "Monitor",
}


class NotificationFeed:
    """Builds the sorted notification list for a CRM snapshot.

    Args:
        engine: RecommendationEngine used for the AI recommendation entries.
        ai_limit: Maximum number of engine recommendations to surface.
    """

    def __init__(self, engine: RecommendationEngine, ai_limit: int = 5) -> None:
        self._engine = engine
        self._ai_limit = ai_limit

    def build(self, snapshot: CRMSnapshot, now: datetime) -> list[Notification]:
        """Generate and sort all notifications for the snapshot at time `now`."""
        today = now.date()
        tomorrow = today + timedelta(days=1)
        items: list[Notification] = []

        items.extend(self._ai_recommendations(snapshot, today))
        items.extend(self._hot_leads(snapshot, today))
        items.extend(self._closing_deals(snapshot, today, tomorrow))
        items.extend(self._stale_qualified_leads(snapshot, now, today))
        items.extend(self._stalled_negotiations(snapshot, now, today))
        items.extend(self._quiet_key_accounts(snapshot, now, tomorrow))
        items.extend(self._high_value_proposals(snapshot, tomorrow))

        items.sort(key=lambda n: (-n.priority.rank, n.due_date or date.max))
        logger.info(
            "notification_feed_built",
            total=len(items),
            high_priority=sum(1 for n in items if n.priority == Priority.HIGH),
        )
        return items

    # ── Generators ──────────────────────────────────────────────────────

    def _ai_recommendations(self, snapshot: CRMSnapshot, today: date) -> list[Notification]:
        names = {deal.id: deal.name for deal in snapshot.deals}
        recommendations = self._engine.generate_recommendations(snapshot.deals)
        return [
            Notification(
                id=rec.id,
                kind=NotificationKind.AI_RECOMMENDATION,
                title=f"AI: {rec.action}",
                description=f"{rec.rationale} (Confidence: {round(rec.confidence * 100)}%)",
                priority=rec.priority,
                due_date=today,
                related=RelatedRecord(kind="deal", id=rec.deal_id, name=names[rec.deal_id]),
                action_label=AI_ACTION_LABELS[rec.action_type],
                recommendation=rec,
            )
            for rec in recommendations[: self._ai_limit]
        ]

    @staticmethod
    def _hot_leads(snapshot: CRMSnapshot, today: date) -> list[Notification]:
        return [
            Notification(
                id=f"lead-followup-{lead.id}",
                kind=NotificationKind.CALL,
                title="Call High-Score Lead Today",
                description=(
                    f"{lead.name} from {lead.company} has a score of {lead.score}. "
                    "Strike while hot!"
                ),
                priority=Priority.HIGH,
                due_date=today,
                related=RelatedRecord(kind="lead", id=lead.id, name=lead.name),
                action_label="Call Now",
            )
            for lead in snapshot.leads
            if lead.status == LeadStatus.NEW and lead.score >= HOT_LEAD_SCORE
        ]

    @staticmethod
    def _closing_deals(
        snapshot: CRMSnapshot, today: date, tomorrow: date
    ) -> list[Notification]:
        window_end = today + timedelta(days=CLOSING_WINDOW_DAYS)
        items: list[Notification] = []
        for deal in snapshot.open_deals:
            closing = deal.closing_date
            if closing is None or not today <= closing <= window_end:
                continue
            if deal.probability < CLOSING_MIN_PROBABILITY:
                continue
            urgent = closing <= tomorrow
            items.append(
                Notification(
                    id=f"deal-closing-{deal.id}",
                    kind=NotificationKind.DEADLINE,
                    title="URGENT: Deal Closing Tomorrow!" if urgent else "Deal Closing This Week",
                    description=(
                        f"{deal.name} ({deal.probability}% probability, "
                        f"{format_money(deal.value)}) - {deal.next_step}"
                    ),
                    priority=Priority.HIGH if urgent else Priority.MEDIUM,
                    due_date=closing,
                    related=RelatedRecord(kind="deal", id=deal.id, name=deal.name),
                    action_label="Review Deal",
                )
            )
        return items

    @staticmethod
    def _stale_qualified_leads(
        snapshot: CRMSnapshot, now: datetime, today: date
    ) -> list[Notification]:
        cutoff = now - timedelta(days=STALE_LEAD_DAYS)
        stale = [
            lead
            for lead in snapshot.leads
            if lead.status == LeadStatus.QUALIFIED
            and lead.last_activity_at is not None
            and lead.last_activity_at < cutoff
        ]
        return [
            Notification(
                id=f"lead-stale-{lead.id}",
                kind=NotificationKind.FOLLOW_UP,
                title="Follow-up Required",
                description=(
                    f"{lead.name} hasn't been contacted in 3+ days. "
                    "Don't let this qualified lead go cold!"
                ),
                priority=Priority.MEDIUM,
                due_date=today,
                related=RelatedRecord(kind="lead", id=lead.id, name=lead.name),
                action_label="Schedule Call",
            )
            for lead in stale[:3]
        ]

    @staticmethod
    def _stalled_negotiations(
        snapshot: CRMSnapshot, now: datetime, today: date
    ) -> list[Notification]:
        cutoff = now - timedelta(days=STALE_NEGOTIATION_DAYS)
        return [
            Notification(
                id=f"deal-negotiation-{deal.id}",
                kind=NotificationKind.URGENT,
                title="Negotiation Needs Attention",
                description=(
                    f"{deal.name} has been in negotiation for 2+ days. "
                    "Time to push forward!"
                ),
                priority=Priority.HIGH,
                due_date=today,
                related=RelatedRecord(kind="deal", id=deal.id, name=deal.name),
                action_label="Continue Negotiation",
            )
            for deal in snapshot.deals
            if deal.stage == DealStage.NEGOTIATING
            and deal.updated_at is not None
            and deal.updated_at < cutoff
        ]

    @staticmethod
    def _quiet_key_accounts(
        snapshot: CRMSnapshot, now: datetime, tomorrow: date
    ) -> list[Notification]:
        cutoff = now - timedelta(days=KEY_ACCOUNT_IDLE_DAYS)
        quiet = [
            account
            for account in snapshot.accounts
            if account.type == AccountType.CUSTOMER
            and account.revenue_value > KEY_ACCOUNT_REVENUE
            and account.last_activity_at is not None
            and account.last_activity_at < cutoff
        ]
        return [
            Notification(
                id=f"account-check-{account.id}",
                kind=NotificationKind.MEETING,
                title="Check-in with Key Account",
                description=(
                    f"{account.name} ({account.revenue}) - No activity in 7+ days. "
                    "Schedule a check-in."
                ),
                priority=Priority.MEDIUM,
                due_date=tomorrow,
                related=RelatedRecord(kind="account", id=account.id, name=account.name),
                action_label="Schedule Meeting",
            )
            for account in quiet[:2]
        ]

    @staticmethod
    def _high_value_proposals(snapshot: CRMSnapshot, tomorrow: date) -> list[Notification]:
        if not snapshot.deals:
            return []
        average = sum(deal.value for deal in snapshot.deals) / len(snapshot.deals)
        candidates = [
            deal
            for deal in snapshot.deals
            if deal.stage == DealStage.PROPOSAL_SUBMITTED
            and deal.value > average * HIGH_VALUE_MULTIPLIER
        ]
        return [
            Notification(
                id=f"deal-opportunity-{deal.id}",
                kind=NotificationKind.OPPORTUNITY,
                title="High-Value Opportunity",
                description=(
                    f"{deal.name} ({format_money(deal.value)}) - 50% above average "
                    "deal size. Priority focus!"
                ),
                priority=Priority.HIGH,
                due_date=tomorrow,
                related=RelatedRecord(kind="deal", id=deal.id, name=deal.name),
                action_label="Prioritize Deal",
            )
            for deal in candidates[:2]
        ]
