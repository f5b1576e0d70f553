"""Pydantic models for deal-action recommendations and notifications.

Defines the action vocabulary (ActionType with display text and static
priority), the raw ActionPrediction produced by the decision table, the
per-deal Recommendation, and the Notification items of the feed.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ───────────────────────────────────────────────────────────────────


class Priority(str, Enum):
    """Urgency of a recommendation or notification."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank: high=3, medium=2, low=1."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class ActionType(str, Enum):
    """Suggested next action for a deal."""

    EMAIL = "email"
    CALL = "call"
    PROPOSAL = "proposal"
    MEETING = "meeting"
    CASE_STUDY = "case-study"
    DISCOUNT = "discount"
    WAIT = "wait"

    @property
    def action_text(self) -> str:
        """Display text shown to the sales rep."""
        return ACTION_TEXT[self]

    @property
    def priority(self) -> Priority:
        """Static priority for this action."""
        return ACTION_PRIORITIES[self]


ACTION_TEXT: dict[ActionType, str] = {
    ActionType.EMAIL: "Send follow-up email",
    ActionType.CALL: "Make a call",
    ActionType.PROPOSAL: "Send proposal",
    ActionType.MEETING: "Schedule a meeting/demo",
    ActionType.CASE_STUDY: "Share a case study/testimonial",
    ActionType.DISCOUNT: "Offer a discount",
    ActionType.WAIT: "Do nothing (wait)",
}

ACTION_PRIORITIES: dict[ActionType, Priority] = {
    ActionType.EMAIL: Priority.MEDIUM,
    ActionType.CALL: Priority.HIGH,
    ActionType.PROPOSAL: Priority.HIGH,
    ActionType.MEETING: Priority.HIGH,
    ActionType.CASE_STUDY: Priority.MEDIUM,
    ActionType.DISCOUNT: Priority.MEDIUM,
    ActionType.WAIT: Priority.LOW,
}


# ── Recommendation Models ───────────────────────────────────────────────────


class ActionPrediction(BaseModel):
    """Decision-table output for one (value, probability, stage) triple."""

    model_config = ConfigDict(frozen=True)

    action_type: ActionType
    confidence: float = Field(ge=0.0, le=1.0)
    rule: str = Field(default="default", description="Name of the matched decision rule")

    @property
    def priority(self) -> Priority:
        return self.action_type.priority


class Recommendation(BaseModel):
    """Suggested next action for one deal, with rationale.

    Derived on demand from the current deal state; never stored.
    """

    id: str
    deal_id: str
    deal_name: str
    action: str
    action_type: ActionType
    confidence: float = Field(ge=0.0, le=1.0)
    priority: Priority
    rationale: str


# ── Notification Models ─────────────────────────────────────────────────────


class NotificationKind(str, Enum):
    """Origin of a notification in the feed."""

    AI_RECOMMENDATION = "ai-recommendation"
    CALL = "call"
    DEADLINE = "deadline"
    FOLLOW_UP = "follow-up"
    URGENT = "urgent"
    MEETING = "meeting"
    OPPORTUNITY = "opportunity"


class RelatedRecord(BaseModel):
    """Record a notification points at."""

    kind: str  # lead | account | contact | deal
    id: str
    name: str


class Notification(BaseModel):
    """Actionable prompt shown to a sales rep."""

    id: str
    kind: NotificationKind
    title: str
    description: str
    priority: Priority
    due_date: date | None = None
    related: RelatedRecord
    action_label: str
    recommendation: Recommendation | None = None
