"""Deal next-action recommendations and the notification feed.

Exports:
    RecommendationEngine: Decision-table recommender for open deals.
    NotificationFeed: Engine recommendations merged with follow-up rules.
    DECISION_RULES, DecisionRule, DealSignals: The ordered rule table.
    ActionType, Priority, ActionPrediction, Recommendation, Notification:
        Result schemas.
"""

from src.crm.recommendations.engine import RecommendationEngine, build_rationale
from src.crm.recommendations.notifications import NotificationFeed
from src.crm.recommendations.rules import (
    DECISION_RULES,
    DEFAULT_PREDICTION,
    DealSignals,
    DecisionRule,
    evaluate_rules,
)
from src.crm.recommendations.schemas import (
    ActionPrediction,
    ActionType,
    Notification,
    NotificationKind,
    Priority,
    Recommendation,
)

__all__ = [
    "ActionPrediction",
    "ActionType",
    "DECISION_RULES",
    "DEFAULT_PREDICTION",
    "DealSignals",
    "DecisionRule",
    "Notification",
    "NotificationFeed",
    "NotificationKind",
    "Priority",
    "Recommendation",
    "RecommendationEngine",
    "build_rationale",
    "evaluate_rules",
]
