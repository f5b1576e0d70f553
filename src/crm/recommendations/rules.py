"""Decision table mapping deal signals to a suggested next action.

The table is an ordered list of DecisionRule entries evaluated top-down;
the first rule whose predicate matches wins. If nothing matches, the
DEFAULT_PREDICTION (follow-up email, 0.55) applies.

Confidence values and thresholds are fixed business rules. They are not
derived from, and do not imply, a trained statistical model.

Tiers:
    probability >= 80       -> closing-oriented actions
    50 <= probability < 80  -> advance-the-deal actions
    probability < 50        -> nurture actions
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from src.crm.recommendations.schemas import ActionPrediction, ActionType
from src.crm.records.schemas import DealStage

HIGH_PROBABILITY = 80
MEDIUM_PROBABILITY = 50
HIGH_VALUE_PROPOSAL = 150_000
HIGH_VALUE_OPPORTUNITY = 100_000


@dataclass(frozen=True)
class DealSignals:
    """Normalised inputs to the decision table.

    Attributes:
        value: Deal value in currency units (>= 0).
        probability: Win probability, integer 0-100.
        stage: Pipeline stage used for matching.
    """

    value: float
    probability: int
    stage: DealStage


@dataclass(frozen=True)
class DecisionRule:
    """One row of the decision table.

    Attributes:
        name: Stable identifier, reported on the prediction for traceability.
        predicate: Returns True when the row applies to the signals.
        action_type: Action to recommend when matched.
        confidence: Confidence reported when matched (0.0-1.0).
    """

    name: str
    predicate: Callable[[DealSignals], bool]
    action_type: ActionType
    confidence: float

    def matches(self, signals: DealSignals) -> bool:
        return self.predicate(signals)

    def prediction(self) -> ActionPrediction:
        return ActionPrediction(
            action_type=self.action_type,
            confidence=self.confidence,
            rule=self.name,
        )


# ── Predicate Builders ──────────────────────────────────────────────────────


def _high(signals: DealSignals) -> bool:
    return signals.probability >= HIGH_PROBABILITY


def _medium(signals: DealSignals) -> bool:
    return MEDIUM_PROBABILITY <= signals.probability < HIGH_PROBABILITY


def _low(signals: DealSignals) -> bool:
    return signals.probability < MEDIUM_PROBABILITY


def _when(
    tier: Callable[[DealSignals], bool],
    stage: DealStage,
    min_value: float | None = None,
) -> Callable[[DealSignals], bool]:
    """Build a predicate for (probability tier, stage, optional value floor)."""

    def predicate(signals: DealSignals) -> bool:
        if not tier(signals) or signals.stage != stage:
            return False
        return min_value is None or signals.value >= min_value

    return predicate


# ── Table ───────────────────────────────────────────────────────────────────

DECISION_RULES: list[DecisionRule] = [
    # probability >= 80
    DecisionRule(
        "high_closing_meeting",
        _when(_high, DealStage.CLOSING),
        ActionType.MEETING,
        0.92,
    ),
    DecisionRule(
        "high_negotiating_proposal",
        _when(_high, DealStage.NEGOTIATING),
        ActionType.PROPOSAL,
        0.88,
    ),
    DecisionRule(
        "high_proposal_meeting",
        _when(_high, DealStage.PROPOSAL_SUBMITTED),
        ActionType.MEETING,
        0.85,
    ),
    # 50 <= probability < 80
    DecisionRule(
        "medium_proposal_high_value_meeting",
        _when(_medium, DealStage.PROPOSAL_SUBMITTED, min_value=HIGH_VALUE_PROPOSAL),
        ActionType.MEETING,
        0.78,
    ),
    DecisionRule(
        "medium_proposal_email",
        _when(_medium, DealStage.PROPOSAL_SUBMITTED),
        ActionType.EMAIL,
        0.72,
    ),
    DecisionRule(
        "medium_negotiating_meeting",
        _when(_medium, DealStage.NEGOTIATING),
        ActionType.MEETING,
        0.75,
    ),
    DecisionRule(
        "medium_opportunity_email",
        _when(_medium, DealStage.OPPORTUNITY_IDENTIFIED),
        ActionType.EMAIL,
        0.70,
    ),
    # probability < 50
    DecisionRule(
        "low_opportunity_high_value_call",
        _when(_low, DealStage.OPPORTUNITY_IDENTIFIED, min_value=HIGH_VALUE_OPPORTUNITY),
        ActionType.CALL,
        0.65,
    ),
    DecisionRule(
        "low_opportunity_case_study",
        _when(_low, DealStage.OPPORTUNITY_IDENTIFIED),
        ActionType.CASE_STUDY,
        0.62,
    ),
    DecisionRule(
        "low_proposal_email",
        _when(_low, DealStage.PROPOSAL_SUBMITTED),
        ActionType.EMAIL,
        0.68,
    ),
    DecisionRule(
        "low_negotiating_email",
        _when(_low, DealStage.NEGOTIATING),
        ActionType.EMAIL,
        0.66,
    ),
]

DEFAULT_PREDICTION = ActionPrediction(
    action_type=ActionType.EMAIL,
    confidence=0.55,
    rule="default",
)


def evaluate_rules(
    signals: DealSignals,
    rules: Sequence[DecisionRule] = DECISION_RULES,
) -> ActionPrediction:
    """Return the prediction of the first matching rule, or the default."""
    for rule in rules:
        if rule.matches(signals):
            return rule.prediction()
    return DEFAULT_PREDICTION
