"""Deal next-action recommendation engine.

Wraps the decision table (rules.py) with input normalisation, rationale
generation, and batch ranking. Everything here is a pure function of the
deal state: no clock, no randomness, no I/O beyond debug logging.

Malformed input degrades instead of raising: a missing or unparseable
value/probability is treated as 0, and an unknown stage is evaluated as
Opportunity Identified.

Exports:
    RecommendationEngine: Single-deal and batch recommendation generator.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import structlog

from src.crm.recommendations.rules import (
    DECISION_RULES,
    HIGH_PROBABILITY,
    MEDIUM_PROBABILITY,
    DealSignals,
    DecisionRule,
    evaluate_rules,
)
from src.crm.recommendations.schemas import (
    ActionPrediction,
    ActionType,
    Priority,
    Recommendation,
)
from src.crm.records.schemas import Deal, DealStage, format_money, parse_money

logger = structlog.get_logger(__name__)

DEFAULT_RECOMMENDATION_LIMIT = 10


def _normalise_probability(probability: Any) -> int:
    return int(min(max(round(parse_money(probability)), 0), 100))


def _normalise_value(value: Any) -> float:
    return max(parse_money(value), 0.0)


def _stage_label(stage: Any) -> str:
    if isinstance(stage, DealStage):
        return stage.value
    if isinstance(stage, str) and stage.strip():
        return stage.strip()
    return "Unknown"


class RecommendationEngine:
    """Rule-table driven next-action recommender for open deals.

    Args:
        rules: Ordered decision rules (first match wins). Defaults to the
            standard table.
        limit: Maximum number of recommendations returned by a batch call.
    """

    def __init__(
        self,
        rules: Sequence[DecisionRule] = DECISION_RULES,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    ) -> None:
        self._rules = list(rules)
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    # ── Single Prediction ───────────────────────────────────────────────

    def recommend(self, value: Any, probability: Any, stage: Any) -> ActionPrediction:
        """Map a (value, probability, stage) triple to an action and confidence.

        Args:
            value: Deal value; numbers or currency strings ("$150,000").
                None/unparseable -> 0.
            probability: Win probability 0-100. None/unparseable -> 0,
                out-of-range values are clamped.
            stage: DealStage or any string DealStage.parse() accepts.
                Unknown/None -> Opportunity Identified.

        Returns:
            ActionPrediction with action_type, confidence and matched rule name.
        """
        signals = DealSignals(
            value=_normalise_value(value),
            probability=_normalise_probability(probability),
            stage=DealStage.parse(stage) or DealStage.OPPORTUNITY_IDENTIFIED,
        )
        return evaluate_rules(signals, self._rules)

    def recommend_deal(self, deal: Deal) -> Recommendation:
        """Build the full Recommendation (priority, rationale) for one deal."""
        prediction = self.recommend(deal.value, deal.probability, deal.stage)
        return Recommendation(
            id=f"ai-rec-{deal.id}",
            deal_id=deal.id,
            deal_name=deal.name,
            action=prediction.action_type.action_text,
            action_type=prediction.action_type,
            confidence=prediction.confidence,
            priority=prediction.priority,
            rationale=build_rationale(
                prediction.action_type,
                value=deal.value,
                probability=deal.probability,
                stage=deal.stage,
            ),
        )

    # ── Batch ───────────────────────────────────────────────────────────

    def generate_recommendations(self, deals: Iterable[Deal]) -> list[Recommendation]:
        """Recommend actions for every open deal, best first.

        Terminal deals (Order Won / Order Lost) are skipped. Output is sorted
        by priority (high > medium > low), then confidence descending, and
        truncated to the engine limit. Ties keep input order.
        """
        open_deals = [deal for deal in deals if not deal.stage.is_terminal]
        recommendations = [self.recommend_deal(deal) for deal in open_deals]
        recommendations.sort(key=lambda rec: (-rec.priority.rank, -rec.confidence))

        logger.debug(
            "recommendations_generated",
            open_deals=len(open_deals),
            returned=min(len(recommendations), self._limit),
        )
        return recommendations[: self._limit]

    def get_recommendation_for_deal(self, deal: Deal) -> Recommendation | None:
        """Recommendation for a single deal, or None if the deal is closed."""
        recommendations = self.generate_recommendations([deal])
        return recommendations[0] if recommendations else None

    def get_high_priority_recommendations(self, deals: Iterable[Deal]) -> list[Recommendation]:
        """Batch recommendations filtered to high priority."""
        return [
            rec
            for rec in self.generate_recommendations(deals)
            if rec.priority == Priority.HIGH
        ]

    def get_recommendations_by_action_type(
        self,
        deals: Iterable[Deal],
        action_type: ActionType,
    ) -> list[Recommendation]:
        """Batch recommendations filtered to one action type."""
        return [
            rec
            for rec in self.generate_recommendations(deals)
            if rec.action_type == action_type
        ]


# ── Rationale ───────────────────────────────────────────────────────────────


def build_rationale(
    action_type: ActionType,
    *,
    value: Any,
    probability: Any,
    stage: Any,
) -> str:
    """Template the human-readable reason for a recommended action.

    Interpolates value, probability and stage into a fixed sentence per
    action type; identical inputs always yield the identical string.
    """
    amount = format_money(_normalise_value(value))
    pct = _normalise_probability(probability)
    stage_text = _stage_label(stage)

    if action_type == ActionType.EMAIL:
        if pct < MEDIUM_PROBABILITY:
            return (
                f"Low probability ({pct}%) deal in {stage_text} stage needs "
                "gentle follow-up to maintain engagement."
            )
        return (
            f"Medium probability ({pct}%) deal requires follow-up to move "
            "forward in the pipeline."
        )

    if action_type == ActionType.CALL:
        return (
            f"High-value deal ({amount}) with {pct}% probability needs direct "
            "phone contact for maximum impact."
        )

    if action_type == ActionType.PROPOSAL:
        if DealStage.parse(stage) == DealStage.NEGOTIATING:
            return (
                f"Deal in negotiation stage with {pct}% probability is ready "
                "for contract/proposal submission."
            )
        return (
            f"High probability ({pct}%) deal in {stage_text} stage is ready "
            "for proposal advancement."
        )

    if action_type == ActionType.MEETING:
        if pct >= HIGH_PROBABILITY:
            return (
                f"High probability ({pct}%) deal needs face-to-face meeting "
                "to close successfully."
            )
        return (
            f"Deal with {pct}% probability in {stage_text} stage benefits "
            "from direct meeting/demo."
        )

    if action_type == ActionType.CASE_STUDY:
        return (
            f"Deal with {pct}% probability needs social proof through case "
            "studies to build confidence."
        )

    if action_type == ActionType.DISCOUNT:
        return (
            f"Deal in {stage_text} stage with {pct}% probability may benefit "
            "from pricing incentives."
        )

    return "Deal appears to be progressing well on its own - monitor without immediate action."
