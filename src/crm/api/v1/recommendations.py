"""REST API endpoints for deal recommendations and the notification feed.

Recommendations are derived on demand from the current deal records; nothing
is stored. POST /recommendations/evaluate runs the decision table on raw
(value, probability, stage) input without touching the record store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from src.crm.api.deps import (
    get_crm_repository,
    get_notification_feed,
    get_now,
    get_recommendation_engine,
    http_error,
)
from src.crm.errors import CRMError
from src.crm.monitoring import record_recommendations
from src.crm.recommendations.engine import RecommendationEngine, build_rationale
from src.crm.recommendations.notifications import NotificationFeed
from src.crm.recommendations.schemas import (
    ActionType,
    Notification,
    Priority,
    Recommendation,
)
from src.crm.records.repository import CRMRepository

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


# ── Request / Response Schemas ───────────────────────────────────────────────


class EvaluateRequest(BaseModel):
    """Raw deal signals. Missing or malformed numbers are treated as 0."""

    value: Any = None
    probability: Any = None
    stage: str | None = None


class EvaluateResponse(BaseModel):
    """Decision-table result for one set of signals."""

    action: str
    action_type: ActionType
    confidence: float
    priority: Priority
    rule: str
    rationale: str


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("", response_model=list[Recommendation])
async def list_recommendations(
    priority: Priority | None = Query(default=None, description="Filter by priority"),
    action_type: ActionType | None = Query(default=None, description="Filter by action type"),
    repo: CRMRepository = Depends(get_crm_repository),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
) -> list[Recommendation]:
    """Recommendations for open deals, best first, optionally filtered."""
    recommendations = engine.generate_recommendations(await repo.list_deals())
    if priority is not None:
        recommendations = [rec for rec in recommendations if rec.priority == priority]
    if action_type is not None:
        recommendations = [rec for rec in recommendations if rec.action_type == action_type]
    record_recommendations(recommendations)
    return recommendations


@router.get("/deals/{deal_id}", response_model=Recommendation)
async def get_deal_recommendation(
    deal_id: str,
    repo: CRMRepository = Depends(get_crm_repository),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
) -> Recommendation:
    """Recommendation for one deal. Closed deals have none (404)."""
    try:
        deal = await repo.get_deal(deal_id)
    except CRMError as exc:
        raise http_error(exc) from exc

    recommendation = engine.get_recommendation_for_deal(deal)
    if recommendation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No recommendation for closed deal: {deal_id}",
        )
    record_recommendations([recommendation])
    return recommendation


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate(
    body: EvaluateRequest,
    engine: RecommendationEngine = Depends(get_recommendation_engine),
) -> EvaluateResponse:
    """Run the decision table on raw signals."""
    prediction = engine.recommend(body.value, body.probability, body.stage)
    return EvaluateResponse(
        action=prediction.action_type.action_text,
        action_type=prediction.action_type,
        confidence=prediction.confidence,
        priority=prediction.priority,
        rule=prediction.rule,
        rationale=build_rationale(
            prediction.action_type,
            value=body.value,
            probability=body.probability,
            stage=body.stage,
        ),
    )


@router.get("/notifications", response_model=list[Notification])
async def list_notifications(
    repo: CRMRepository = Depends(get_crm_repository),
    feed: NotificationFeed = Depends(get_notification_feed),
    now: datetime = Depends(get_now),
) -> list[Notification]:
    """Engine recommendations merged with rule-based follow-up prompts."""
    return feed.build(await repo.snapshot(), now)
