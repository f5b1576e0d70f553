"""Global relevance search endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from src.crm.api.deps import get_crm_repository, get_search_engine
from src.crm.monitoring import record_search
from src.crm.records.repository import CRMRepository
from src.crm.search.engine import RelevanceSearchEngine, SearchResult

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=list[SearchResult])
async def search(
    q: str = Query(default="", description="Free-text query; blank returns no results"),
    repo: CRMRepository = Depends(get_crm_repository),
    engine: RelevanceSearchEngine = Depends(get_search_engine),
) -> list[SearchResult]:
    """Rank leads, accounts, contacts and deals against the query."""
    results = engine.search(q, await repo.snapshot())
    record_search(len(results))
    return results
