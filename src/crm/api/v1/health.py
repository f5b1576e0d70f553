"""Health check endpoint.

Liveness only: the service has no external dependencies, so readiness is
the same as being able to see the record store on app.state.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from src.crm.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """Basic liveness check with the running environment."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT.value,
        "records_ready": getattr(request.app.state, "crm_repository", None) is not None,
    }
