"""FastAPI dependency injection for app-scoped services and the acting user.

Services are built once in the application lifespan and stored on
app.state. Each getter returns 503 when its service is missing so a
partially initialised app fails loudly instead of with AttributeError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, Header, HTTPException, Request, status

from src.crm.admin.schemas import User
from src.crm.admin.service import UserDirectory
from src.crm.assistant.assistant import AssistantSessionStore, CRMAssistant
from src.crm.errors import (
    CRMError,
    DuplicateRecordError,
    InvalidRoleError,
    PermissionDeniedError,
    ProtectedUserError,
    RecordNotFoundError,
)
from src.crm.recommendations.engine import RecommendationEngine
from src.crm.recommendations.notifications import NotificationFeed
from src.crm.records.repository import CRMRepository
from src.crm.search.engine import RelevanceSearchEngine


def _get_state(request: Request, name: str, label: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} not initialized",
        )
    return service


def get_crm_repository(request: Request) -> CRMRepository:
    """CRM record repository from app.state."""
    return _get_state(request, "crm_repository", "CRM records")


def get_recommendation_engine(request: Request) -> RecommendationEngine:
    return _get_state(request, "recommendation_engine", "Recommendation engine")


def get_notification_feed(request: Request) -> NotificationFeed:
    return _get_state(request, "notification_feed", "Notification feed")


def get_search_engine(request: Request) -> RelevanceSearchEngine:
    return _get_state(request, "search_engine", "Search engine")


def get_assistant(request: Request) -> CRMAssistant:
    return _get_state(request, "assistant", "Assistant")


def get_assistant_sessions(request: Request) -> AssistantSessionStore:
    return _get_state(request, "assistant_sessions", "Assistant sessions")


def get_user_directory(request: Request) -> UserDirectory:
    return _get_state(request, "user_directory", "User directory")


def get_now() -> datetime:
    """Reference time for date-relative rules. Overridden in tests."""
    return datetime.now(timezone.utc)


# ── Error Mapping ────────────────────────────────────────────────────────────

_STATUS_BY_ERROR: tuple[tuple[type[CRMError], int], ...] = (
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateRecordError, status.HTTP_409_CONFLICT),
    (ProtectedUserError, status.HTTP_403_FORBIDDEN),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (InvalidRoleError, status.HTTP_400_BAD_REQUEST),
)


def http_error(exc: CRMError) -> HTTPException:
    """Translate a domain error into the matching HTTPException."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


# ── Acting User ──────────────────────────────────────────────────────────────


async def get_optional_actor(
    x_actor_id: str | None = Header(default=None),
    directory: UserDirectory = Depends(get_user_directory),
) -> User | None:
    """User named by the X-Actor-Id header, or None if absent or unknown."""
    if not x_actor_id:
        return None
    try:
        return await directory.get_user(x_actor_id)
    except RecordNotFoundError:
        return None


async def require_admin(
    x_actor_id: str | None = Header(default=None),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    """Resolve X-Actor-Id to an admin user.

    This is role gating only; the header is trusted as sent.

    Raises:
        HTTPException(401): Header missing or names no known user.
        HTTPException(403): The user is not an admin.
    """
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id header required",
        )
    try:
        return await directory.require_admin(x_actor_id)
    except RecordNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown actor",
        ) from None
    except PermissionDeniedError as exc:
        raise http_error(exc) from exc
