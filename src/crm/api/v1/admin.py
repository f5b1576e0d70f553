"""Admin console endpoints: user directory and company metrics.

Every endpoint requires an admin actor (X-Actor-Id header naming an admin
user). Domain errors map to HTTP status codes: unknown user 404, duplicate
email 409, deleting the system administrator 403, invalid role 400.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from src.crm.admin.schemas import AdminMetrics, RoleUpdate, User, UserCreate
from src.crm.admin.service import UserDirectory
from src.crm.api.deps import get_crm_repository, get_user_directory, http_error, require_admin
from src.crm.errors import CRMError
from src.crm.records.repository import CRMRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[User])
async def list_users(
    admin: User = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
) -> list[User]:
    """All users, newest first."""
    return await directory.list_users()


@router.post("/users", response_model=User, status_code=201)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    """Create a user; the email is generated when not supplied."""
    try:
        return await directory.create_user(body)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
) -> Response:
    try:
        await directory.delete_user(user_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/users/{user_id}/role", response_model=User)
async def update_role(
    user_id: str,
    body: RoleUpdate,
    admin: User = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    try:
        return await directory.update_role(user_id, body.role)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.post("/users/{user_id}/verify", response_model=User)
async def verify_user(
    user_id: str,
    admin: User = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    """Mark a user's email as verified."""
    try:
        return await directory.mark_verified(user_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.get("/metrics", response_model=AdminMetrics)
async def get_metrics(
    admin: User = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
    repo: CRMRepository = Depends(get_crm_repository),
) -> AdminMetrics:
    """User, record and win-rate counts for the admin dashboard."""
    return await directory.get_metrics(await repo.snapshot())
