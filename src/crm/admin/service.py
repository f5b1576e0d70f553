"""Admin user directory service.

UserDirectory implements the admin console operations on top of a
UserRepository: listing, creating, deleting and re-roling users, marking
them verified, and computing company-wide metrics from the CRM records.
The system administrator account can never be deleted.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

import structlog

from src.crm.admin.repository import UserRepository
from src.crm.admin.schemas import AdminMetrics, User, UserCreate, UserRole
from src.crm.errors import (
    DuplicateRecordError,
    InvalidRoleError,
    PermissionDeniedError,
    ProtectedUserError,
)
from src.crm.records.schemas import CRMSnapshot

logger = structlog.get_logger(__name__)

COMPANY_DOMAIN = "yitro.com"


def generate_company_email(
    display_name: str,
    role: UserRole,
    department: str | None = None,
) -> str:
    """Build first.last@<prefix>.yitro.com from a display name.

    The prefix is "admin" for admins, the lower-cased department for users
    that have one, and "emp" otherwise.
    """
    local = re.sub(r"\s+", ".", display_name.strip().lower())
    if role == UserRole.ADMIN:
        prefix = "admin"
    elif department and department.strip():
        prefix = re.sub(r"\s+", "-", department.strip().lower())
    else:
        prefix = "emp"
    return f"{local}@{prefix}.{COMPANY_DOMAIN}"


def build_system_admin(email: str, display_name: str) -> User:
    """The seeded administrator account."""
    return User(
        id="user-admin",
        email=email,
        display_name=display_name,
        role=UserRole.ADMIN,
        email_verified=True,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class UserDirectory:
    """Admin operations on CRM users.

    Args:
        repository: Storage backend for users.
        system_admin_email: Address of the protected administrator account.
    """

    def __init__(self, repository: UserRepository, system_admin_email: str) -> None:
        self._repository = repository
        self._system_admin_email = system_admin_email.lower()

    def is_system_admin(self, user: User) -> bool:
        return user.email.lower() == self._system_admin_email

    async def get_user(self, user_id: str) -> User:
        return await self._repository.get_user(user_id)

    async def require_admin(self, user_id: str) -> User:
        """Return the acting user if they are an admin, else raise PermissionDeniedError."""
        user = await self._repository.get_user(user_id)
        if not user.is_admin:
            raise PermissionDeniedError(
                "Admin access required", context={"user_id": user_id}
            )
        return user

    async def list_users(self) -> list[User]:
        """All users, newest first."""
        users = await self._repository.list_users()
        return sorted(users, key=lambda user: user.created_at, reverse=True)

    async def create_user(self, data: UserCreate) -> User:
        """Create a user, generating a company email when none is given.

        Raises:
            DuplicateRecordError: A user with that email already exists.
        """
        email = (data.email or "").strip() or generate_company_email(
            data.display_name, data.role, data.department
        )
        if await self._repository.get_by_email(email) is not None:
            raise DuplicateRecordError(
                "User with this email already exists", context={"email": email}
            )

        user = User(
            id=f"user-{uuid.uuid4().hex[:8]}",
            email=email,
            display_name=data.display_name.strip(),
            role=data.role,
            department=data.department,
            email_verified=data.role == UserRole.ADMIN,
            created_at=datetime.now(timezone.utc),
        )
        await self._repository.save_user(user)
        logger.info("user_created", user_id=user.id, role=user.role.value)
        return user

    async def delete_user(self, user_id: str) -> None:
        """Delete a user.

        Raises:
            RecordNotFoundError: No such user.
            ProtectedUserError: The user is the system administrator.
        """
        user = await self._repository.get_user(user_id)
        if self.is_system_admin(user):
            raise ProtectedUserError(
                "Cannot delete system administrator", context={"user_id": user_id}
            )
        await self._repository.delete_user(user_id)
        logger.info("user_deleted", user_id=user_id)

    async def update_role(self, user_id: str, role: str | UserRole) -> User:
        """Change a user's role.

        Raises:
            InvalidRoleError: role is not "admin" or "user".
            RecordNotFoundError: No such user.
        """
        try:
            new_role = UserRole(role)
        except ValueError:
            raise InvalidRoleError(
                "Invalid role. Must be admin or user", context={"role": role}
            ) from None

        user = await self._repository.get_user(user_id)
        updated = user.model_copy(update={"role": new_role})
        await self._repository.save_user(updated)
        logger.info("user_role_updated", user_id=user_id, role=new_role.value)
        return updated

    async def mark_verified(self, user_id: str) -> User:
        """Flag a user's email as verified (idempotent)."""
        user = await self._repository.get_user(user_id)
        if user.email_verified:
            return user
        updated = user.model_copy(update={"email_verified": True})
        await self._repository.save_user(updated)
        logger.info("user_verified", user_id=user_id)
        return updated

    async def get_metrics(self, snapshot: CRMSnapshot) -> AdminMetrics:
        """Company-wide counts; conversion rate is won deals over all deals."""
        users = await self._repository.list_users()
        won = snapshot.won_deals
        deal_count = len(snapshot.deals)
        conversion = len(won) / deal_count * 100 if deal_count else 0.0
        return AdminMetrics(
            total_users=len(users),
            active_users=sum(1 for user in users if user.email_verified),
            total_accounts=len(snapshot.accounts),
            total_leads=len(snapshot.leads),
            total_deals=deal_count,
            won_deals=len(won),
            total_won_value=sum(deal.value for deal in won),
            conversion_rate=round(conversion, 2),
        )
