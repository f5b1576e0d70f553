"""Pydantic schemas for the admin user directory."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Access level of a CRM user."""

    ADMIN = "admin"
    USER = "user"


class UserCreate(BaseModel):
    """Schema for creating a user.

    email is optional: when omitted a company address is generated from the
    display name, role and department.
    """

    display_name: str = Field(min_length=1)
    role: UserRole = UserRole.USER
    department: str | None = None
    email: str | None = None


class User(BaseModel):
    """A CRM user account."""

    id: str
    email: str
    display_name: str
    role: UserRole = UserRole.USER
    department: str | None = None
    email_verified: bool = False
    created_at: datetime
    last_login: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class RoleUpdate(BaseModel):
    """Request body for changing a user's role.

    role is a plain string so an unsupported value reaches the directory and
    is rejected there with InvalidRoleError.
    """

    role: str


class AdminMetrics(BaseModel):
    """Company-wide counts shown on the admin dashboard."""

    total_users: int
    active_users: int
    total_accounts: int
    total_leads: int
    total_deals: int
    won_deals: int
    total_won_value: float
    conversion_rate: float  # percent of deals won, 2 decimal places
