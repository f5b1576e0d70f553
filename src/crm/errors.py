"""Domain exceptions for the CRM service.

Provides a typed hierarchy rooted at CRMError. Every error carries a
human-readable message plus a context dict for structured logging. The
pure engines (recommendations, search) never raise these -- they degrade
to defaults instead. Repositories and the admin directory raise them, and
the API layer maps them to HTTP status codes.
"""

from __future__ import annotations

from typing import Any


class CRMError(Exception):
    """Base exception for all CRM domain errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Record Errors
# =============================================================================


class RecordNotFoundError(CRMError):
    """Requested record (lead, account, contact, deal, user) does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(
            f"{kind.capitalize()} not found",
            context={"kind": kind, "record_id": record_id},
        )
        self.kind = kind
        self.record_id = record_id


class DuplicateRecordError(CRMError):
    """A record with the same unique key already exists."""

    pass


# =============================================================================
# Admin Errors
# =============================================================================


class ProtectedUserError(CRMError):
    """Operation is not allowed on a protected user (the system administrator)."""

    pass


class InvalidRoleError(CRMError):
    """Role value is not one of the supported user roles."""

    pass


class PermissionDeniedError(CRMError):
    """Acting user lacks the role required for the operation."""

    pass
