"""User storage for the admin directory.

UserRepository is the storage interface; InMemoryUserRepository keeps users
in a dict keyed by id. One instance is built at startup, seeded with the
system administrator, and handed to the UserDirectory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

import structlog

from src.crm.admin.schemas import User
from src.crm.errors import RecordNotFoundError

logger = structlog.get_logger(__name__)


class UserRepository(ABC):
    """Abstract interface for user storage. Unknown ids raise RecordNotFoundError."""

    @abstractmethod
    async def list_users(self) -> list[User]: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def save_user(self, user: User) -> User: ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None: ...


class InMemoryUserRepository(UserRepository):
    """Dict-backed UserRepository. Emails are compared case-insensitively."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[str, User] = {user.id: user for user in users}

    async def list_users(self) -> list[User]:
        return list(self._users.values())

    async def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise RecordNotFoundError("user", user_id)
        return user

    async def get_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return user
        return None

    async def save_user(self, user: User) -> User:
        self._users[user.id] = user
        logger.debug("user_saved", user_id=user.id)
        return user

    async def delete_user(self, user_id: str) -> None:
        if user_id not in self._users:
            raise RecordNotFoundError("user", user_id)
        del self._users[user_id]
