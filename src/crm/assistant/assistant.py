"""Conversational CRM assistant.

CRMAssistant answers free-text questions about the CRM data by routing each
message through the intent table (intents.py). Per-conversation state lives
in an AssistantSession: the last few queries (used to resolve follow-ups
like "tell me more") and the joke rotation. Sessions are held by an
AssistantSessionStore created once at startup, which caps how many
sessions are held and expires idle ones.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

import structlog
from cachetools import TTLCache
from pydantic import BaseModel, Field

from src.crm.admin.schemas import User
from src.crm.assistant.analytics import CRMAnalytics
from src.crm.assistant.intents import (
    INTENTS,
    WELCOME_QUICK_ACTIONS,
    Intent,
    Turn,
    classify,
    suggest_quick_actions,
)
from src.crm.records.schemas import CRMSnapshot
from src.crm.search.engine import RelevanceSearchEngine, SearchResult

logger = structlog.get_logger(__name__)

CONTEXT_SIZE = 5
DEFAULT_MAX_SESSIONS = 1000
DEFAULT_SESSION_TTL_SECONDS = 1800.0


class AssistantReply(BaseModel):
    """Bot answer to one message."""

    intent: str
    content: str
    quick_actions: list[str] = Field(default_factory=list)
    results: list[SearchResult] = Field(default_factory=list)


@dataclass
class AssistantSession:
    """Conversation state for one chat session.

    Attributes:
        session_id: Client-chosen conversation identifier.
        context: Last CONTEXT_SIZE lower-cased queries, oldest first.
        joke_index: Position in the joke rotation.
    """

    session_id: str
    context: deque[str] = field(default_factory=lambda: deque(maxlen=CONTEXT_SIZE))
    joke_index: int = 0

    def remember(self, query: str) -> None:
        self.context.append(query)

    def clear(self) -> None:
        self.context.clear()

    def next_joke(self, jokes: Sequence[str]) -> str:
        joke = jokes[self.joke_index % len(jokes)]
        self.joke_index += 1
        return joke


class AssistantSessionStore:
    """In-process registry of assistant sessions keyed by session id.

    Backed by a cachetools TTLCache holding at most max_sessions; when full
    the least recently used session is evicted. Sessions idle for longer
    than ttl_seconds expire, and each lookup restarts that clock.
    """

    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: TTLCache[str, AssistantSession] = TTLCache(
            maxsize=max_sessions, ttl=ttl_seconds, timer=timer
        )

    def get_or_create(self, session_id: str) -> AssistantSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = AssistantSession(session_id=session_id)
            logger.debug("assistant_session_created", session_id=session_id)
        # Re-insert so the expiry restarts from this access.
        self._sessions[session_id] = session
        return session

    def discard(self, session_id: str) -> bool:
        """Drop a session. Returns False when no such session is held."""
        return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


class CRMAssistant:
    """Intent-table driven assistant over a CRM snapshot.

    Args:
        search_engine: Engine used for "find X" style questions.
        intents: Ordered intent table. Defaults to the standard table.
    """

    def __init__(
        self,
        search_engine: RelevanceSearchEngine,
        intents: tuple[Intent, ...] = INTENTS,
    ) -> None:
        self._search_engine = search_engine
        self._intents = intents

    def welcome(self, snapshot: CRMSnapshot, actor: User | None = None) -> AssistantReply:
        """Opening message listing record counts and example questions."""
        name = actor.display_name if actor else "there"
        content = (
            f"Hello {name}! I'm your intelligent CRM assistant.\n\n"
            "I can help you analyze your sales data, track performance, and "
            "provide insights about your:\n\n"
            f"- **Leads** ({len(snapshot.leads)} total)\n"
            f"- **Accounts** ({len(snapshot.accounts)} total)\n"
            f"- **Deals** ({len(snapshot.deals)} total)\n"
            f"- **Contacts** ({len(snapshot.contacts)} total)\n\n"
            "**Try asking me:**\n"
            '- "Show me top leads this week"\n'
            '- "What deals are closing soon?"\n'
            '- "My performance analytics"\n'
            '- "Show my profile"\n'
            '- "Search for [company/contact]"'
        )
        return AssistantReply(
            intent="welcome",
            content=content,
            quick_actions=list(WELCOME_QUICK_ACTIONS),
        )

    def respond(
        self,
        session: AssistantSession,
        message: str,
        snapshot: CRMSnapshot,
        *,
        today: date,
        actor: User | None = None,
    ) -> AssistantReply:
        """Answer one message and update the session context.

        Args:
            session: Conversation state; the query is appended to its context.
            message: Raw user text.
            snapshot: CRM records to answer from.
            today: Reference date for "closing this week" questions.
            actor: Current user, shown by the profile intent.

        Returns:
            AssistantReply with the matched intent name, markdown content,
            suggested quick actions and any search hits.
        """
        turn = Turn(
            message=message,
            snapshot=snapshot,
            analytics=CRMAnalytics(snapshot),
            search_engine=self._search_engine,
            session=session,
            today=today,
            context=tuple(session.context),
            actor=actor,
        )
        session.remember(turn.query)

        intent = classify(turn, self._intents)
        answer = intent.handler(turn)

        logger.info(
            "assistant_reply",
            session_id=session.session_id,
            intent=intent.name,
            results=len(answer.results),
        )
        return AssistantReply(
            intent=intent.name,
            content=answer.content,
            quick_actions=suggest_quick_actions(message),
            results=list(answer.results),
        )
