"""Tests for the CRM assistant intent routing and session state.

Covers:
    - Intent classification order (search before topical before small talk)
    - Whole-word greeting matching
    - Follow-up resolution from the previous query
    - Clear, joke rotation, help and fallback replies
    - Quick actions and the welcome message
    - Session store behaviour
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.crm.admin.schemas import User, UserRole
from src.crm.assistant.assistant import (
    CONTEXT_SIZE,
    AssistantSession,
    AssistantSessionStore,
    CRMAssistant,
)
from src.crm.assistant.intents import JOKES, WELCOME_QUICK_ACTIONS
from src.crm.search.engine import RecordType, RelevanceSearchEngine

TODAY = date(2024, 3, 1)


@pytest.fixture
def assistant() -> CRMAssistant:
    return CRMAssistant(RelevanceSearchEngine())


@pytest.fixture
def session() -> AssistantSession:
    return AssistantSession(session_id="s1")


@pytest.fixture
def ask(assistant, session, demo_snapshot):
    """Send one message in the shared session and return the reply."""

    def _ask(message: str, actor: User | None = None):
        return assistant.respond(session, message, demo_snapshot, today=TODAY, actor=actor)

    return _ask


# -- Classification ----------------------------------------------------------


class TestIntentRouting:
    """Messages reach the expected handler."""

    @pytest.mark.parametrize(
        ("message", "intent"),
        [
            ("find TechCorp", "search"),
            ("Search for Alice", "search"),
            ("Show me top leads this week", "weekly_leads"),
            ("show me top leads", "leads"),
            ("Show me best accounts", "accounts"),
            ("What deals are closing?", "deals"),
            ("recent contacts", "contacts"),
            ("dashboard", "overview"),
            ("my profile", "profile"),
            ("how do I search?", "search_help"),
            ("hi", "greeting"),
            ("Hello there", "greeting"),
            ("thanks a lot", "thanks"),
            ("help", "help"),
            ("?", "help"),
            ("clear", "clear"),
            ("tell me a joke", "joke"),
            ("I need coffee", "coffee"),
            ("show my performance", "performance"),
            ("show me Innovate", "show_me_search"),
            ("what is the weather", "fallback"),
        ],
    )
    def test_routing(self, ask, message, intent) -> None:
        assert ask(message).intent == intent

    def test_greeting_is_whole_word(self, ask) -> None:
        assert ask("this").intent == "fallback"
        assert ask("they").intent == "fallback"

    def test_search_beats_topical_keywords(self, ask) -> None:
        reply = ask("find deals for TechCorp")
        assert reply.intent == "search"


# -- Replies -----------------------------------------------------------------


class TestReplies:
    """Handler output over the demo records."""

    def test_search_reply_carries_results(self, ask) -> None:
        reply = ask("find TechCorp")
        assert reply.content.startswith("**Search Results (3 found):**")
        assert [(r.record_type, r.record.id) for r in reply.results] == [
            (RecordType.ACCOUNT, "account-001"),
            (RecordType.CONTACT, "contact-001"),
            (RecordType.DEAL, "deal-001"),
        ]

    def test_search_without_matches(self, ask) -> None:
        reply = ask("find zzzzqqq")
        assert reply.intent == "search"
        assert reply.content.startswith("No results found.")
        assert reply.results == []

    def test_show_me_search_results(self, ask) -> None:
        reply = ask("show me Innovate")
        assert reply.results[0].record.id == "account-002"

    def test_weekly_leads(self, ask) -> None:
        content = ask("Show me top leads this week").content
        assert content.startswith("**Top Leads This Week:**")
        assert "1. **Bob Wilson** from Enterprise Ltd" in content
        assert "- Lead Score: 92/100" in content
        assert "Bob Wilson has the highest score (92)" in content

    def test_top_leads(self, ask) -> None:
        content = ask("show me top leads").content
        assert content.startswith("Here are your top leads by score:")
        assert "- Total Leads: 4" in content

    def test_deals_without_upcoming(self, ask) -> None:
        content = ask("What deals are closing?").content
        assert "No deals are closing this week." in content
        assert "- Active Deals: 5" in content
        assert "- Pipeline Value: $735,000" in content
        assert "**Win Rate:** 17%" in content

    def test_deals_with_upcoming(self, assistant, session, demo_snapshot) -> None:
        reply = assistant.respond(
            session, "deals closing", demo_snapshot, today=date(2024, 3, 10)
        )
        assert "**Deals Closing This Week:**" in reply.content
        assert "MEDIUM PRIORITY 1. **Enterprise Software Package**" in reply.content

    def test_overview_lists_stages(self, ask) -> None:
        content = ask("CRM overview").content
        assert "- Total Leads: 4" in content
        assert "- Negotiating: 2" in content
        assert "Order Lost" not in content

    def test_profile_without_actor(self, ask) -> None:
        content = ask("my profile").content
        assert "- Name: Not set" in content
        assert "- Account Type: CRM User" in content

    def test_profile_with_admin(self, ask) -> None:
        admin = User(
            id="u1",
            email="admin@yitro.com",
            display_name="Ada Admin",
            role=UserRole.ADMIN,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        content = ask("my profile", actor=admin).content
        assert "- Name: Ada Admin" in content
        assert "- Account Type: Administrator" in content

    def test_performance_advice(self, ask) -> None:
        content = ask("performance metrics").content
        assert "- Lead-to-Deal Conversion: 25%" in content
        assert "**Smart Recommendations:**" in content

    def test_fallback_echoes_message(self, ask) -> None:
        content = ask("  what is the weather  ").content
        assert content.startswith('I understand you\'re asking about "what is the weather".')


# -- Session State -----------------------------------------------------------


class TestSessionState:
    """Context, follow-ups, clearing and jokes."""

    def test_context_is_bounded(self, ask, session) -> None:
        for i in range(CONTEXT_SIZE + 3):
            ask(f"message {i}")
        assert len(session.context) == CONTEXT_SIZE
        assert session.context[-1] == f"message {CONTEXT_SIZE + 2}"

    def test_context_stores_lowercased_query(self, ask, session) -> None:
        ask("  Show Me Top LEADS ")
        assert list(session.context) == ["show me top leads"]

    def test_follow_up_uses_previous_topic(self, ask) -> None:
        ask("show me top leads")
        reply = ask("tell me more")
        assert reply.intent == "follow_up"
        assert reply.content.startswith("Here are your top leads by score:")

    def test_follow_up_on_deals(self, ask) -> None:
        ask("pipeline deals")
        reply = ask("more details please")
        assert reply.intent == "follow_up"
        assert "**Pipeline Summary:**" in reply.content

    def test_follow_up_without_context_falls_back(self, ask) -> None:
        assert ask("tell me more").intent == "fallback"

    def test_clear_empties_context(self, ask, session) -> None:
        ask("show me top leads")
        reply = ask("clear")
        assert reply.content == "Conversation cleared! How can I help you with your CRM data?"
        assert len(session.context) == 0
        assert ask("tell me more").intent == "fallback"

    def test_jokes_rotate(self, ask) -> None:
        told = [ask("tell me a joke").content for _ in range(len(JOKES) + 1)]
        assert told[: len(JOKES)] == list(JOKES)
        assert told[-1] == JOKES[0]

    def test_sessions_are_independent(self, assistant, demo_snapshot) -> None:
        first = AssistantSession(session_id="a")
        second = AssistantSession(session_id="b")
        assistant.respond(first, "show me top leads", demo_snapshot, today=TODAY)
        reply = assistant.respond(second, "tell me more", demo_snapshot, today=TODAY)
        assert reply.intent == "fallback"


# -- Quick Actions / Welcome -------------------------------------------------


class TestQuickActions:
    """Suggested prompts under each reply."""

    def test_lead_question(self, ask) -> None:
        assert ask("top leads").quick_actions == [
            "Account summary",
            "Pipeline status",
            "My performance",
        ]

    def test_default(self, ask) -> None:
        assert ask("hi").quick_actions == [
            "My performance",
            "Deals closing soon",
            "Top leads this week",
        ]

    def test_welcome(self, assistant, demo_snapshot) -> None:
        reply = assistant.welcome(demo_snapshot)
        assert reply.intent == "welcome"
        assert reply.content.startswith("Hello there! I'm your intelligent CRM assistant.")
        assert "- **Leads** (4 total)" in reply.content
        assert "- **Deals** (6 total)" in reply.content
        assert reply.quick_actions == WELCOME_QUICK_ACTIONS


class TestSessionStore:
    """Registry of sessions by id."""

    def test_get_or_create_reuses_session(self) -> None:
        store = AssistantSessionStore()
        first = store.get_or_create("s1")
        assert store.get_or_create("s1") is first
        assert len(store) == 1

    def test_discard(self) -> None:
        store = AssistantSessionStore()
        store.get_or_create("s1")
        assert store.discard("s1") is True
        assert store.discard("missing") is False
        assert len(store) == 0

    def test_capacity_evicts_least_recently_used(self) -> None:
        store = AssistantSessionStore(max_sessions=2)
        store.get_or_create("s1")
        store.get_or_create("s2")
        store.get_or_create("s1")
        store.get_or_create("s3")
        assert len(store) == 2
        assert "s1" in store
        assert "s2" not in store

    def test_idle_sessions_expire(self) -> None:
        clock = [0.0]
        store = AssistantSessionStore(ttl_seconds=60, timer=lambda: clock[0])
        first = store.get_or_create("s1")
        first.remember("show me top leads")

        clock[0] = 59.0
        assert store.get_or_create("s1") is first

        clock[0] = 118.0
        assert "s1" in store

        clock[0] = 180.0
        assert "s1" not in store
        assert len(store.get_or_create("s1").context) == 0
