"""Conversational CRM assistant.

Exports:
    CRMAssistant: Routes chat messages through the intent table.
    AssistantSession, AssistantSessionStore: Per-conversation state.
    AssistantReply: Reply model.
    CRMAnalytics: Snapshot metrics behind the replies.
"""

from src.crm.assistant.analytics import CRMAnalytics
from src.crm.assistant.assistant import (
    AssistantReply,
    AssistantSession,
    AssistantSessionStore,
    CRMAssistant,
)
from src.crm.assistant.intents import INTENTS, Intent

__all__ = [
    "AssistantReply",
    "AssistantSession",
    "AssistantSessionStore",
    "CRMAnalytics",
    "CRMAssistant",
    "INTENTS",
    "Intent",
]
