"""CRM assistant chat endpoints.

Each message names a client-chosen session id; the session keeps the last
few queries so follow-ups like "tell me more" resolve against the previous
topic. Sessions expire when idle and can be ended explicitly with DELETE.
The optional X-Actor-Id header personalises profile answers.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from src.crm.admin.schemas import User
from src.crm.api.deps import (
    get_assistant,
    get_assistant_sessions,
    get_crm_repository,
    get_now,
    get_optional_actor,
)
from src.crm.assistant.assistant import AssistantReply, AssistantSessionStore, CRMAssistant
from src.crm.monitoring import record_assistant_intent
from src.crm.records.repository import CRMRepository

router = APIRouter(prefix="/assistant", tags=["assistant"])


class MessageRequest(BaseModel):
    """One chat message."""

    session_id: str = Field(min_length=1)
    message: str = Field(min_length=1)


@router.get("/welcome", response_model=AssistantReply)
async def welcome(
    repo: CRMRepository = Depends(get_crm_repository),
    assistant: CRMAssistant = Depends(get_assistant),
    actor: User | None = Depends(get_optional_actor),
) -> AssistantReply:
    """Opening message with record counts and example questions."""
    return assistant.welcome(await repo.snapshot(), actor)


@router.post("/messages", response_model=AssistantReply)
async def send_message(
    body: MessageRequest,
    repo: CRMRepository = Depends(get_crm_repository),
    assistant: CRMAssistant = Depends(get_assistant),
    sessions: AssistantSessionStore = Depends(get_assistant_sessions),
    actor: User | None = Depends(get_optional_actor),
    now: datetime = Depends(get_now),
) -> AssistantReply:
    """Answer a message within its session."""
    session = sessions.get_or_create(body.session_id)
    reply = assistant.respond(
        session,
        body.message,
        await repo.snapshot(),
        today=now.date(),
        actor=actor,
    )
    record_assistant_intent(reply.intent)
    return reply


@router.delete("/sessions/{session_id}", status_code=204)
async def end_session(
    session_id: str,
    sessions: AssistantSessionStore = Depends(get_assistant_sessions),
) -> Response:
    """Forget a session's conversation context."""
    if not sessions.discard(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
