"""Assistant API routes.

Provides endpoints for:
- Asking questions (knowledge lookup)
- Executing action lists directly
- The conversation transcript and executing a message's action plan
- Execution session status and cancellation
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from bitwigassist.agents.assistant import BitwigAssistant
from bitwigassist.models.schemas import (
    ActionResultResponse,
    ExecuteMessageRequest,
    ExecuteRequest,
    ExecuteResponse,
    MessageListResponse,
    MessageSchema,
    QueryRequest,
    QueryResponse,
    SessionResponse,
)
from bitwigassist.services.conversation import ChatMessage
from bitwigassist.services.session import ExecutionSession

router = APIRouter()
logger = structlog.get_logger()


def _get_assistant() -> BitwigAssistant:
    from bitwigassist.main import app_state

    if app_state.assistant is None:
        raise HTTPException(status_code=503, detail="Assistant not initialized")
    return app_state.assistant


def _session_response(session: ExecutionSession) -> SessionResponse:
    return SessionResponse.model_validate(session.to_dict())


def _message_schema(message: ChatMessage) -> MessageSchema:
    return MessageSchema(
        id=message.id,
        role=message.role,
        content=message.content,
        kind=message.kind,
        timestamp=message.timestamp,
        topic=message.bundle.topic if message.bundle else None,
        can_execute=message.can_execute,
        session_id=message.session.id if message.session else None,
    )


# =============================================================================
# Questions
# =============================================================================


@router.post("/query", response_model=QueryResponse)
async def query(request: QueryRequest) -> QueryResponse:
    """Answer a question about Bitwig Studio."""
    assistant = _get_assistant()
    message = assistant.ask(request.text)
    bundle = message.bundle
    logger.info("Query answered", topic=bundle.topic, can_execute=bundle.can_execute)
    return QueryResponse.model_validate({**bundle.to_dict(), "message_id": message.id})


@router.get("/messages", response_model=MessageListResponse)
async def list_messages() -> MessageListResponse:
    """Get the conversation transcript, oldest first."""
    messages = [_message_schema(m) for m in _get_assistant().conversation.messages]
    return MessageListResponse(messages=messages, total=len(messages))


@router.delete("/messages", response_model=MessageListResponse)
async def clear_messages() -> MessageListResponse:
    """Start a new conversation. Tracked sessions are forgotten."""
    assistant = _get_assistant()
    assistant.reset()
    logger.info("Conversation cleared")
    messages = [_message_schema(m) for m in assistant.conversation.messages]
    return MessageListResponse(messages=messages, total=len(messages))


# =============================================================================
# Execution
# =============================================================================


@router.post("/execute", response_model=ExecuteResponse)
async def execute(request: ExecuteRequest) -> ExecuteResponse:
    """Run actions in order. Failures are reported per action, not raised."""
    assistant = _get_assistant()
    await assistant.check_connection()
    results = await assistant.execute_actions(a.to_action() for a in request.actions)
    logger.info("Actions executed", count=len(results))
    return ExecuteResponse(results=results)


@router.post("/messages/{message_id}/execute", response_model=SessionResponse)
async def execute_message(
    message_id: str, request: ExecuteMessageRequest | None = None
) -> SessionResponse:
    """Run the action plan attached to an assistant message."""
    policy = request.policy if request else ExecuteMessageRequest().policy
    session = await _get_assistant().execute_message(message_id, policy)
    logger.info(
        "Message executed",
        message_id=message_id,
        session_id=session.id,
        status=session.status.value,
    )
    return _session_response(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str) -> SessionResponse:
    session = _get_assistant().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return _session_response(session)


@router.post("/sessions/{session_id}/cancel", response_model=ActionResultResponse)
async def cancel_session(session_id: str) -> ActionResultResponse:
    """Stop a running session before its next action."""
    assistant = _get_assistant()
    if assistant.get_session(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    if assistant.cancel_session(session_id):
        return ActionResultResponse(success=True, message="Cancellation requested")
    return ActionResultResponse(success=False, message="Session already finished")
