"""Pydantic models for BitwigAssist API requests and responses."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bitwigassist.models.actions import Action, ActionKind, MouseAction
from bitwigassist.services.controller.controller import ConnectionState
from bitwigassist.services.conversation import MessageKind, MessageRole
from bitwigassist.services.session import ExecutionPolicy, SessionStatus


def _now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Actions & Knowledge
# =============================================================================


class PointSchema(BaseModel):
    x: int
    y: int


class ActionSchema(BaseModel):
    """Wire form of a single action."""

    type: ActionKind
    target: str
    description: str = ""
    value: Any = None
    coordinates: PointSchema | None = None

    def to_action(self) -> Action:
        return Action.from_dict(self.model_dump())


class MousePositionSchema(BaseModel):
    x: int
    y: int
    action: MouseAction
    description: str


class StepSchema(BaseModel):
    id: str
    title: str
    description: str
    mouse_position: MousePositionSchema | None = None
    action: ActionSchema | None = None


class QueryRequest(BaseModel):
    """A question about Bitwig Studio."""

    text: str = Field(..., min_length=1, description="Free-text question")


class QueryResponse(BaseModel):
    """Answer to a question, with its guide and optional action plan."""

    message_id: str
    topic: str | None = None
    answer: str
    steps: list[StepSchema] = Field(default_factory=list)
    actions: list[ActionSchema] = Field(default_factory=list)
    mouse_positions: list[MousePositionSchema] = Field(default_factory=list)
    can_execute: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message_id": "3f2a9c1b7d4e",
                "topic": "mixing",
                "answer": "Here's how to mix effectively in Bitwig Studio...",
                "steps": [],
                "actions": [
                    {
                        "type": "parameter",
                        "target": "track_volume",
                        "value": -6,
                        "description": "Set track volume to -6dB",
                    }
                ],
                "mouse_positions": [],
                "can_execute": True,
            }
        }
    )


# =============================================================================
# Execution
# =============================================================================


class ExecuteRequest(BaseModel):
    actions: list[ActionSchema] = Field(..., min_length=1)


class ExecuteResponse(BaseModel):
    """One result message per action, in dispatch order."""

    results: list[str]


class ExecuteMessageRequest(BaseModel):
    policy: ExecutionPolicy = ExecutionPolicy.CONTINUE


class SessionResponse(BaseModel):
    """State of an execution session."""

    id: str
    status: SessionStatus
    policy: ExecutionPolicy
    actions: list[ActionSchema]
    results: list[str]
    summary: str
    error: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None


class MessageSchema(BaseModel):
    id: str
    role: MessageRole
    content: str
    kind: MessageKind
    timestamp: datetime
    topic: str | None = None
    can_execute: bool = False
    session_id: str | None = None


class MessageListResponse(BaseModel):
    messages: list[MessageSchema]
    total: int


class ActionResultResponse(BaseModel):
    success: bool
    message: str
    data: Any = None


# =============================================================================
# Controller
# =============================================================================


class ControllerStatusResponse(BaseModel):
    """What the controller knows about Bitwig Studio."""

    connection_state: ConnectionState
    is_connected: bool
    platform: str
    supported: bool
    reason: str | None = None
    backend: str


class ProcessCheckResponse(BaseModel):
    """Raw local process check, used by remote probes."""

    is_running: bool
    platform: str
    process_name: str | None = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=_now)


class CompositeInfo(BaseModel):
    name: str
    description: str
    actions: list[ActionSchema]


class CompositeListResponse(BaseModel):
    composites: list[CompositeInfo]
    total: int


# =============================================================================
# Profile
# =============================================================================


class FavoriteVSTRequest(BaseModel):
    name: str = Field(..., min_length=1)


class RecentActionRequest(BaseModel):
    action: str = Field(..., min_length=1)


class VSTFoldersRequest(BaseModel):
    folders: list[str]


# =============================================================================
# Health
# =============================================================================


class ServiceHealth(BaseModel):
    """Health status of a single component."""

    name: str
    status: str = Field(..., description="healthy, degraded, or unhealthy")
    message: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy, degraded, or unhealthy")
    version: str
    uptime_seconds: float = 0.0
    timestamp: datetime = Field(default_factory=_now)
    services: list[ServiceHealth] = Field(default_factory=list)


# =============================================================================
# Errors
# =============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional details")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: ErrorDetail
    request_id: str | None = None
    timestamp: datetime = Field(default_factory=_now)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "NOT_EXECUTABLE",
                    "message": "This response has no actions to execute",
                    "details": {"message_id": "3f2a9c1b7d4e"},
                },
                "request_id": None,
                "timestamp": "2026-01-17T12:00:00Z",
            }
        }
    )
