"""In-memory conversation transcript.

Holds the chat between the user and the assistant, including the response
bundle attached to each answer and the execution sessions run from it.
Nothing is persisted; the transcript lives as long as the process.
"""

from __future__ import annotations

import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from bitwigassist.models.actions import ResponseBundle
from bitwigassist.services.session import ExecutionSession

GREETING = (
    "Hello! I'm your Bitwig Studio AI assistant. I can help you with:\n\n"
    "• Step-by-step tutorials\n"
    "• Technical recommendations\n"
    "• Workflow optimization\n"
    "• Troubleshooting\n"
    "• Advanced techniques\n\n"
    "What would you like to learn about Bitwig today?"
)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageKind(str, Enum):
    """How a message should be rendered."""

    NORMAL = "normal"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ChatMessage:
    """One entry in the transcript."""

    role: MessageRole
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    bundle: ResponseBundle | None = None
    session: ExecutionSession | None = None
    kind: MessageKind = MessageKind.NORMAL

    @property
    def can_execute(self) -> bool:
        return self.bundle is not None and self.bundle.can_execute

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind.value,
            "bundle": self.bundle.to_dict() if self.bundle else None,
            "session": self.session.to_dict() if self.session else None,
        }


class Conversation:
    """Bounded, ordered transcript. Oldest messages are dropped first."""

    def __init__(self, max_messages: int = 200, greeting: str | None = GREETING) -> None:
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self._max_messages = max_messages
        self._greeting = greeting
        self._messages: OrderedDict[str, ChatMessage] = OrderedDict()
        self._greet()

    def _greet(self) -> None:
        if self._greeting:
            self.add_assistant_message(self._greeting)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def max_messages(self) -> int:
        return self._max_messages

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages.values())

    def get(self, message_id: str) -> ChatMessage | None:
        return self._messages.get(message_id)

    def _append(self, message: ChatMessage) -> ChatMessage:
        self._messages[message.id] = message
        while len(self._messages) > self._max_messages:
            self._messages.popitem(last=False)
        return message

    def add_user_message(self, content: str) -> ChatMessage:
        return self._append(ChatMessage(role=MessageRole.USER, content=content))

    def add_assistant_message(
        self,
        content: str,
        bundle: ResponseBundle | None = None,
        session: ExecutionSession | None = None,
        kind: MessageKind = MessageKind.NORMAL,
    ) -> ChatMessage:
        return self._append(
            ChatMessage(
                role=MessageRole.ASSISTANT,
                content=content,
                bundle=bundle,
                session=session,
                kind=kind,
            )
        )

    def clear(self) -> None:
        """Drop every message and start over with the greeting, if any."""
        self._messages.clear()
        self._greet()


__all__ = [
    "GREETING",
    "ChatMessage",
    "Conversation",
    "MessageKind",
    "MessageRole",
]
