"""Bitwig Assistant - The conversational facade.

Ties the knowledge agent, the action controller and the transcript together:

    user text -> KnowledgeAgent -> ResponseBundle -> transcript
    "execute" on a message -> ExecutionSession -> ActionController -> transcript

Execution outcomes, good or bad, are narrated back into the transcript as
ordinary assistant messages marked success or failure.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Iterable

from bitwigassist.agents.base import Agent
from bitwigassist.agents.knowledge import KnowledgeAgent
from bitwigassist.models.actions import Action, ResponseBundle
from bitwigassist.services.controller import ActionController
from bitwigassist.services.conversation import ChatMessage, Conversation, MessageKind
from bitwigassist.services.session import (
    ExecutionPolicy,
    ExecutionSession,
    NotExecutableError,
    SessionStatus,
)

logger = logging.getLogger(__name__)


class MessageNotFoundError(KeyError):
    """Raised when a transcript message id is unknown."""

    pass


class BitwigAssistant(Agent):
    """Answers questions and runs their action plans in Bitwig Studio."""

    name = "assistant"

    def __init__(
        self,
        knowledge: KnowledgeAgent,
        controller: ActionController,
        conversation: Conversation | None = None,
    ) -> None:
        self.knowledge = knowledge
        self.controller = controller
        self.conversation = conversation or Conversation()
        self._sessions: OrderedDict[str, ExecutionSession] = OrderedDict()

    async def init(self) -> None:
        await self.knowledge.init()
        self.controller.start()
        logger.info("BitwigAssistant initialized")

    async def shutdown(self) -> None:
        await self.controller.shutdown()
        await self.knowledge.shutdown()

    # =========================================================================
    # Questions
    # =========================================================================

    def _answer(self, text: str) -> tuple[ChatMessage, ResponseBundle]:
        self.conversation.add_user_message(text)
        bundle = self.knowledge.resolve(text)
        message = self.conversation.add_assistant_message(bundle.answer, bundle=bundle)
        return message, bundle

    def ask(self, text: str) -> ChatMessage:
        """Record a question and its answer; return the answer message."""
        return self._answer(text)[0]

    def process_query(self, text: str) -> ResponseBundle:
        return self._answer(text)[1]

    def reset(self) -> None:
        """Start a fresh transcript and forget every tracked session."""
        self.conversation.clear()
        self._sessions.clear()

    # =========================================================================
    # Execution
    # =========================================================================

    def is_connected(self) -> bool:
        return self.controller.is_connected

    async def check_connection(self) -> bool:
        """Wait for the first connection check and return its result."""
        return await self.controller.wait_for_initialization()

    async def execute_actions(self, actions: Iterable[Action]) -> list[str]:
        """Run actions in order; one result message per action."""
        return await self.controller.execute_actions(actions)

    def _track(self, session: ExecutionSession) -> None:
        # Bounded like the transcript; finished sessions go first.
        self._sessions[session.id] = session
        limit = self.conversation.max_messages
        for stale_id in [s.id for s in self._sessions.values() if s.is_terminal]:
            if len(self._sessions) <= limit:
                break
            del self._sessions[stale_id]
        while len(self._sessions) > limit:
            self._sessions.popitem(last=False)

    def get_session(self, session_id: str) -> ExecutionSession | None:
        return self._sessions.get(session_id)

    def cancel_session(self, session_id: str) -> bool:
        """Stop a running session before its next action."""
        session = self._sessions.get(session_id)
        if session is None:
            return False
        return session.cancel()

    async def execute_message(
        self,
        message_id: str,
        policy: ExecutionPolicy = ExecutionPolicy.CONTINUE,
    ) -> ExecutionSession:
        """Run the action plan attached to an assistant message.

        Raises:
            MessageNotFoundError: No message with this id
            NotExecutableError: The message has nothing to execute
        """
        message = self.conversation.get(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        if message.bundle is None:
            raise NotExecutableError("This message has no actions to execute")

        session = ExecutionSession.from_bundle(message.bundle, policy)
        message.session = session
        self._track(session)

        await self.controller.wait_for_initialization()
        await self.controller.run_session(session)

        self.conversation.add_assistant_message(
            self._narrate(session),
            session=session,
            kind=self._outcome_kind(session),
        )
        return session

    @staticmethod
    def _outcome_kind(session: ExecutionSession) -> MessageKind:
        if session.status is SessionStatus.COMPLETED and session.failed_count == 0:
            return MessageKind.SUCCESS
        return MessageKind.FAILURE

    @staticmethod
    def _narrate(session: ExecutionSession) -> str:
        lines = [session.summary]
        if session.results:
            lines.append("")
            lines.extend(f"• {result}" for result in session.results)
        return "\n".join(lines)


__all__ = ["BitwigAssistant", "MessageNotFoundError"]
