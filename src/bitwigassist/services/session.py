"""Execution sessions.

A session tracks one dispatch of a response bundle's action list:

    pending -> executing -> completed | failed

Transitions only move forward and a terminal session is never re-run; a new
session is needed to try again.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from bitwigassist.models.actions import Action, ActionResult, ResponseBundle


class SessionStatus(str, Enum):
    """Lifecycle of an execution session."""

    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


class ExecutionPolicy(str, Enum):
    """What a failed action means for the rest of the session."""

    CONTINUE = "continue"  # Attempt every action, report each result
    STOP_ON_FAILURE = "stop_on_failure"  # First failure ends the session as failed


class InvalidTransitionError(Exception):
    """Raised on a backward or repeated session transition."""

    pass


class NotExecutableError(Exception):
    """Raised when a session is requested for a bundle that can't execute."""

    pass


_ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.PENDING: frozenset({SessionStatus.EXECUTING}),
    SessionStatus.EXECUTING: frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED}),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.FAILED: frozenset(),
}


@dataclass
class ExecutionSession:
    """State of one action list being dispatched."""

    actions: tuple[Action, ...]
    policy: ExecutionPolicy = ExecutionPolicy.CONTINUE
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    status: SessionStatus = SessionStatus.PENDING
    results: list[str] = field(default_factory=list)
    action_results: list[ActionResult] = field(default_factory=list)
    summary: str = ""
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    finished_at: datetime | None = None
    _cancel_requested: bool = field(default=False, repr=False)

    @classmethod
    def from_bundle(
        cls,
        bundle: ResponseBundle,
        policy: ExecutionPolicy = ExecutionPolicy.CONTINUE,
    ) -> ExecutionSession:
        """Create a pending session for an executable bundle."""
        if not bundle.can_execute or not bundle.actions:
            raise NotExecutableError("This response has no actions to execute")
        return cls(actions=tuple(bundle.actions), policy=policy)

    @classmethod
    def from_actions(
        cls,
        actions: Iterable[Action],
        policy: ExecutionPolicy = ExecutionPolicy.CONTINUE,
    ) -> ExecutionSession:
        return cls(actions=tuple(actions), policy=policy)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    @property
    def succeeded_count(self) -> int:
        return sum(1 for result in self.action_results if result.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.action_results if not result.success)

    # =========================================================================
    # Transitions
    # =========================================================================

    def _transition(self, new_status: SessionStatus) -> None:
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Session {self.id} cannot move from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def start(self) -> None:
        """pending -> executing."""
        self._transition(SessionStatus.EXECUTING)
        self.started_at = datetime.now(UTC)

    def record(self, result: ActionResult) -> None:
        """Append one action's result. Only valid while executing."""
        if self.status is not SessionStatus.EXECUTING:
            raise InvalidTransitionError(
                f"Session {self.id} is {self.status.value}; results can't be recorded"
            )
        self.action_results.append(result)
        self.results.append(result.message)

    def complete(self) -> None:
        """executing -> completed, with a narrative of what happened."""
        self._transition(SessionStatus.COMPLETED)
        self.finished_at = datetime.now(UTC)
        total = len(self.action_results)
        if self.failed_count == 0:
            self.summary = f"All {total} actions completed in Bitwig Studio."
        else:
            self.summary = (
                f"Finished with {self.succeeded_count} of {total} actions "
                f"completed in Bitwig Studio."
            )

    def fail(self, reason: str) -> None:
        """executing -> failed."""
        self._transition(SessionStatus.FAILED)
        self.finished_at = datetime.now(UTC)
        self.error = reason
        self.summary = f"Execution failed: {reason}"

    def cancel(self) -> bool:
        """Ask a running session to stop before its next action.

        Returns False if the session already finished.
        """
        if self.is_terminal:
            return False
        self._cancel_requested = True
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "policy": self.policy.value,
            "actions": [action.to_dict() for action in self.actions],
            "results": list(self.results),
            "summary": self.summary,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


__all__ = [
    "ExecutionPolicy",
    "ExecutionSession",
    "InvalidTransitionError",
    "NotExecutableError",
    "SessionStatus",
]
