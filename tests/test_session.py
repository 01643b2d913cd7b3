"""Tests for execution sessions and the controller driving them."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from bitwigassist.core.knowledge_base import KnowledgeBase
from bitwigassist.models.actions import Action, ActionKind, ActionResult
from bitwigassist.services.controller import (
    ActionController,
    ActionExecutor,
    ControllerConfig,
    StaticProbe,
)
from bitwigassist.services.session import (
    ExecutionPolicy,
    ExecutionSession,
    InvalidTransitionError,
    NotExecutableError,
    SessionStatus,
)

FAST = ControllerConfig(inter_action_delay_ms=0, composite_delay_ms=0)


def _actions(*targets: str) -> list[Action]:
    return [Action(kind=ActionKind.KEYBOARD, target=t, description=f"Press {t}") for t in targets]


async def _controller(*results: ActionResult) -> tuple[ActionController, AsyncMock]:
    executor = AsyncMock(spec=ActionExecutor)
    executor.execute.side_effect = list(results)
    controller = ActionController(executor, StaticProbe(), FAST)
    await controller.wait_for_initialization()
    return controller, executor


# =============================================================================
# State Machine Tests
# =============================================================================


class TestSessionStateMachine:
    """Tests for session transitions."""

    def test_new_session_is_pending(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        assert session.status == SessionStatus.PENDING
        assert session.results == []
        assert len(session.id) == 8

    def test_forward_transitions(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        session.start()
        session.record(ActionResult.ok("Sent keyboard input: A"))
        session.complete()
        assert session.status == SessionStatus.COMPLETED
        assert session.summary == "All 1 actions completed in Bitwig Studio."
        assert session.started_at is not None
        assert session.finished_at is not None

    def test_cannot_restart(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        session.start()
        with pytest.raises(InvalidTransitionError):
            session.start()

    def test_terminal_is_final(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        session.start()
        session.fail("boom")
        assert session.error == "boom"
        with pytest.raises(InvalidTransitionError):
            session.complete()
        with pytest.raises(InvalidTransitionError):
            session.start()

    def test_cannot_complete_pending(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        with pytest.raises(InvalidTransitionError):
            session.complete()

    def test_record_requires_executing(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        with pytest.raises(InvalidTransitionError):
            session.record(ActionResult.ok("x"))

    def test_cancel_finished_session(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        session.start()
        session.complete()
        assert session.cancel() is False

    def test_from_bundle_requires_executable(self, knowledge_base: KnowledgeBase) -> None:
        with pytest.raises(NotExecutableError):
            ExecutionSession.from_bundle(knowledge_base.fallback)

        session = ExecutionSession.from_bundle(knowledge_base.topics["mixing"])
        assert session.actions == knowledge_base.topics["mixing"].actions

    def test_to_dict(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"), ExecutionPolicy.STOP_ON_FAILURE)
        data = session.to_dict()
        assert data["status"] == "pending"
        assert data["policy"] == "stop_on_failure"
        assert data["actions"][0]["type"] == "keyboard"
        assert data["started_at"] is None


# =============================================================================
# Controller-driven Session Tests
# =============================================================================


class TestRunSession:
    """Tests for ActionController.run_session."""

    @pytest.mark.asyncio
    async def test_continue_policy_runs_everything(self) -> None:
        controller, executor = await _controller(
            ActionResult.ok("one"), ActionResult.fail("two failed"), ActionResult.ok("three")
        )
        session = ExecutionSession.from_actions(_actions("A", "B", "C"))
        await controller.run_session(session)

        assert session.status == SessionStatus.COMPLETED
        assert session.results == ["one", "two failed", "three"]
        assert session.summary == "Finished with 2 of 3 actions completed in Bitwig Studio."
        assert executor.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_stop_on_failure_policy(self) -> None:
        controller, executor = await _controller(
            ActionResult.ok("one"), ActionResult.fail("two failed"), ActionResult.ok("three")
        )
        session = ExecutionSession.from_actions(
            _actions("A", "B", "C"), ExecutionPolicy.STOP_ON_FAILURE
        )
        await controller.run_session(session)

        assert session.status == SessionStatus.FAILED
        assert session.results == ["one", "two failed"]
        assert session.summary == "Execution failed: two failed"
        assert executor.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_disconnected_session_fails_each_action(self) -> None:
        executor = AsyncMock(spec=ActionExecutor)
        controller = ActionController(executor, StaticProbe(running=False), FAST)
        await controller.wait_for_initialization()

        session = ExecutionSession.from_actions(_actions("A", "B"))
        await controller.run_session(session)

        assert session.failed_count == 2
        executor.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_cannot_run_twice(self) -> None:
        controller, _ = await _controller(ActionResult.ok("one"))
        session = ExecutionSession.from_actions(_actions("A"))
        await controller.run_session(session)
        with pytest.raises(InvalidTransitionError):
            await controller.run_session(session)

    @pytest.mark.asyncio
    async def test_cancel_between_actions(self) -> None:
        session = ExecutionSession.from_actions(_actions("A", "B", "C"))
        executor = AsyncMock(spec=ActionExecutor)

        async def _execute(action: Action) -> ActionResult:
            if action.target == "A":
                session.cancel()
            return ActionResult.ok(f"pressed {action.target}")

        executor.execute.side_effect = _execute
        controller = ActionController(executor, StaticProbe(), FAST)
        await controller.wait_for_initialization()
        await controller.run_session(session)

        assert session.status == SessionStatus.FAILED
        assert session.error == "Execution cancelled"
        assert session.results == ["pressed A"]

    @pytest.mark.asyncio
    async def test_task_cancellation_fails_session(self) -> None:
        session = ExecutionSession.from_actions(_actions("A"))
        executor = AsyncMock(spec=ActionExecutor)
        started = asyncio.Event()

        async def _hang(action: Action) -> ActionResult:
            started.set()
            await asyncio.sleep(10)
            return ActionResult.ok("late")

        executor.execute.side_effect = _hang
        controller = ActionController(executor, StaticProbe(), FAST)
        await controller.wait_for_initialization()

        task = asyncio.create_task(controller.run_session(session))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert session.status == SessionStatus.FAILED
        assert session.error == "Execution cancelled"
