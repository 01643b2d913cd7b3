"""Action Controller - Owns the connection to Bitwig Studio and runs actions.

Responsibilities:
- Track whether Bitwig Studio is reachable (unknown / connected / disconnected)
- Gate every action on that state and on platform support
- Run action lists strictly one after another, with pacing between actions
- Drive execution sessions through their lifecycle
- Provide composite operations (fixed action sequences such as "record audio")

Nothing here raises to the caller for an unreachable target or a failed
action; both come back as an `ActionResult` with ``success=False``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from bitwigassist.config import ControllerSettings
from bitwigassist.models.actions import Action, ActionKind, ActionResult, Point
from bitwigassist.services.controller.backends import create_backend
from bitwigassist.services.controller.executor import ActionExecutor, ExecutorConfig
from bitwigassist.services.controller.probe import (
    PlatformCapability,
    TargetProbe,
    create_probe,
)
from bitwigassist.services.metrics import record_action, record_probe, record_session
from bitwigassist.services.session import ExecutionPolicy, ExecutionSession

logger = logging.getLogger(__name__)

NOT_RUNNING_MESSAGE = "Bitwig Studio is not running. Please start Bitwig Studio first."


class ConnectionState(str, Enum):
    """What the controller believes about Bitwig Studio."""

    UNKNOWN = "unknown"  # Not probed yet, or re-probing
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class ControllerConfig:
    """Pacing and timeouts for the controller."""

    inter_action_delay_ms: int = 500
    composite_delay_ms: int = 200
    probe_timeout_sec: float = 5.0
    action_timeout_sec: float = 10.0


@dataclass(frozen=True)
class CompositeOperation:
    """A named, fixed sequence of actions.

    Runs until the first failing action, whose result is returned unchanged.
    On success returns `success_message`, or the last action's result if none
    is set.
    """

    name: str
    description: str
    actions: tuple[Action, ...]
    success_message: str | None = None


def _keys(combo: str, description: str) -> tuple[Action, ...]:
    return (Action(kind=ActionKind.KEYBOARD, target=combo, description=description),)


COMPOSITES: Mapping[str, CompositeOperation] = MappingProxyType(
    {
        op.name: op
        for op in (
            CompositeOperation(
                "create_new_project",
                "Create a new project",
                _keys("Ctrl+N", "Create new project"),
                "New project created successfully",
            ),
            CompositeOperation(
                "record_audio",
                "Arm the track and start recording audio",
                (
                    Action(
                        kind=ActionKind.CLICK,
                        target="record_arm_button",
                        coordinates=Point(150, 100),
                        description="Arm track for recording",
                    ),
                    Action(
                        kind=ActionKind.CLICK,
                        target="main_record_button",
                        coordinates=Point(400, 50),
                        description="Start recording",
                    ),
                ),
                "Audio recording started",
            ),
            CompositeOperation(
                "start_recording",
                "Start transport recording",
                _keys("R", "Start recording"),
                "Recording started",
            ),
            CompositeOperation(
                "add_eq_device",
                "Add an EQ+ device to the selected track",
                (
                    Action(
                        kind=ActionKind.DEVICE,
                        target="add_eq_device",
                        description="Add EQ+ device to track",
                    ),
                ),
            ),
            CompositeOperation(
                "enable_automation",
                "Enable automation mode",
                _keys("A", "Toggle automation"),
                "Automation mode enabled",
            ),
            CompositeOperation(
                "toggle_snap_to_grid",
                "Toggle snap to grid",
                _keys("S", "Toggle snap to grid"),
                "Snap to grid toggled",
            ),
            CompositeOperation(
                "open_device_browser",
                "Open the device browser",
                _keys("F4", "Open device browser"),
                "Device browser opened",
            ),
            CompositeOperation(
                "play_stop",
                "Toggle playback",
                _keys("Space", "Play/stop"),
                "Playback toggled",
            ),
            CompositeOperation(
                "toggle_metronome",
                "Toggle the metronome",
                _keys("M", "Toggle metronome"),
                "Metronome toggled",
            ),
            CompositeOperation("undo", "Undo", _keys("Ctrl+Z", "Undo"), "Undo performed"),
            CompositeOperation("redo", "Redo", _keys("Ctrl+Y", "Redo"), "Redo performed"),
            CompositeOperation(
                "save_project",
                "Save the project",
                _keys("Ctrl+S", "Save project"),
                "Project saved",
            ),
            CompositeOperation(
                "open_project",
                "Open a project",
                _keys("Ctrl+O", "Open project"),
                "Project opened",
            ),
            CompositeOperation(
                "export_audio",
                "Export audio",
                _keys("Ctrl+E", "Export audio"),
                "Audio export started",
            ),
        )
    }
)


class ActionController:
    """Connection-aware, strictly sequential action runner."""

    def __init__(
        self,
        executor: ActionExecutor,
        probe: TargetProbe,
        config: ControllerConfig | None = None,
    ) -> None:
        self._executor = executor
        self._probe = probe
        self.config = config or ControllerConfig()

        self._state = ConnectionState.UNKNOWN
        # One input stream: a run holds this until its last action is sent
        self._input_lock = asyncio.Lock()
        self._probe_task: asyncio.Task[bool] | None = None
        self._start_task: asyncio.Task[bool] | None = None
        # Resolved exactly once, by the first completed probe
        self._initialized: asyncio.Future[bool] | None = None

    # =========================================================================
    # Connection
    # =========================================================================

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    def capability(self) -> PlatformCapability:
        """Whether this host can control Bitwig Studio at all."""
        return self._probe.capability()

    def get_system_info(self) -> dict[str, Any]:
        capability = self.capability()
        return {
            "platform": capability.platform,
            "supported": capability.supported,
            "reason": capability.reason,
        }

    def _ready_future(self) -> asyncio.Future[bool]:
        if self._initialized is None:
            self._initialized = asyncio.get_running_loop().create_future()
        return self._initialized

    def start(self) -> None:
        """Schedule the first probe without waiting for it."""
        self._ready_future()
        if self._start_task is None:
            self._start_task = asyncio.create_task(self.probe_connection())

    async def probe_connection(self) -> bool:
        """Check once whether Bitwig Studio is running and update the state.

        Concurrent callers share a single in-flight probe. Never raises.
        """
        if self._probe_task is None or self._probe_task.done():
            self._probe_task = asyncio.create_task(self._run_probe())
        return await asyncio.shield(self._probe_task)

    async def _run_probe(self) -> bool:
        capability = self._probe.capability()
        if not capability.supported:
            logger.warning("System integration not supported on this platform: %s", capability.reason)
            connected, outcome = False, "unsupported"
        else:
            try:
                connected = await asyncio.wait_for(
                    self._probe.is_target_running(), timeout=self.config.probe_timeout_sec
                )
                outcome = "connected" if connected else "disconnected"
            except TimeoutError:
                logger.warning(
                    "Bitwig Studio check timed out after %.1fs", self.config.probe_timeout_sec
                )
                connected, outcome = False, "error"
            except Exception as e:
                logger.error("Failed to check Bitwig Studio connection: %s", e)
                connected, outcome = False, "error"

        previous = self._state
        self._state = ConnectionState.CONNECTED if connected else ConnectionState.DISCONNECTED
        if self._state is not previous:
            if connected:
                logger.info("Bitwig Studio detected and ready for control")
            else:
                logger.info("Bitwig Studio not detected. Please start Bitwig Studio first.")
        record_probe(outcome, connected)

        ready = self._ready_future()
        if not ready.done():
            ready.set_result(connected)
        return connected

    async def wait_for_initialization(self) -> bool:
        """Wait for the first probe to finish and return its result.

        Starts the probe if nobody has yet. Every waiter gets the same value.
        """
        ready = self._ready_future()
        if not ready.done():
            self.start()
        return await asyncio.shield(ready)

    async def reconnect(self) -> bool:
        """Forget the current state and probe again."""
        if self._probe_task is not None and not self._probe_task.done():
            await asyncio.shield(self._probe_task)
        self._state = ConnectionState.UNKNOWN
        logger.info("Reconnecting to Bitwig Studio")
        return await self.probe_connection()

    # =========================================================================
    # Execution
    # =========================================================================

    async def _pause(self, delay_ms: int) -> None:
        if delay_ms:
            await asyncio.sleep(delay_ms / 1000)

    async def execute_action(self, action: Action) -> ActionResult:
        """Run one action if Bitwig Studio is controllable.

        Waits for any run already in progress. The executor is not called at
        all while disconnected.
        """
        async with self._input_lock:
            return await self._dispatch(action)

    async def _dispatch(self, action: Action) -> ActionResult:
        capability = self._probe.capability()
        if not capability.supported:
            return ActionResult.fail(
                f"System integration is not supported on {capability.platform}",
                data={"error": "unsupported_platform", "reason": capability.reason},
            )
        if self._state is not ConnectionState.CONNECTED:
            return ActionResult.fail(NOT_RUNNING_MESSAGE)

        start = time.perf_counter()
        timeout = self.config.action_timeout_sec
        try:
            result = await asyncio.wait_for(self._executor.execute(action), timeout=timeout)
        except TimeoutError:
            logger.warning("Action %s timed out after %.1fs", action.target, timeout)
            result = ActionResult.fail(
                f"Action timed out after {timeout:g}s: {action.description or action.target}"
            )
        kind = getattr(action.kind, "value", str(action.kind))
        record_action(kind, result.success, time.perf_counter() - start)
        return result

    async def execute_actions(self, actions: Iterable[Action]) -> list[str]:
        """Run every action in order and return one message per action.

        A failed action doesn't stop the ones after it.
        """
        messages: list[str] = []
        async with self._input_lock:
            for index, action in enumerate(actions):
                if index:
                    await self._pause(self.config.inter_action_delay_ms)
                result = await self._dispatch(action)
                messages.append(result.message)
        return messages

    async def run_session(self, session: ExecutionSession) -> ExecutionSession:
        """Drive a pending session to a terminal state.

        The session stays pending while another run holds the input stream.
        """
        async with self._input_lock:
            return await self._run_session(session)

    async def _run_session(self, session: ExecutionSession) -> ExecutionSession:
        session.start()
        logger.info(
            "Executing session %s: %d actions (%s)",
            session.id,
            len(session.actions),
            session.policy.value,
        )
        try:
            for index, action in enumerate(session.actions):
                if index:
                    await self._pause(self.config.inter_action_delay_ms)
                if session.cancel_requested:
                    session.fail("Execution cancelled")
                    break

                result = await self._dispatch(action)
                session.record(result)
                if not result.success and session.policy is ExecutionPolicy.STOP_ON_FAILURE:
                    session.fail(result.message)
                    break
            else:
                if session.cancel_requested:
                    session.fail("Execution cancelled")
                else:
                    session.complete()
        except asyncio.CancelledError:
            session.fail("Execution cancelled")
            raise
        except Exception as e:
            logger.exception("Session %s failed", session.id)
            session.fail(str(e))
        finally:
            if session.is_terminal:
                record_session(session.status.value)

        logger.info("Session %s finished: %s", session.id, session.status.value)
        return session

    # =========================================================================
    # Composite operations
    # =========================================================================

    def list_composites(self) -> list[CompositeOperation]:
        return list(COMPOSITES.values())

    async def run_sequence(
        self, actions: Iterable[Action], success_message: str | None = None
    ) -> ActionResult:
        """Run actions until one fails; return that failure unchanged."""
        result = ActionResult.fail("No actions to run")
        async with self._input_lock:
            for index, action in enumerate(actions):
                if index:
                    await self._pause(self.config.composite_delay_ms)
                result = await self._dispatch(action)
                if not result.success:
                    return result
        if success_message is not None and result.success:
            return ActionResult.ok(success_message)
        return result

    async def run_composite(self, name: str) -> ActionResult:
        operation = COMPOSITES.get(name)
        if operation is None:
            return ActionResult.fail(f"Unknown operation: {name}")
        logger.info("Running composite operation %s", name)
        return await self.run_sequence(operation.actions, operation.success_message)

    async def create_new_project(self) -> ActionResult:
        return await self.run_composite("create_new_project")

    async def record_audio(self) -> ActionResult:
        return await self.run_composite("record_audio")

    async def start_recording(self) -> ActionResult:
        return await self.run_composite("start_recording")

    async def add_eq_device(self) -> ActionResult:
        return await self.run_composite("add_eq_device")

    async def set_track_volume(self, track_index: int, volume: float) -> ActionResult:
        action = Action(
            kind=ActionKind.PARAMETER,
            target="track_volume",
            value=volume,
            description=f"Set track {track_index} volume to {volume}dB",
        )
        return await self.execute_action(action)

    async def enable_automation(self) -> ActionResult:
        return await self.run_composite("enable_automation")

    async def toggle_snap_to_grid(self) -> ActionResult:
        return await self.run_composite("toggle_snap_to_grid")

    async def open_device_browser(self) -> ActionResult:
        return await self.run_composite("open_device_browser")

    async def play_stop(self) -> ActionResult:
        return await self.run_composite("play_stop")

    async def toggle_metronome(self) -> ActionResult:
        return await self.run_composite("toggle_metronome")

    async def undo(self) -> ActionResult:
        return await self.run_composite("undo")

    async def redo(self) -> ActionResult:
        return await self.run_composite("redo")

    async def save_project(self) -> ActionResult:
        return await self.run_composite("save_project")

    async def open_project(self) -> ActionResult:
        return await self.run_composite("open_project")

    async def export_audio(self) -> ActionResult:
        return await self.run_composite("export_audio")

    async def shutdown(self) -> None:
        """Cancel background probes."""
        for task in (self._start_task, self._probe_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass


def create_controller(settings: ControllerSettings) -> ActionController:
    """Build a controller, executor, backend and probe from settings."""
    backend = create_backend(settings.backend, settings.simulated_input_delay_ms)
    executor = ActionExecutor(
        backend,
        ExecutorConfig(
            window_title=settings.window_title,
            focus_delay_ms=settings.focus_delay_ms,
            parameter_delay_ms=settings.parameter_delay_ms,
            device_browser_delay_ms=settings.device_browser_delay_ms,
            track_delay_ms=settings.track_delay_ms,
        ),
    )
    config = ControllerConfig(
        inter_action_delay_ms=settings.inter_action_delay_ms,
        composite_delay_ms=settings.composite_delay_ms,
        probe_timeout_sec=settings.probe_timeout_sec,
        action_timeout_sec=settings.action_timeout_sec,
    )
    logger.info("Controller using %s backend and %s probe", backend.name, settings.probe)
    return ActionController(executor, create_probe(settings), config)


__all__ = [
    "COMPOSITES",
    "NOT_RUNNING_MESSAGE",
    "ActionController",
    "CompositeOperation",
    "ConnectionState",
    "ControllerConfig",
    "create_controller",
]
