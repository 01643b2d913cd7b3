"""Shared fixtures for BitwigAssist tests."""

from __future__ import annotations

import os
import tempfile

import pytest

# Settings are read when bitwigassist.main is imported; keep them hermetic.
os.environ.setdefault("BITWIGASSIST_DATA_DIR", tempfile.mkdtemp(prefix="bitwigassist-tests-"))
os.environ.setdefault("CONTROLLER_PROBE", "static")
os.environ.setdefault("CONTROLLER_POLL_INTERVAL_SEC", "60")
for _delay in (
    "INTER_ACTION",
    "COMPOSITE",
    "FOCUS",
    "PARAMETER",
    "DEVICE_BROWSER",
    "TRACK",
    "SIMULATED_INPUT",
):
    os.environ.setdefault(f"CONTROLLER_{_delay}_DELAY_MS", "0")

from bitwigassist.core.knowledge_base import KnowledgeBase, build_default_knowledge_base  # noqa: E402
from bitwigassist.services.controller import (  # noqa: E402
    ActionController,
    ActionExecutor,
    ControllerConfig,
    ExecutorConfig,
    SimulatedBackend,
    StaticProbe,
)


def zero_delay_executor_config() -> ExecutorConfig:
    return ExecutorConfig(
        focus_delay_ms=0,
        parameter_delay_ms=0,
        device_browser_delay_ms=0,
        track_delay_ms=0,
    )


def zero_delay_controller_config() -> ControllerConfig:
    return ControllerConfig(inter_action_delay_ms=0, composite_delay_ms=0)


@pytest.fixture
def knowledge_base() -> KnowledgeBase:
    return build_default_knowledge_base()


@pytest.fixture
def backend() -> SimulatedBackend:
    return SimulatedBackend(delay_ms=0)


@pytest.fixture
def executor(backend: SimulatedBackend) -> ActionExecutor:
    return ActionExecutor(backend, zero_delay_executor_config())


@pytest.fixture
def probe() -> StaticProbe:
    return StaticProbe(running=True)


@pytest.fixture
def controller(executor: ActionExecutor, probe: StaticProbe) -> ActionController:
    return ActionController(executor, probe, zero_delay_controller_config())


@pytest.fixture
async def connected_controller(controller: ActionController) -> ActionController:
    await controller.wait_for_initialization()
    return controller
