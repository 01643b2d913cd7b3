"""Bitwig Studio control: probes, input backends, executor and controller."""

from bitwigassist.services.controller.backends import (
    InputBackend,
    PyAutoGUIBackend,
    SimulatedBackend,
    create_backend,
)
from bitwigassist.services.controller.controller import (
    COMPOSITES,
    NOT_RUNNING_MESSAGE,
    ActionController,
    CompositeOperation,
    ConnectionState,
    ControllerConfig,
    create_controller,
)
from bitwigassist.services.controller.executor import ActionExecutor, ExecutorConfig
from bitwigassist.services.controller.probe import (
    HttpProcessProbe,
    PlatformCapability,
    ProcessProbe,
    StaticProbe,
    TargetProbe,
    create_probe,
)

__all__ = [
    "COMPOSITES",
    "NOT_RUNNING_MESSAGE",
    "ActionController",
    "ActionExecutor",
    "CompositeOperation",
    "ConnectionState",
    "ControllerConfig",
    "ExecutorConfig",
    "HttpProcessProbe",
    "InputBackend",
    "PlatformCapability",
    "ProcessProbe",
    "PyAutoGUIBackend",
    "SimulatedBackend",
    "StaticProbe",
    "TargetProbe",
    "create_backend",
    "create_controller",
    "create_probe",
]
