"""BitwigAssist models and schemas."""

from bitwigassist.models.actions import (
    Action,
    ActionKind,
    ActionResult,
    MouseAction,
    MousePosition,
    Point,
    ResponseBundle,
    Step,
)

__all__ = [
    # Actions
    "Action",
    "ActionKind",
    "ActionResult",
    "Point",
    # Knowledge responses
    "MouseAction",
    "MousePosition",
    "ResponseBundle",
    "Step",
]
