"""Domain types for actions, results, and knowledge responses.

An `Action` is a single typed instruction for Bitwig Studio. The knowledge
base bundles actions with prose and step-by-step guidance into a
`ResponseBundle`; executing an action yields an `ActionResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionKind(str, Enum):
    """Kinds of actions that can be performed in Bitwig Studio."""

    CLICK = "click"
    DRAG = "drag"
    KEYBOARD = "keyboard"
    MENU = "menu"
    PARAMETER = "parameter"
    DEVICE = "device"
    TRACK = "track"


class MouseAction(str, Enum):
    """Mouse gestures shown by the step-by-step overlay."""

    CLICK = "click"
    DRAG = "drag"
    HOVER = "hover"
    DOUBLE_CLICK = "double-click"


@dataclass(frozen=True)
class Point:
    """A screen coordinate."""

    x: int
    y: int

    @classmethod
    def parse(cls, value: Any) -> Point | None:
        """Coerce a Point, an ``{"x", "y"}`` mapping or an ``(x, y)`` pair."""
        if value is None or isinstance(value, Point):
            return value
        if isinstance(value, dict) and "x" in value and "y" in value:
            return cls(x=value["x"], y=value["y"])
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(x=value[0], y=value[1])
        return None

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Action:
    """A single operation to perform against Bitwig Studio."""

    kind: ActionKind
    target: str
    description: str = ""
    value: Any = None  # Level, destination point, or string depending on kind
    coordinates: Point | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        """Build an action from its wire form.

        Accepts either ``kind`` or ``type`` for the action kind. Raises
        ValueError for an unknown kind.
        """
        kind = data.get("kind", data.get("type"))
        return cls(
            kind=ActionKind(kind),
            target=str(data.get("target", "")),
            description=data.get("description", ""),
            value=data.get("value"),
            coordinates=Point.parse(data.get("coordinates")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire form."""
        data: dict[str, Any] = {
            "type": self.kind.value,
            "target": self.target,
            "description": self.description,
        }
        if self.value is not None:
            data["value"] = self.value.to_dict() if isinstance(self.value, Point) else self.value
        if self.coordinates is not None:
            data["coordinates"] = self.coordinates.to_dict()
        return data


@dataclass(frozen=True)
class ActionResult:
    """Outcome of executing one action."""

    success: bool
    message: str
    data: Any = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> ActionResult:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, data: Any = None) -> ActionResult:
        return cls(success=False, message=message, data=data)


@dataclass(frozen=True)
class MousePosition:
    """Where to point the user, and what to do there."""

    x: int
    y: int
    action: MouseAction
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "action": self.action.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class Step:
    """One entry of a step-by-step guide.

    Mirrors the bundle's action list for display; `action` is the linked
    action when the step can be performed automatically.
    """

    id: str
    title: str
    description: str
    mouse_position: MousePosition | None = None
    action: Action | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "mouse_position": self.mouse_position.to_dict() if self.mouse_position else None,
            "action": self.action.to_dict() if self.action else None,
        }


@dataclass(frozen=True)
class ResponseBundle:
    """Answer for one query: prose, optional guide, optional action plan."""

    answer: str
    steps: tuple[Step, ...] = field(default_factory=tuple)
    actions: tuple[Action, ...] = field(default_factory=tuple)
    can_execute: bool = False
    topic: str | None = None

    @property
    def mouse_positions(self) -> list[MousePosition]:
        """Mouse hints of the steps, in step order."""
        return [step.mouse_position for step in self.steps if step.mouse_position]

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "answer": self.answer,
            "steps": [step.to_dict() for step in self.steps],
            "actions": [action.to_dict() for action in self.actions],
            "mouse_positions": [pos.to_dict() for pos in self.mouse_positions],
            "can_execute": self.can_execute,
        }
