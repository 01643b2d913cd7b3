"""Bitwig Studio knowledge base.

Canned answers, step-by-step guides and executable action plans for the
topics the assistant understands, plus the ordered keyword table used when
a query doesn't name a topic directly.

The knowledge base is built once and is read-only afterwards; agents receive
it by reference so tests can substitute their own tables.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from bitwigassist.models.actions import (
    Action,
    ActionKind,
    MouseAction,
    MousePosition,
    Point,
    ResponseBundle,
    Step,
)

logger = logging.getLogger(__name__)

EXECUTE_HINT = "**Click 'Execute in Bitwig' to have me do this automatically!**"


class KnowledgeBaseError(Exception):
    """Raised when a knowledge base is assembled inconsistently."""

    pass


class KnowledgeBase:
    """Immutable topic table plus ordered keyword routing.

    Iteration order of `topics` is the order topics were supplied in, which is
    also the order the resolver checks them.
    """

    def __init__(
        self,
        topics: Mapping[str, ResponseBundle],
        keywords: list[tuple[str, str]] | tuple[tuple[str, str], ...],
        fallback: ResponseBundle,
    ) -> None:
        unknown = [topic for _, topic in keywords if topic not in topics]
        if unknown:
            raise KnowledgeBaseError(f"Keywords reference unknown topics: {sorted(set(unknown))}")
        if fallback.actions or fallback.can_execute:
            raise KnowledgeBaseError("Fallback response must not be executable")

        self._topics: Mapping[str, ResponseBundle] = MappingProxyType(dict(topics))
        self._keywords: tuple[tuple[str, str], ...] = tuple(
            (keyword.lower(), topic) for keyword, topic in keywords
        )
        self._fallback = fallback

    @property
    def topics(self) -> Mapping[str, ResponseBundle]:
        return self._topics

    @property
    def keywords(self) -> tuple[tuple[str, str], ...]:
        return self._keywords

    @property
    def fallback(self) -> ResponseBundle:
        return self._fallback

    def get(self, topic: str) -> ResponseBundle | None:
        return self._topics.get(topic)

    def __contains__(self, topic: object) -> bool:
        return topic in self._topics

    def __iter__(self) -> Iterator[str]:
        return iter(self._topics)

    def __len__(self) -> int:
        return len(self._topics)


# =============================================================================
# Builders
# =============================================================================


def _click(target: str, x: int, y: int, description: str) -> Action:
    return Action(
        kind=ActionKind.CLICK, target=target, coordinates=Point(x, y), description=description
    )


def _action(kind: ActionKind, target: str, description: str, value: object = None) -> Action:
    return Action(kind=kind, target=target, value=value, description=description)


def _step(
    step_id: str,
    title: str,
    description: str,
    mouse: tuple[int, int, MouseAction, str],
    action: Action,
) -> Step:
    x, y, gesture, hint = mouse
    return Step(
        id=step_id,
        title=title,
        description=description,
        mouse_position=MousePosition(x=x, y=y, action=gesture, description=hint),
        action=action,
    )


def _answer(intro: str, bullets: list[str]) -> str:
    lines = "\n".join(f"• {bullet}" for bullet in bullets)
    return f"{intro}\n\n{lines}\n\n{EXECUTE_HINT}"


def _bundle(topic: str, answer: str, steps: list[Step]) -> ResponseBundle:
    """Build an executable bundle whose action list mirrors the steps."""
    return ResponseBundle(
        topic=topic,
        answer=answer,
        steps=tuple(steps),
        actions=tuple(step.action for step in steps if step.action is not None),
        can_execute=True,
    )


# =============================================================================
# Default Bitwig Studio content
# =============================================================================


def _default_topics() -> dict[str, ResponseBundle]:
    topics: dict[str, ResponseBundle] = {}

    topics["create_project"] = _bundle(
        "create_project",
        _answer(
            "I'll create a new project in Bitwig Studio for you!",
            [
                "Going to **File > New Project** or pressing **Ctrl+N**",
                "Setting up project settings",
                "Creating the new project",
            ],
        ),
        [
            _step(
                "1",
                "Open File Menu",
                "Click on the File menu in the top menu bar",
                (50, 20, MouseAction.CLICK, "Click File menu"),
                _action(ActionKind.KEYBOARD, "Ctrl+N", "Create new project"),
            ),
        ],
    )

    topics["record_audio"] = _bundle(
        "record_audio",
        _answer(
            "I'll set up audio recording in Bitwig Studio for you!",
            [
                "**Arming the track** by clicking the record button",
                "**Setting input source** - choosing your audio interface",
                "**Starting recording** - pressing the main record button",
            ],
        ),
        [
            _step(
                "1",
                "Arm the Track",
                "Click the red record button on the track header to arm it for recording",
                (150, 100, MouseAction.CLICK, "Click record arm button"),
                _click("record_arm_button", 150, 100, "Arm track for recording"),
            ),
            _step(
                "2",
                "Start Recording",
                "Press the main record button in the transport bar to begin recording",
                (400, 50, MouseAction.CLICK, "Click main record button"),
                _click("main_record_button", 400, 50, "Start recording"),
            ),
        ],
    )

    topics["record_midi"] = _bundle(
        "record_midi",
        _answer(
            "I'll set up MIDI recording in Bitwig Studio for you!",
            [
                "**Creating a MIDI track** - adding a new MIDI track",
                "**Arming the track** - enabling recording",
                "**Starting recording** - pressing the record button",
            ],
        ),
        [
            _step(
                "1",
                "Add MIDI Track",
                'Right-click in the track list and select "Add MIDI Track"',
                (100, 200, MouseAction.CLICK, "Right-click track list"),
                _action(ActionKind.TRACK, "add_midi_track", "Add new MIDI track"),
            ),
            _step(
                "2",
                "Arm MIDI Track",
                "Click the record button on the new MIDI track to arm it",
                (150, 250, MouseAction.CLICK, "Click record arm button"),
                _click("midi_record_arm_button", 150, 250, "Arm MIDI track for recording"),
            ),
        ],
    )

    topics["mixing"] = _bundle(
        "mixing",
        _answer(
            "I'll help you set up mixing in Bitwig Studio!",
            [
                "**Adjusting track levels** - balancing volume between instruments",
                "**Adding EQ** - inserting EQ+ device for frequency shaping",
                "**Setting pan positions** - creating stereo width",
            ],
        ),
        [
            _step(
                "1",
                "Add EQ Device",
                'Right-click on track and select "Add Device > EQ+"',
                (350, 200, MouseAction.CLICK, "Right-click track for device menu"),
                _action(ActionKind.DEVICE, "add_eq_device", "Add EQ+ device to track"),
            ),
            _step(
                "2",
                "Adjust Track Levels",
                "Use the track faders to balance the volume of each instrument",
                (300, 150, MouseAction.DRAG, "Drag track fader up/down"),
                _action(ActionKind.PARAMETER, "track_volume", "Set track volume to -6dB", -6),
            ),
        ],
    )

    topics["effects_devices"] = _bundle(
        "effects_devices",
        _answer(
            "I'll add effects and devices to your track in Bitwig Studio!",
            [
                "**Opening device browser** - pressing F4 or clicking browser button",
                "**Adding device** - dragging device to track",
                "**Configuring device** - adjusting parameters",
            ],
        ),
        [
            _step(
                "1",
                "Open Device Browser",
                "Press F4 or click the device browser button to open the device panel",
                (800, 50, MouseAction.CLICK, "Click device browser button"),
                _action(ActionKind.KEYBOARD, "F4", "Open device browser"),
            ),
            _step(
                "2",
                "Add Device to Track",
                "Drag the device from the browser onto your track",
                (850, 150, MouseAction.DRAG, "Drag device to track"),
                _action(ActionKind.DEVICE, "add_selected_device", "Add selected device to track"),
            ),
        ],
    )

    topics["automation"] = _bundle(
        "automation",
        _answer(
            "I'll set up automation in Bitwig Studio for you!",
            [
                "**Enabling automation** - clicking the automation button or pressing A",
                "**Selecting parameter** - choosing which parameter to automate",
                "**Drawing automation** - using the pencil tool",
            ],
        ),
        [
            _step(
                "1",
                "Enable Automation",
                "Click the automation button on the track or press A key",
                (400, 120, MouseAction.CLICK, "Click automation button"),
                _click("automation_button", 400, 120, "Enable automation mode"),
            ),
            _step(
                "2",
                "Select Parameter",
                "Choose the parameter you want to automate from the dropdown menu",
                (450, 140, MouseAction.CLICK, "Click parameter selector"),
                _action(
                    ActionKind.PARAMETER,
                    "automation_parameter",
                    "Select volume parameter for automation",
                    "volume",
                ),
            ),
        ],
    )

    topics["arrangement"] = _bundle(
        "arrangement",
        _answer(
            "I'll help you work with the Arrangement view in Bitwig Studio!",
            [
                "**Navigating timeline** - moving to different parts of your song",
                "**Adding clips** - dragging clips from browser or recording",
                "**Editing tools** - using scissors, glue, and other tools",
            ],
        ),
        [
            _step(
                "1",
                "Navigate Timeline",
                "Use the timeline ruler to navigate to different parts of your song",
                (200, 50, MouseAction.CLICK, "Click on timeline to navigate"),
                _click("timeline_position", 200, 50, "Navigate to timeline position"),
            ),
            _step(
                "2",
                "Toggle Snap to Grid",
                "Enable snap to grid for precise editing",
                (600, 50, MouseAction.CLICK, "Click snap button"),
                _action(ActionKind.KEYBOARD, "S", "Toggle snap to grid"),
            ),
        ],
    )

    topics["clip_launcher"] = _bundle(
        "clip_launcher",
        _answer(
            "I'll help you use the Clip Launcher for live performance in Bitwig Studio!",
            [
                "**Switching to Session view** - accessing the clip launcher",
                "**Creating clips** - recording or creating clips",
                "**Launching clips** - clicking clips to launch them",
            ],
        ),
        [
            _step(
                "1",
                "Switch to Session View",
                "Click the Session view button to access the clip launcher",
                (700, 50, MouseAction.CLICK, "Click Session view button"),
                _click("session_view_button", 700, 50, "Switch to Session view"),
            ),
            _step(
                "2",
                "Create New Clip",
                "Click an empty clip slot to create a new clip",
                (200, 150, MouseAction.CLICK, "Click empty clip slot"),
                _click("empty_clip_slot", 200, 150, "Create new clip"),
            ),
        ],
    )

    topics["troubleshooting"] = _bundle(
        "troubleshooting",
        _answer(
            "I'll help you troubleshoot Bitwig Studio issues!",
            [
                "**Opening preferences** - accessing system settings",
                "**Adjusting audio settings** - fixing buffer size and dropouts",
                "**Checking MIDI settings** - verifying device connections",
            ],
        ),
        [
            _step(
                "1",
                "Open Preferences",
                "Go to File > Preferences to access system settings",
                (50, 20, MouseAction.CLICK, "Click File menu"),
                _action(ActionKind.MENU, "File > Preferences", "Open preferences menu"),
            ),
            _step(
                "2",
                "Audio Settings",
                "Navigate to Audio tab and adjust buffer size if experiencing dropouts",
                (100, 100, MouseAction.CLICK, "Click Audio tab"),
                _click("audio_tab", 100, 100, "Open audio settings"),
            ),
        ],
    )

    return topics


# Checked in order; the first keyword contained in the query wins.
DEFAULT_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("create", "create_project"),
    ("new project", "create_project"),
    ("start project", "create_project"),
    ("record", "record_audio"),
    ("recording", "record_audio"),
    ("audio", "record_audio"),
    ("midi", "record_midi"),
    ("keyboard", "record_midi"),
    ("mix", "mixing"),
    ("mixing", "mixing"),
    ("volume", "mixing"),
    ("eq", "mixing"),
    ("effect", "effects_devices"),
    ("device", "effects_devices"),
    ("plugin", "effects_devices"),
    ("automation", "automation"),
    ("automate", "automation"),
    ("arrangement", "arrangement"),
    ("timeline", "arrangement"),
    ("clip", "clip_launcher"),
    ("session", "clip_launcher"),
    ("launch", "clip_launcher"),
    ("problem", "troubleshooting"),
    ("issue", "troubleshooting"),
    ("crash", "troubleshooting"),
    ("error", "troubleshooting"),
    ("help", "troubleshooting"),
)

FALLBACK_RESPONSE = ResponseBundle(
    answer=(
        "I'm here to help you with Bitwig Studio! I can assist with:\n\n"
        "• **Recording** - Audio and MIDI recording techniques\n"
        "• **Mixing** - Volume, panning, EQ, and effects\n"
        "• **Arrangement** - Timeline editing and clip management\n"
        "• **Clip Launcher** - Live performance and session view\n"
        "• **Automation** - Parameter automation and modulation\n"
        "• **Effects** - Using devices and plugins\n"
        "• **Troubleshooting** - Common issues and solutions\n\n"
        "Try asking about any of these topics or be more specific about what "
        "you'd like to learn!"
    ),
)


def build_default_knowledge_base() -> KnowledgeBase:
    """Build the stock Bitwig Studio knowledge base."""
    kb = KnowledgeBase(
        topics=_default_topics(),
        keywords=DEFAULT_KEYWORDS,
        fallback=FALLBACK_RESPONSE,
    )
    logger.debug("Knowledge base built: %d topics, %d keywords", len(kb), len(kb.keywords))
    return kb
