"""Input injection backends.

The executor talks to Bitwig Studio only through an `InputBackend`. The
simulated backend logs and records calls; the PyAutoGUI backend drives the
real mouse and keyboard. The backend is chosen once, when the controller is
built.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Friendly key names used in the knowledge base -> pyautogui key names
KEY_ALIASES: dict[str, str] = {
    "control": "ctrl",
    "cmd": "command",
    "esc": "escape",
    "del": "delete",
    "return": "enter",
    "spacebar": "space",
    "windows": "win",
}


def parse_key_combo(combo: str) -> list[str]:
    """Split a combo like ``Ctrl+Shift+N`` into lower-case key names."""
    keys = [part.strip().lower() for part in combo.split("+") if part.strip()]
    return [KEY_ALIASES.get(key, key) for key in keys]


class InputBackend(ABC):
    """Performs raw input against the desktop."""

    name: str

    @abstractmethod
    async def focus_window(self, title: str) -> bool:
        """Bring the window with this title to the foreground."""

    @abstractmethod
    async def click(self, x: int, y: int) -> bool:
        """Left-click at a screen position."""

    @abstractmethod
    async def drag(self, start_x: int, start_y: int, end_x: int, end_y: int) -> bool:
        """Press at start, move to end, release."""

    @abstractmethod
    async def send_keys(self, combo: str) -> bool:
        """Press a key or key combination."""


@dataclass(frozen=True)
class BackendCall:
    """One call recorded by the simulated backend."""

    operation: str
    args: tuple[Any, ...]


class SimulatedBackend(InputBackend):
    """Backend that only logs. Every operation succeeds."""

    name = "simulated"

    def __init__(self, delay_ms: int = 50) -> None:
        self._delay = delay_ms / 1000
        self.calls: list[BackendCall] = []

    async def _simulate(self, operation: str, *args: Any) -> bool:
        logger.info("Simulated %s %s", operation, args)
        self.calls.append(BackendCall(operation, args))
        if self._delay:
            await asyncio.sleep(self._delay)
        return True

    async def focus_window(self, title: str) -> bool:
        return await self._simulate("focus_window", title)

    async def click(self, x: int, y: int) -> bool:
        return await self._simulate("click", x, y)

    async def drag(self, start_x: int, start_y: int, end_x: int, end_y: int) -> bool:
        return await self._simulate("drag", start_x, start_y, end_x, end_y)

    async def send_keys(self, combo: str) -> bool:
        return await self._simulate("send_keys", combo)


class PyAutoGUIBackend(InputBackend):
    """Real desktop automation through pyautogui.

    pyautogui calls block, so they run in a worker thread. Requires the
    ``automation`` extra and a desktop session.
    """

    name = "pyautogui"

    def __init__(self, drag_duration: float = 0.2) -> None:
        import pyautogui

        self._gui = pyautogui
        self._drag_duration = drag_duration

    async def focus_window(self, title: str) -> bool:
        def _focus() -> bool:
            get_windows = getattr(self._gui, "getWindowsWithTitle", None)
            if get_windows is None:
                logger.warning("Window focus is not available on this platform")
                return False
            windows = get_windows(title)
            if not windows:
                logger.warning("No window titled %r", title)
                return False
            windows[0].activate()
            return True

        return await asyncio.to_thread(_focus)

    async def click(self, x: int, y: int) -> bool:
        await asyncio.to_thread(self._gui.click, x, y)
        return True

    async def drag(self, start_x: int, start_y: int, end_x: int, end_y: int) -> bool:
        def _drag() -> None:
            self._gui.moveTo(start_x, start_y)
            self._gui.dragTo(end_x, end_y, duration=self._drag_duration, button="left")

        await asyncio.to_thread(_drag)
        return True

    async def send_keys(self, combo: str) -> bool:
        keys = parse_key_combo(combo)
        unknown = [key for key in keys if key not in self._gui.KEYBOARD_KEYS]
        if not keys or unknown:
            raise ValueError(f"Unsupported key combination: {combo}")
        if len(keys) == 1:
            await asyncio.to_thread(self._gui.press, keys[0])
        else:
            await asyncio.to_thread(self._gui.hotkey, *keys)
        return True


def create_backend(name: str, simulated_delay_ms: int = 50) -> InputBackend:
    """Build the backend selected in settings."""
    if name == "pyautogui":
        return PyAutoGUIBackend()
    if name == "simulated":
        return SimulatedBackend(delay_ms=simulated_delay_ms)
    raise ValueError(f"Unknown input backend: {name}")


__all__ = [
    "BackendCall",
    "InputBackend",
    "PyAutoGUIBackend",
    "SimulatedBackend",
    "create_backend",
    "parse_key_combo",
]
