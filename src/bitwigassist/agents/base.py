from __future__ import annotations

from abc import ABC, abstractmethod


class Agent(ABC):
    """Lifecycle shared by the assistant's agents.

    The app lifespan calls `init` once at startup and `shutdown` once on exit.
    """

    name: str

    @abstractmethod
    async def init(self) -> None:
        """Prepare the agent for use."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Release anything `init` acquired."""


__all__ = ["Agent"]
