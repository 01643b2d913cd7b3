"""Bitwig Studio detection.

Probes answer one question: is Bitwig Studio running where we can control it?
Platform support is reported separately through `capability()` so callers can
tell "not running" apart from "can't be controlled on this OS".
"""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
import psutil

from bitwigassist.config import ControllerSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformCapability:
    """Whether Bitwig Studio can be controlled from this host."""

    supported: bool
    platform: str
    reason: str | None = None


class TargetProbe(ABC):
    """Checks whether the target application is running."""

    @abstractmethod
    def capability(self) -> PlatformCapability:
        """Report whether this host can control the target at all."""

    @abstractmethod
    async def is_target_running(self) -> bool:
        """Return True if the target application is running."""


class ProcessProbe(TargetProbe):
    """Looks for the Bitwig Studio process in the local process table.

    Only one platform is supported; elsewhere the probe reports False rather
    than raising.
    """

    def __init__(
        self,
        process_name: str = "Bitwig Studio.exe",
        supported_platform: str = "win32",
        platform: str | None = None,
    ) -> None:
        self._process_name = process_name
        self._supported_platform = supported_platform
        self._platform = platform or sys.platform

    @property
    def process_name(self) -> str:
        return self._process_name

    def capability(self) -> PlatformCapability:
        if self._platform == self._supported_platform:
            return PlatformCapability(supported=True, platform=self._platform)
        return PlatformCapability(
            supported=False,
            platform=self._platform,
            reason=f"Only {self._supported_platform} is supported",
        )

    async def is_target_running(self) -> bool:
        if not self.capability().supported:
            logger.debug("Process check skipped on unsupported platform %s", self._platform)
            return False
        pids = await asyncio.to_thread(self.find_processes)
        logger.debug(
            "Process %s is %s", self._process_name, "running" if pids else "not running"
        )
        return bool(pids)

    def find_processes(self) -> list[int]:
        """Return the PIDs of running processes named like the target."""
        target = self._process_name.lower()
        pids: list[int] = []
        for proc in psutil.process_iter(["pid", "name"]):
            name = proc.info.get("name") or ""
            if name.lower() == target:
                pids.append(proc.info["pid"])
        return pids


class HttpProcessProbe(TargetProbe):
    """Asks a remote BitwigAssist instance running next to Bitwig Studio.

    The remote side answers `GET /api/v1/controller/process` with its own
    local process check.
    """

    def __init__(self, base_url: str, timeout: float = 5.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def capability(self) -> PlatformCapability:
        return PlatformCapability(supported=True, platform="remote")

    async def is_target_running(self) -> bool:
        url = f"{self._base_url}/api/v1/controller/process"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=self._timeout)
                response.raise_for_status()
                return bool(response.json().get("is_running", False))
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Remote process check failed at %s: %s", url, e)
            return False


class StaticProbe(TargetProbe):
    """Probe with a fixed answer, for simulation and tests."""

    def __init__(self, running: bool = True, platform: str = "simulated") -> None:
        self.running = running
        self._platform = platform

    def capability(self) -> PlatformCapability:
        return PlatformCapability(supported=True, platform=self._platform)

    async def is_target_running(self) -> bool:
        return self.running


def create_probe(settings: ControllerSettings) -> TargetProbe:
    """Build the probe selected in settings."""
    if settings.probe == "http":
        return HttpProcessProbe(settings.remote_url, timeout=settings.probe_timeout_sec)
    if settings.probe == "static":
        return StaticProbe(running=settings.simulate_running)
    return ProcessProbe(
        process_name=settings.process_name,
        supported_platform=settings.supported_platform,
    )


__all__ = [
    "HttpProcessProbe",
    "PlatformCapability",
    "ProcessProbe",
    "StaticProbe",
    "TargetProbe",
    "create_probe",
]
