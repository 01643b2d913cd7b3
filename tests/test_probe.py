"""Tests for Bitwig Studio process probes."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from bitwigassist.config import ControllerSettings
from bitwigassist.services.controller import (
    HttpProcessProbe,
    ProcessProbe,
    StaticProbe,
    create_probe,
)


def _proc(pid: int, name: str | None) -> SimpleNamespace:
    return SimpleNamespace(info={"pid": pid, "name": name})


# =============================================================================
# Process Probe Tests
# =============================================================================


class TestProcessProbe:
    """Tests for the local process table probe."""

    def test_capability_on_supported_platform(self) -> None:
        probe = ProcessProbe(platform="win32")
        capability = probe.capability()
        assert capability.supported is True

    def test_capability_on_unsupported_platform(self) -> None:
        capability = ProcessProbe(platform="linux").capability()
        assert capability.supported is False
        assert capability.reason == "Only win32 is supported"

    @pytest.mark.asyncio
    async def test_unsupported_platform_reports_not_running(self) -> None:
        probe = ProcessProbe(platform="linux")
        with patch("bitwigassist.services.controller.probe.psutil.process_iter") as process_iter:
            assert await probe.is_target_running() is False
            process_iter.assert_not_called()

    @pytest.mark.asyncio
    async def test_finds_process_case_insensitively(self) -> None:
        probe = ProcessProbe(platform="win32")
        processes = [_proc(4, "System"), _proc(812, "BITWIG STUDIO.EXE"), _proc(9, None)]
        with patch(
            "bitwigassist.services.controller.probe.psutil.process_iter",
            return_value=processes,
        ):
            assert probe.find_processes() == [812]
            assert await probe.is_target_running() is True

    @pytest.mark.asyncio
    async def test_process_missing(self) -> None:
        probe = ProcessProbe(platform="win32")
        with patch(
            "bitwigassist.services.controller.probe.psutil.process_iter",
            return_value=[_proc(4, "System")],
        ):
            assert await probe.is_target_running() is False


# =============================================================================
# Remote Probe Tests
# =============================================================================


def _mock_client(response: MagicMock | None = None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=response, side_effect=error)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


class TestHttpProcessProbe:
    """Tests for asking a remote instance about Bitwig Studio."""

    @pytest.mark.asyncio
    async def test_remote_running(self) -> None:
        response = MagicMock()
        response.json.return_value = {"is_running": True, "platform": "win32"}
        probe = HttpProcessProbe("http://studio-pc:8000/")
        with patch(
            "bitwigassist.services.controller.probe.httpx.AsyncClient",
            return_value=_mock_client(response),
        ) as client_cls:
            assert await probe.is_target_running() is True
        get = client_cls.return_value.__aenter__.return_value.get
        assert get.await_args.args[0] == "http://studio-pc:8000/api/v1/controller/process"

    @pytest.mark.asyncio
    async def test_remote_unreachable(self) -> None:
        probe = HttpProcessProbe("http://studio-pc:8000")
        with patch(
            "bitwigassist.services.controller.probe.httpx.AsyncClient",
            return_value=_mock_client(error=httpx.ConnectError("refused")),
        ):
            assert await probe.is_target_running() is False

    def test_remote_capability(self) -> None:
        assert HttpProcessProbe("http://x").capability().platform == "remote"


# =============================================================================
# Factory Tests
# =============================================================================


class TestCreateProbe:
    """Tests for probe selection from settings."""

    def test_static(self) -> None:
        probe = create_probe(ControllerSettings(probe="static", simulate_running=False))
        assert isinstance(probe, StaticProbe)
        assert probe.running is False

    def test_http(self) -> None:
        probe = create_probe(ControllerSettings(probe="http", remote_url="http://studio:8000"))
        assert isinstance(probe, HttpProcessProbe)

    def test_process(self) -> None:
        probe = create_probe(ControllerSettings(probe="process", process_name="Bitwig.exe"))
        assert isinstance(probe, ProcessProbe)
        assert probe.process_name == "Bitwig.exe"
