"""Tests for BitwigAssist settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bitwigassist.config import ControllerSettings, ProfileSettings, Settings, get_settings
from bitwigassist.services.controller import (
    ConnectionState,
    SimulatedBackend,
    create_controller,
)


class TestControllerSettings:
    """Tests for controller settings and environment overrides."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "CONTROLLER_PROBE",
            "CONTROLLER_INTER_ACTION_DELAY_MS",
            "CONTROLLER_COMPOSITE_DELAY_MS",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = ControllerSettings()
        assert settings.backend == "simulated"
        assert settings.probe == "process"
        assert settings.process_name == "Bitwig Studio.exe"
        assert settings.supported_platform == "win32"
        assert settings.inter_action_delay_ms == 500
        assert settings.composite_delay_ms == 200

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTROLLER_BACKEND", "pyautogui")
        monkeypatch.setenv("CONTROLLER_ACTION_TIMEOUT_SEC", "2.5")
        settings = ControllerSettings()
        assert settings.backend == "pyautogui"
        assert settings.action_timeout_sec == 2.5

    def test_rejects_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            ControllerSettings(backend="xdotool")

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValidationError):
            ControllerSettings(inter_action_delay_ms=-1)


class TestSettings:
    """Tests for the root settings object."""

    def test_data_dir_expands_home(self) -> None:
        settings = Settings(data_dir="~/bitwig-data")
        assert settings.data_dir == Path.home() / "bitwig-data"

    def test_profile_path(self, tmp_path: Path) -> None:
        settings = Settings(data_dir=tmp_path, profile=ProfileSettings(filename="me.json"))
        assert settings.profile_path == tmp_path / "me.json"

    def test_ensure_directories(self, tmp_path: Path) -> None:
        settings = Settings(data_dir=tmp_path / "nested" / "dir")
        settings.ensure_directories()
        assert settings.data_dir.is_dir()

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestCreateController:
    """Tests for building a controller from settings."""

    @pytest.mark.asyncio
    async def test_simulated_controller(self) -> None:
        settings = ControllerSettings(
            probe="static",
            simulate_running=True,
            inter_action_delay_ms=0,
            simulated_input_delay_ms=0,
        )
        controller = create_controller(settings)
        assert isinstance(controller.executor.backend, SimulatedBackend)
        assert controller.config.inter_action_delay_ms == 0
        assert await controller.wait_for_initialization() is True
        assert controller.connection_state == ConnectionState.CONNECTED

    def test_probe_selected(self) -> None:
        controller = create_controller(ControllerSettings(probe="static"))
        assert controller.capability().platform == "simulated"
