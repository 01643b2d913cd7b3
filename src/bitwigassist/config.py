"""BitwigAssist Configuration Management.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ControllerSettings(BaseSettings):
    """Bitwig Studio controller settings."""

    model_config = SettingsConfigDict(env_prefix="CONTROLLER_")

    # Input injection: "simulated" only logs, "pyautogui" drives the real desktop
    backend: Literal["simulated", "pyautogui"] = "simulated"

    # How Bitwig Studio is detected
    probe: Literal["process", "http", "static"] = "process"
    process_name: str = "Bitwig Studio.exe"
    window_title: str = "Bitwig Studio"
    supported_platform: str = "win32"
    remote_url: str = "http://127.0.0.1:8000"
    simulate_running: bool = True  # Result of the static probe

    # Pacing (milliseconds)
    inter_action_delay_ms: int = Field(default=500, ge=0)
    composite_delay_ms: int = Field(default=200, ge=0)
    focus_delay_ms: int = Field(default=100, ge=0)
    parameter_delay_ms: int = Field(default=100, ge=0)
    device_browser_delay_ms: int = Field(default=500, ge=0)
    track_delay_ms: int = Field(default=100, ge=0)
    simulated_input_delay_ms: int = Field(default=50, ge=0)

    # Timeouts (seconds)
    probe_timeout_sec: float = Field(default=5.0, gt=0)
    action_timeout_sec: float = Field(default=10.0, gt=0)

    # Background connection refresh
    poll_interval_sec: float = Field(default=5.0, gt=0)


class ProfileSettings(BaseSettings):
    """User preference store settings."""

    model_config = SettingsConfigDict(env_prefix="PROFILE_")

    filename: str = "user_profile.json"
    max_recent_actions: int = Field(default=50, ge=1)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BITWIGASSIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Data directories
    data_dir: Path = Path.home() / "data" / "bitwigassist"

    # Conversation transcript cap (messages kept in memory)
    max_messages: int = Field(default=200, ge=2)

    # Nested settings
    controller: ControllerSettings = Field(default_factory=ControllerSettings)
    profile: ProfileSettings = Field(default_factory=ProfileSettings)

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand ~ in paths."""
        return Path(v).expanduser()

    @property
    def profile_path(self) -> Path:
        return self.data_dir / self.profile.filename

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
