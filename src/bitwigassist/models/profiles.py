"""User profile models for BitwigAssist.

The profile remembers what a producer likes to work with (favorite plugins,
devices and templates), what they did recently, and where their VST plugins
live. It is a single local document, not a multi-user store.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

MAX_RECENT_ACTIONS = 50

DEFAULT_VST_FOLDERS: tuple[str, ...] = (
    "C:/Program Files/VSTPlugins",
    "C:/Program Files/Common Files/VST2",
    "C:/Program Files/Common Files/VST3",
    "C:/VSTPlugins",
)


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"


class UserPreferences(BaseModel):
    """UI preferences."""

    theme: Theme = Theme.DARK
    show_suggestions: bool = True


class UserProfile(BaseModel):
    """Everything remembered about the user."""

    favorite_vsts: list[str] = Field(default_factory=list)
    favorite_devices: list[str] = Field(default_factory=list)
    favorite_templates: list[str] = Field(default_factory=list)
    recent_actions: list[str] = Field(default_factory=list)  # Newest first
    vst_folders: list[str] = Field(default_factory=lambda: list(DEFAULT_VST_FOLDERS))
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class ProfileUpdate(BaseModel):
    """Partial profile update. Only fields that are set are applied."""

    favorite_vsts: list[str] | None = None
    favorite_devices: list[str] | None = None
    favorite_templates: list[str] | None = None
    recent_actions: list[str] | None = None
    vst_folders: list[str] | None = None
    preferences: UserPreferences | None = None


__all__ = [
    "DEFAULT_VST_FOLDERS",
    "MAX_RECENT_ACTIONS",
    "ProfileUpdate",
    "Theme",
    "UserPreferences",
    "UserProfile",
]
