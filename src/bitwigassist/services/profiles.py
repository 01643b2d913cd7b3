"""Profile Store - Keeps the user profile in a local JSON file.

Writes are atomic (temp file + rename) so a crash never leaves a half-written
profile behind. A missing or unreadable file yields the default profile; the
next save replaces it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from bitwigassist.models.profiles import (
    MAX_RECENT_ACTIONS,
    ProfileUpdate,
    UserPreferences,
    UserProfile,
)

logger = logging.getLogger(__name__)


class ProfileStore:
    """Load, modify and save the user profile."""

    def __init__(self, path: Path, max_recent_actions: int = MAX_RECENT_ACTIONS) -> None:
        self._path = Path(path)
        self._max_recent_actions = max_recent_actions

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> UserProfile:
        """Return the stored profile, or defaults if there is none."""
        if not self._path.exists():
            return UserProfile()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("profile document is not an object")
            return UserProfile.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Unreadable profile at %s, using defaults: %s", self._path, e)
            return UserProfile()

    def save(self, profile: UserProfile) -> UserProfile:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = profile.model_dump_json(indent=2)
        # Atomic write
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return profile

    def update(self, update: ProfileUpdate) -> UserProfile:
        """Overwrite the fields set in `update`, keep the rest."""
        current = self.get()
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if "preferences" in changes:
            changes["preferences"] = UserPreferences.model_validate(changes["preferences"])
        return self.save(current.model_copy(update=changes))

    def add_favorite_vst(self, name: str) -> UserProfile:
        profile = self.get()
        if name in profile.favorite_vsts:
            return profile
        profile.favorite_vsts.append(name)
        return self.save(profile)

    def add_recent_action(self, action: str) -> UserProfile:
        """Prepend an action, keeping only the newest entries."""
        profile = self.get()
        profile.recent_actions.insert(0, action)
        del profile.recent_actions[self._max_recent_actions :]
        return self.save(profile)

    def set_vst_folders(self, folders: list[str]) -> UserProfile:
        profile = self.get()
        profile.vst_folders = list(folders)
        return self.save(profile)


__all__ = ["ProfileStore", "UserProfile"]
