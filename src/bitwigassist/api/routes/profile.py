"""Profile API routes for the user preference store."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from bitwigassist.models.profiles import ProfileUpdate, UserProfile
from bitwigassist.models.schemas import (
    FavoriteVSTRequest,
    RecentActionRequest,
    VSTFoldersRequest,
)
from bitwigassist.services.profiles import ProfileStore

router = APIRouter(prefix="/profile")
logger = structlog.get_logger()


def _get_store() -> ProfileStore:
    from bitwigassist.main import app_state

    if app_state.profiles is None:
        raise HTTPException(status_code=503, detail="Profile store not initialized")
    return app_state.profiles


@router.get("", response_model=UserProfile)
async def get_profile() -> UserProfile:
    return _get_store().get()


@router.put("", response_model=UserProfile)
async def update_profile(update: ProfileUpdate) -> UserProfile:
    """Replace the given fields; omitted fields are kept."""
    profile = _get_store().update(update)
    logger.info("Profile updated", fields=sorted(update.model_fields_set))
    return profile


@router.post("/favorites/vst", response_model=UserProfile)
async def add_favorite_vst(request: FavoriteVSTRequest) -> UserProfile:
    return _get_store().add_favorite_vst(request.name)


@router.post("/recent-actions", response_model=UserProfile)
async def add_recent_action(request: RecentActionRequest) -> UserProfile:
    return _get_store().add_recent_action(request.action)


@router.put("/vst-folders", response_model=UserProfile)
async def set_vst_folders(request: VSTFoldersRequest) -> UserProfile:
    return _get_store().set_vst_folders(request.folders)
