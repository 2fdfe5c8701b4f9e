"""Library owner profile API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.schemas import ProfileResponse, ProfileUpdate
from app.core.dependencies import get_profile_service
from app.domain.services import IProfileService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> ProfileResponse:
    """The library owner's profile, created from configured defaults on first read."""
    return ProfileResponse.model_validate(await profile_service.get_profile())


@router.put("", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> ProfileResponse:
    try:
        profile = await profile_service.update_profile(payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ProfileResponse.model_validate(profile)
