"""Library owner profile service."""

import logging
from dataclasses import replace
from typing import Any, Mapping

from app.domain.entities import Profile
from app.domain.repositories import IProfileRepository
from app.domain.services import IProfileService
from app.domain.transitions import require_text

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"name", "library_name", "bio", "avatar"})


class ProfileService(IProfileService):
    """Single profile record, created from configured defaults on first read."""

    def __init__(self, profile_repository: IProfileRepository, defaults: Profile):
        self.profile_repository = profile_repository
        self.defaults = defaults

    async def get_profile(self) -> Profile:
        profile = await self.profile_repository.get()
        if profile is None:
            logger.info("Creating default profile")
            profile = await self.profile_repository.save(self.defaults)
        return profile

    async def update_profile(self, changes: Mapping[str, Any]) -> Profile:
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        updates = {key: value for key, value in changes.items() if value is not None}
        for key in ("name", "library_name"):
            if key in updates:
                updates[key] = require_text(updates[key], key.replace("_", " "))
        for key in ("bio", "avatar"):
            if key in updates:
                updates[key] = str(updates[key]).strip()

        profile = replace(await self.get_profile(), **updates)
        saved = await self.profile_repository.save(profile)
        logger.info("Profile updated (%s)", ", ".join(sorted(updates)) or "no changes")
        return saved
