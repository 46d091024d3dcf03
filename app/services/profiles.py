"""User profile storage."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from app.clients import RecordStore
from app.schemas import ProfileRegistrationRequest, UserProfile
from app.services.connections import user_partition_key

logger = logging.getLogger(__name__)

PROFILE_SORT_KEY = "profile"


class ProfileService:
    """Register and look up profiles by email."""

    def __init__(self, *, store: RecordStore) -> None:
        self._store = store

    def register(self, request: ProfileRegistrationRequest) -> UserProfile:
        partition_key = user_partition_key(request.email)
        now = datetime.now(timezone.utc)
        existing = self._store.get_item(partition_key=partition_key, sort_key=PROFILE_SORT_KEY)

        profile = UserProfile(
            email=request.email,
            name_kanji=request.name_kanji,
            name_alphabet=request.name_alphabet,
            default_timing=request.default_timing or "",
            created_at=(
                datetime.fromisoformat(existing["created_at"]) if existing else now
            ),
            updated_at=now,
        )
        self._store.put_item(
            {
                "pk": partition_key,
                "sk": PROFILE_SORT_KEY,
                **profile.model_dump(mode="json"),
            }
        )
        logger.info("Registered profile for %s", request.email)
        return profile

    def get(self, email: str) -> Optional[UserProfile]:
        record = self._store.get_item(
            partition_key=user_partition_key(email), sort_key=PROFILE_SORT_KEY
        )
        if not record:
            return None
        return UserProfile.model_validate(record)


__all__ = ["PROFILE_SORT_KEY", "ProfileService"]
