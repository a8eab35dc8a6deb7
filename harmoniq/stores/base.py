"""Profile store interface."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from harmoniq.schemas.profile import UserProfileRecord


PROFILE_CONFLICT_KEY = "user_id"

# Columns a caller may write; everything else is assigned by the store.
WRITABLE_COLUMNS = (
    "user_id",
    "name",
    "age",
    "occupation",
    "living_arrangement",
    "family_status",
    "wake_up_time",
    "sleep_time",
    "work_hours",
    "diet_preference",
    "hobbies",
    "sports_activities",
    "health_goal",
    "career_goal",
    "personal_goal",
)


class ProfileStore(Protocol):
    async def upsert(
        self,
        record: Mapping[str, Any],
        *,
        on_conflict: str = PROFILE_CONFLICT_KEY,
    ) -> UserProfileRecord:
        ...

    async def select_one(self, *, user_id: str) -> UserProfileRecord | None:
        ...


def writable_values(record: Mapping[str, Any], *, on_conflict: str) -> dict[str, Any]:
    if on_conflict != PROFILE_CONFLICT_KEY:
        raise ValueError(f"Profiles can only be upserted on {PROFILE_CONFLICT_KEY!r}, got {on_conflict!r}")
    if not record.get(PROFILE_CONFLICT_KEY):
        raise ValueError("A profile row needs a user_id")
    return {key: value for key, value in record.items() if key in WRITABLE_COLUMNS}
