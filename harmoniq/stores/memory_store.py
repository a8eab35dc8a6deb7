"""In-memory profile store for local runs without Supabase or a database."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from harmoniq.schemas.profile import UserProfileRecord
from harmoniq.stores.base import PROFILE_CONFLICT_KEY, writable_values


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryProfileStore:
    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._rows_by_user: dict[str, dict[str, Any]] = {}

    async def upsert(
        self,
        record: Mapping[str, Any],
        *,
        on_conflict: str = PROFILE_CONFLICT_KEY,
    ) -> UserProfileRecord:
        values = writable_values(record, on_conflict=on_conflict)
        async with self._lock:
            now = self._clock()
            row = self._rows_by_user.get(values[PROFILE_CONFLICT_KEY])
            if row is None:
                row = {"id": str(uuid4()), "sports_activities": [], "created_at": now}
                self._rows_by_user[values[PROFILE_CONFLICT_KEY]] = row
            row.update(values)
            row["updated_at"] = now
            return UserProfileRecord.model_validate(dict(row))

    async def select_one(self, *, user_id: str) -> UserProfileRecord | None:
        async with self._lock:
            row = self._rows_by_user.get(user_id)
            return UserProfileRecord.model_validate(dict(row)) if row else None

    def __len__(self) -> int:
        return len(self._rows_by_user)
