from __future__ import annotations

from collections.abc import Awaitable, Callable
from threading import Lock
import time

from harmoniq.schemas.profile import UserProfileRecord


ProfileLoader = Callable[[], Awaitable[UserProfileRecord | None]]


class ProfileCache:
    """
    Per-process cache of "the current identity's profile", keyed by user id.
    Only existing profiles are cached: a missing one is re-read every time so a
    profile created by another worker is seen at once. Records may still be up
    to ``ttl_seconds`` stale across workers; for horizontal scaling, replace
    this with Redis.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, UserProfileRecord]] = {}
        self._lock = Lock()

    def lookup(self, user_id: str) -> tuple[bool, UserProfileRecord | None]:
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return False, None
            stored_at, record = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[user_id]
                return False, None
            return True, record

    async def get_or_load(self, user_id: str, loader: ProfileLoader) -> UserProfileRecord | None:
        hit, record = self.lookup(user_id)
        if hit:
            return record
        record = await loader()
        if record is not None:
            self._store(user_id, record)
        return record

    def prime(self, record: UserProfileRecord) -> None:
        self._store(record.user_id, record)

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def _store(self, user_id: str, record: UserProfileRecord) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[user_id] = (self._clock(), record)
