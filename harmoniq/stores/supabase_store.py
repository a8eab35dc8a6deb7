from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from harmoniq.auth.supabase_auth import SupabaseAuthClient
from harmoniq.config import Settings
from harmoniq.exceptions import NotAuthenticatedError, StoreError
from harmoniq.schemas.profile import UserProfileRecord
from harmoniq.stores.base import PROFILE_CONFLICT_KEY, writable_values
from harmoniq.utils.supabase import error_message, require_supabase, supabase_headers


logger = logging.getLogger(__name__)


class SupabaseProfileStore:
    """Profiles in a Supabase table, reached through PostgREST."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        *,
        session: SupabaseAuthClient | None = None,
    ) -> None:
        require_supabase(settings)
        self._settings = settings
        self._client = client
        self._session = session
        self._table_url = f"{settings.supabase_url}/rest/v1/{settings.profile_table}"
        self._timeout = settings.supabase_timeout_seconds

    async def upsert(
        self,
        record: Mapping[str, Any],
        *,
        on_conflict: str = PROFILE_CONFLICT_KEY,
    ) -> UserProfileRecord:
        values = writable_values(record, on_conflict=on_conflict)
        response = await self._request(
            "POST",
            params={"on_conflict": on_conflict},
            json=values,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        rows = self._rows(response)
        if not rows:
            raise StoreError("No data returned from the profile store.")
        return UserProfileRecord.model_validate(rows[0])

    async def select_one(self, *, user_id: str) -> UserProfileRecord | None:
        response = await self._request(
            "GET",
            params={"user_id": f"eq.{user_id}", "select": "*", "limit": "1"},
        )
        rows = self._rows(response)
        if not rows:
            return None
        return UserProfileRecord.model_validate(rows[0])

    async def _request(self, method: str, *, headers: dict[str, str] | None = None, **kwargs: Any) -> httpx.Response:
        access_token = self._session.access_token if self._session else None
        request_headers = supabase_headers(self._settings, access_token)
        if headers:
            request_headers.update(headers)
        try:
            return await self._client.request(
                method,
                self._table_url,
                headers=request_headers,
                timeout=self._timeout,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            logger.warning("Profile store %s failed: %s", method, type(exc).__name__)
            raise StoreError("The profile store is unreachable. Please try again.") from exc

    @staticmethod
    def _rows(response: httpx.Response) -> list[dict[str, Any]]:
        if response.status_code == 401:
            raise NotAuthenticatedError()
        if response.is_error:
            raise StoreError(error_message(response, "Profile store request failed"))
        rows = response.json()
        if not isinstance(rows, list):
            raise StoreError("Unexpected response from the profile store.")
        return rows
