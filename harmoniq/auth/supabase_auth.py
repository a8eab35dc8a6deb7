from __future__ import annotations

import logging
from typing import Any

import httpx

from harmoniq.config import Settings
from harmoniq.exceptions import AuthError
from harmoniq.schemas.auth import Identity
from harmoniq.utils.logging import user_fingerprint
from harmoniq.utils.supabase import error_message, require_supabase, supabase_headers


logger = logging.getLogger(__name__)


class SupabaseAuthClient:
    """Password auth against Supabase GoTrue.

    The client holds the current session's access token the way the browser
    SDK does, so a profile store built on top of it writes as the signed-in
    user.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        *,
        access_token: str | None = None,
    ) -> None:
        require_supabase(settings)
        self._settings = settings
        self._client = client
        self._base_url = f"{settings.supabase_url}/auth/v1"
        self._timeout = settings.supabase_timeout_seconds
        self._access_token = access_token

    @property
    def access_token(self) -> str | None:
        return self._access_token

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = supabase_headers(self._settings, kwargs.pop("access_token", None))
        try:
            return await self._client.request(
                method,
                f"{self._base_url}{path}",
                headers=headers,
                timeout=self._timeout,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            logger.warning("Auth request %s %s failed: %s", method, path, type(exc).__name__)
            raise AuthError("The authentication service is unreachable.", status_code=503) from exc

    async def get_session(self) -> Identity | None:
        if not self._access_token:
            return None

        response = await self._request("GET", "/user", access_token=self._access_token)
        if response.status_code in (401, 403):
            self._access_token = None
            return None
        if response.is_error:
            raise AuthError(error_message(response, "Could not read the session"), status_code=502)
        return _identity(response.json(), self._access_token)

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.is_error:
            raise AuthError(error_message(response, "Sign in failed"))

        payload = response.json()
        self._access_token = payload.get("access_token")
        identity = _identity(payload.get("user") or {}, self._access_token)
        logger.info("User %s signed in", user_fingerprint(identity.user_id))
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        response = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password},
        )
        if response.is_error:
            raise AuthError(error_message(response, "Sign up failed"), status_code=400)

        payload = response.json()
        # With email confirmation enabled GoTrue answers with the bare user and no session.
        if "access_token" in payload:
            self._access_token = payload["access_token"]
            user = payload.get("user") or {}
        else:
            self._access_token = None
            user = payload.get("user") or payload
        identity = _identity(user, self._access_token)
        logger.info(
            "User %s signed up (session=%s)",
            user_fingerprint(identity.user_id),
            identity.access_token is not None,
        )
        return identity

    async def sign_out(self) -> None:
        if not self._access_token:
            return

        response = await self._request("POST", "/logout", access_token=self._access_token)
        self._access_token = None
        # An expired or unknown token is already signed out.
        if response.is_error and response.status_code not in (401, 403, 404):
            raise AuthError(error_message(response, "Sign out failed"), status_code=502)


def _identity(user: dict[str, Any], access_token: str | None) -> Identity:
    user_id = user.get("id")
    if not user_id:
        raise AuthError("The authentication service returned no user.", status_code=502)
    return Identity(user_id=str(user_id), email=user.get("email"), access_token=access_token)
