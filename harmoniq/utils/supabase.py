from __future__ import annotations

import httpx

from harmoniq.config import Settings


def require_supabase(settings: Settings) -> None:
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be configured.")


def supabase_headers(settings: Settings, access_token: str | None = None) -> dict[str, str]:
    # Without a user token, PostgREST and GoTrue treat the anon key as the bearer.
    return {
        "apikey": settings.supabase_anon_key,
        "Authorization": f"Bearer {access_token or settings.supabase_anon_key}",
        "Accept": "application/json",
    }


def error_message(response: httpx.Response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"{fallback} (HTTP {response.status_code})"

    if isinstance(payload, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"{fallback} (HTTP {response.status_code})"
