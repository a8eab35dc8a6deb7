from __future__ import annotations

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from harmoniq.auth.provider import AuthProvider
from harmoniq.auth.supabase_auth import SupabaseAuthClient
from harmoniq.config import Settings, get_settings
from harmoniq.navigation import RecordingNavigator
from harmoniq.schemas.auth import Identity
from harmoniq.services.profile_cache import ProfileCache
from harmoniq.services.session_gate import SessionGate
from harmoniq.stores.base import ProfileStore
from harmoniq.stores.supabase_store import SupabaseProfileStore


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_profile_cache(request: Request) -> ProfileCache:
    return request.app.state.profile_cache


def get_navigator() -> RecordingNavigator:
    return RecordingNavigator()


def get_auth_provider(
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> AuthProvider:
    return SupabaseAuthClient(settings, client, access_token=token)


def get_profile_store(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    auth: AuthProvider = Depends(get_auth_provider),
) -> ProfileStore:
    # SQL and memory stores are process-wide; Supabase writes as the request's user.
    shared = getattr(request.app.state, "profile_store", None)
    if shared is not None:
        return shared
    if not isinstance(auth, SupabaseAuthClient):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="The Supabase profile store needs the Supabase auth client.",
        )
    return SupabaseProfileStore(settings, client, session=auth)


def get_session_gate(
    settings: Settings = Depends(get_settings),
    auth: AuthProvider = Depends(get_auth_provider),
    store: ProfileStore = Depends(get_profile_store),
    navigator: RecordingNavigator = Depends(get_navigator),
    cache: ProfileCache = Depends(get_profile_cache),
) -> SessionGate:
    return SessionGate(
        auth,
        store,
        navigator=navigator,
        cache=cache,
        signup_creates_profile=settings.signup_creates_profile,
    )


async def get_current_identity(auth: AuthProvider = Depends(get_auth_provider)) -> Identity:
    identity = await auth.get_session()
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
