"""Session gate for the login and entry pages.

Decides whether the caller already holds a session and whether that identity
has a profile. An existing session is reported, never followed silently: the
caller chooses between :meth:`SessionGate.continue_session` and
:meth:`SessionGate.end_session`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from harmoniq.auth.provider import AuthProvider
from harmoniq.exceptions import NotAuthenticatedError, ProfileLookupError, StoreError
from harmoniq.navigation import ONBOARDING_PATH, PROFILE_PATH, Navigator
from harmoniq.schemas.auth import Identity
from harmoniq.schemas.profile import UserProfileRecord, placeholder_row
from harmoniq.services.profile_cache import ProfileCache
from harmoniq.stores.base import PROFILE_CONFLICT_KEY, ProfileStore
from harmoniq.utils.logging import user_fingerprint


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoSession:
    status = "no_session"


@dataclass(frozen=True)
class SessionWithProfile:
    identity: Identity
    profile: UserProfileRecord
    status = "session_with_profile"


@dataclass(frozen=True)
class SessionWithoutProfile:
    identity: Identity
    status = "session_without_profile"


GateOutcome = NoSession | SessionWithProfile | SessionWithoutProfile


class SessionGate:
    def __init__(
        self,
        auth: AuthProvider,
        store: ProfileStore,
        *,
        navigator: Navigator | None = None,
        cache: ProfileCache | None = None,
        signup_creates_profile: bool = True,
    ) -> None:
        self._auth = auth
        self._store = store
        self._navigator = navigator
        self._cache = cache
        self._signup_creates_profile = signup_creates_profile

    async def resolve(self) -> GateOutcome:
        identity = await self._auth.get_session()
        if identity is None:
            return NoSession()

        profile = await self.load_profile(identity)
        if profile is None:
            return SessionWithoutProfile(identity=identity)
        return SessionWithProfile(identity=identity, profile=profile)

    async def load_profile(self, identity: Identity) -> UserProfileRecord | None:
        """Fetch the identity's profile. ``None`` only when no row exists."""

        async def load() -> UserProfileRecord | None:
            return await self._store.select_one(user_id=identity.user_id)

        try:
            if self._cache is None:
                return await load()
            return await self._cache.get_or_load(identity.user_id, load)
        except NotAuthenticatedError:
            raise
        except StoreError as exc:
            logger.error("Profile lookup failed for %s: %s", user_fingerprint(identity.user_id), exc.message)
            raise ProfileLookupError(f"Could not load your profile: {exc.message}") from exc

    def continue_session(self, outcome: SessionWithProfile | SessionWithoutProfile) -> str:
        path = PROFILE_PATH if isinstance(outcome, SessionWithProfile) else ONBOARDING_PATH
        self._navigate(path)
        return path

    async def end_session(self) -> NoSession:
        identity = await self._auth.get_session()
        await self._auth.sign_out()
        if identity is not None and self._cache is not None:
            self._cache.invalidate(identity.user_id)
        return NoSession()

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await self._auth.sign_in_with_password(email, password)
        self._navigate(PROFILE_PATH)
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        identity = await self._auth.sign_up(email, password)
        if self._signup_creates_profile:
            await self._create_placeholder(identity)
        self._navigate(ONBOARDING_PATH)
        return identity

    async def _create_placeholder(self, identity: Identity) -> None:
        if identity.access_token is None:
            # Confirmation pending: nothing can be written as this user yet.
            # The first profile submission creates the row through the same upsert.
            logger.info("Placeholder profile deferred for %s", user_fingerprint(identity.user_id))
            return

        try:
            record = await self._store.upsert(placeholder_row(identity.user_id), on_conflict=PROFILE_CONFLICT_KEY)
        except StoreError as exc:
            # The account already exists; the first profile submission creates the row instead.
            logger.warning(
                "Placeholder profile deferred for %s: %s",
                user_fingerprint(identity.user_id),
                exc.message,
            )
            return
        if self._cache is not None:
            self._cache.prime(record)
        logger.info("Placeholder profile created for %s", user_fingerprint(identity.user_id))

    def _navigate(self, path: str) -> None:
        if self._navigator is not None:
            self._navigator.navigate(path)
