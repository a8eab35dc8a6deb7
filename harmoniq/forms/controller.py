"""Profile form controller.

Owns one draft profile, validates it, and synchronizes it with the profile
store at most once at a time::

    EDITING --submit--> VALIDATING --errors--> EDITING
                                   --ok-----> SUBMITTING --record--> SUCCESS
                                                         --failure-> EDITING

Remote failures never escape :meth:`ProfileFormController.submit`; they
become ``submission_error`` and the draft is left exactly as the user typed it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from harmoniq.exceptions import NotAuthenticatedError, StoreError, ValidationError
from harmoniq.forms.validation import FieldErrors, require_valid, toggle_sport_activity, validate_field
from harmoniq.navigation import DASHBOARD_PATH, LOGIN_PATH, Navigator
from harmoniq.schemas.auth import Identity
from harmoniq.schemas.profile import ProfileDraft, ProfileField, UserProfileRecord
from harmoniq.services.profile_cache import ProfileCache
from harmoniq.stores.base import PROFILE_CONFLICT_KEY, ProfileStore
from harmoniq.utils.logging import user_fingerprint


logger = logging.getLogger(__name__)

GENERIC_SUBMISSION_ERROR = "Something went wrong while saving your profile. Please try again."


class FormState(str, Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"


Listener = Callable[["ProfileFormController"], None]


class ProfileFormController:
    def __init__(
        self,
        *,
        identity: Identity | None,
        store: ProfileStore,
        baseline: UserProfileRecord | None = None,
        cache: ProfileCache | None = None,
        navigator: Navigator | None = None,
        success_path: str = DASHBOARD_PATH,
    ) -> None:
        self._identity = identity
        self._store = store
        self._cache = cache
        self._navigator = navigator
        self._success_path = success_path

        self._baseline = baseline
        self._draft = ProfileDraft.from_record(baseline)
        self._draft_version = 0
        self._state = FormState.EDITING
        self._field_errors: FieldErrors = {}
        self._submission_error: str | None = None
        self._requires_reauth = False
        self._closed = False
        self._listeners: list[Listener] = []

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def draft(self) -> ProfileDraft:
        return self._draft

    @property
    def baseline(self) -> UserProfileRecord | None:
        return self._baseline

    @property
    def field_errors(self) -> FieldErrors:
        return dict(self._field_errors)

    @property
    def submission_error(self) -> str | None:
        return self._submission_error

    @property
    def requires_reauth(self) -> bool:
        return self._requires_reauth

    @property
    def is_submitting(self) -> bool:
        return self._state is FormState.SUBMITTING

    @property
    def can_submit(self) -> bool:
        return not self._closed and self._state is not FormState.SUBMITTING

    @property
    def is_dirty(self) -> bool:
        return self._draft != ProfileDraft.from_record(self._baseline)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def edit(self, field: ProfileField, value: Any) -> None:
        self._draft = self._draft.with_value(field, value)
        self._draft_version += 1

        messages = validate_field(field, value)
        if messages:
            self._field_errors[field] = messages
        else:
            self._field_errors.pop(field, None)

        if self._state is FormState.SUCCESS:
            self._state = FormState.EDITING
        self._notify()

    def toggle_sport_activity(self, activity: str, checked: bool | None = None) -> None:
        current = self._draft.get(ProfileField.SPORTS_ACTIVITIES)
        self.edit(ProfileField.SPORTS_ACTIVITIES, toggle_sport_activity(current, activity, checked))

    def check_field(self, field: ProfileField) -> list[str]:
        return validate_field(field, self._draft.get(field))

    async def submit(self) -> FormState:
        if not self.can_submit:
            logger.debug("Submit ignored in state %s (closed=%s)", self._state.value, self._closed)
            return self._state

        self._submission_error = None
        self._requires_reauth = False
        self._set_state(FormState.VALIDATING)
        try:
            submission = require_valid(self._draft)
        except ValidationError as exc:
            self._field_errors = dict(exc.field_errors)
            self._set_state(FormState.EDITING)
            return self._state
        self._field_errors = {}

        if self._identity is None:
            self._fail(NotAuthenticatedError())
            return self._state

        identity = self._identity
        version = self._draft_version
        self._set_state(FormState.SUBMITTING)

        try:
            record = await self._store.upsert(
                submission.to_row(identity.user_id),
                on_conflict=PROFILE_CONFLICT_KEY,
            )
        except (NotAuthenticatedError, StoreError) as exc:
            self._resolve_failure(exc)
            return self._state
        except Exception:
            logger.exception("Unexpected failure saving profile for %s", user_fingerprint(identity.user_id))
            self._resolve_failure(StoreError(GENERIC_SUBMISSION_ERROR))
            return self._state

        # Other views read through the cache; refresh it even if this view is gone.
        if self._cache is not None:
            self._cache.prime(record)

        if self._closed:
            logger.debug("Profile saved after its form was closed; result dropped")
            return self._state

        self._baseline = record
        if version == self._draft_version:
            self._draft = ProfileDraft.from_record(record)
            self._set_state(FormState.SUCCESS)
            logger.info("Profile saved for %s", user_fingerprint(identity.user_id))
            if self._navigator is not None:
                self._navigator.navigate(self._success_path)
        else:
            # The user kept typing while the save was in flight; keep their newer draft.
            logger.info("Profile saved for %s; newer local edits kept", user_fingerprint(identity.user_id))
            self._set_state(FormState.EDITING)
        return self._state

    def close(self) -> None:
        """The consuming view went away. Late results become no-ops."""
        self._closed = True
        self._listeners.clear()

    def _resolve_failure(self, exc: NotAuthenticatedError | StoreError) -> None:
        if self._closed:
            logger.debug("Profile save failed after its form was closed: %s", exc.message)
            return
        self._fail(exc)

    def _fail(self, exc: NotAuthenticatedError | StoreError) -> None:
        self._submission_error = exc.message
        if isinstance(exc, NotAuthenticatedError):
            self._requires_reauth = True
            if self._navigator is not None:
                self._navigator.navigate(LOGIN_PATH)
            logger.info("Profile save needs re-authentication")
        else:
            logger.warning("Profile save failed: %s", exc.message)
        self._set_state(FormState.EDITING)

    def _set_state(self, state: FormState) -> None:
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
