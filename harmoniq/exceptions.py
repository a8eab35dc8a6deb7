"""Error taxonomy shared by the controller, the collaborators and the API layer."""

from __future__ import annotations


class HarmoniqError(Exception):
    """Base error carrying a user-facing message and an HTTP status."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(HarmoniqError):
    """One or more draft fields broke their constraint. Never reaches the store."""

    status_code = 422

    def __init__(self, field_errors: dict[str, list[str]]):
        fields = ", ".join(sorted(field_errors))
        super().__init__(f"Invalid profile fields: {fields}")
        self.field_errors = field_errors


class AuthError(HarmoniqError):
    """The auth provider rejected an identity operation."""

    status_code = 401


class NotAuthenticatedError(HarmoniqError):
    """No resolvable identity for an operation that needs one."""

    status_code = 401

    def __init__(self, message: str = "You need to sign in again to save your profile."):
        super().__init__(message)


class StoreError(HarmoniqError):
    """The profile store failed to read or write."""

    status_code = 502


class ProfileLookupError(StoreError):
    """The profile could not be fetched. Distinct from "no profile exists"."""
