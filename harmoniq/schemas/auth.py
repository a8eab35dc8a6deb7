from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator


@dataclass(frozen=True)
class Identity:
    """An authenticated user's reference, independent of any profile data."""

    user_id: str
    email: str | None = None
    access_token: str | None = None


def _normalize_email(value: str) -> str:
    email = value.strip().lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValueError("A valid email is required.")
    return email


class CredentialsRequest(BaseModel):
    email: str
    password: str = Field(min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class PublicUser(BaseModel):
    id: str
    email: str | None = None


class AuthResponse(BaseModel):
    status: str = "authenticated"
    access_token: str | None = None
    token_type: str = "bearer"
    user: PublicUser
    next: str | None = None


def public_user(identity: Identity) -> PublicUser:
    return PublicUser(id=identity.user_id, email=identity.email)
