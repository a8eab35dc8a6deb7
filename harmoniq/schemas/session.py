from __future__ import annotations

from pydantic import BaseModel, Field

from harmoniq.schemas.auth import PublicUser
from harmoniq.schemas.profile import UserProfileRecord


class SessionResponse(BaseModel):
    status: str
    user: PublicUser | None = None
    profile: UserProfileRecord | None = None
    # An existing session is offered, not followed.
    choices: list[str] = Field(default_factory=list)


class ContinueResponse(BaseModel):
    status: str
    next: str
