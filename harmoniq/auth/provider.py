"""Auth collaborator interface."""

from __future__ import annotations

from typing import Protocol

from harmoniq.schemas.auth import Identity


class AuthProvider(Protocol):
    async def get_session(self) -> Identity | None:
        ...

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        ...

    async def sign_up(self, email: str, password: str) -> Identity:
        ...

    async def sign_out(self) -> None:
        ...
