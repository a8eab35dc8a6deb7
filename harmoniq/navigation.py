from __future__ import annotations

from typing import Protocol


LOGIN_PATH = "/login"
PROFILE_PATH = "/profile"
ONBOARDING_PATH = "/onboarding"
DASHBOARD_PATH = "/dashboard"


class Navigator(Protocol):
    def navigate(self, path: str) -> None:
        ...


class RecordingNavigator:
    """Remembers where the flow asked to go; the API reports it back as ``next``."""

    def __init__(self) -> None:
        self.history: list[str] = []

    def navigate(self, path: str) -> None:
        self.history.append(path)

    @property
    def current(self) -> str | None:
        return self.history[-1] if self.history else None
