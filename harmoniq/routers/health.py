from __future__ import annotations

from fastapi import APIRouter


router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict:
    return {"status": "healthy"}


@router.get("/api/info")
def api_info() -> dict:
    return {
        "service": "harmonIQ",
        "status": "online",
        "version": "1.0.0",
        "endpoints": {
            "login": "POST /auth/login",
            "signup": "POST /auth/signup",
            "logout": "POST /auth/logout",
            "session": "GET /session",
            "continue": "POST /session/continue",
            "profile": "GET /profile",
            "save_profile": "PUT /profile",
            "validate_profile": "POST /profile/validate",
            "profile_options": "GET /profile/options",
        },
    }
