from harmoniq.routers.auth import router as auth_router
from harmoniq.routers.health import router as health_router
from harmoniq.routers.profile import router as profile_router
from harmoniq.routers.session import router as session_router

__all__ = [
    "auth_router",
    "health_router",
    "profile_router",
    "session_router",
]
