from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from harmoniq.config import Settings, get_settings
from harmoniq.database.session import build_engine, build_session_factory, init_db
from harmoniq.exceptions import HarmoniqError, ValidationError
from harmoniq.forms.validation import errors_by_api_name
from harmoniq.routers import auth_router, health_router, profile_router, session_router
from harmoniq.services.profile_cache import ProfileCache
from harmoniq.stores.memory_store import MemoryProfileStore
from harmoniq.stores.sql_store import SqlProfileStore
from harmoniq.utils.logging import setup_logging


logger = logging.getLogger(__name__)


def _shared_profile_store(settings: Settings) -> SqlProfileStore | MemoryProfileStore | None:
    if settings.profile_backend == "sql":
        engine = build_engine(settings.database_url)
        init_db(engine)
        return SqlProfileStore(build_session_factory(engine))
    if settings.profile_backend == "memory":
        return MemoryProfileStore()
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    async with httpx.AsyncClient(timeout=settings.supabase_timeout_seconds) as client:
        app.state.http_client = client
        logger.info("%s started with the %s profile store", settings.app_name, settings.profile_backend)
        yield


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.profile_cache = ProfileCache(settings.profile_cache_ttl_seconds)
    app.state.profile_store = _shared_profile_store(settings)
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "fieldErrors": errors_by_api_name(exc.field_errors)},
        )

    @app.exception_handler(HarmoniqError)
    async def harmoniq_error_handler(request: Request, exc: HarmoniqError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(profile_router)

    return app


app = create_app()
