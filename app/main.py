# app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.business import IntakePolicy
from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import LoggingMiddleware, get_logger, setup_logging
from app.db.base import init_db
from app.db.session import create_engine_from_settings, create_session_factory

# Routers
from app.api.routes.appointments import router as appointments_router
from app.api.routes.health import router as health_router

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with its own engine, session factory and intake policy.
    Run with: uvicorn app.main:create_app --factory
    """
    settings = settings or get_settings()
    setup_logging(
        debug=settings.is_development,
        max_log_length=settings.MAX_LOG_LENGTH,
        level=settings.LOG_LEVEL,
    )

    engine = create_engine_from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.DB_AUTO_CREATE:
            await init_db(engine)
            logger.info("database_tables_ready")
        logger.info("application_startup", env=settings.APP_ENV, enforce_grid=settings.ENFORCE_SLOT_GRID)
        yield
        logger.info("application_shutdown")
        await engine.dispose()

    app = FastAPI(title="Appointment Intake", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.intake_policy = IntakePolicy.from_settings(settings)

    register_exception_handlers(app, settings)

    # -------- Body size gate --------
    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length is not None and length.isdigit() and int(length) > settings.MAX_BODY_BYTES:
            logger.info("request_too_large", path=request.url.path, content_length=int(length))
            return JSONResponse({"error": "Payload Too Large"}, status_code=413)
        return await call_next(request)

    # Registered last so it wraps everything above and sees every response
    app.middleware("http")(
        LoggingMiddleware(
            log_requests=settings.LOG_REQUESTS,
            slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
        )
    )

    origins = settings.allowed_origins_list
    allow_all = origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # -------- Include routers --------
    app.include_router(health_router)
    app.include_router(appointments_router)

    logger.info("application_initialized")
    return app
