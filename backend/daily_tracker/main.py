"""
Daily Tracker Backend — FastAPI Application Factory
=====================================================

What:  Assembles the application: store, sessions, email, broadcaster,
       services, middleware, exception handlers, routes and the WebSocket.
How:   `create_app()` builds every component eagerly and parks it on
       `app.state`; route dependencies read it from there. Tests pass their
       own components (memory store, temp session file, mock email transport).
Who:   uvicorn (`uvicorn daily_tracker.main:app`) and the test suite.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware:  CORS → Request ID → Access log → GZip       │
    │                                                           │
    │  Routes:  /api/auth/*  /api/jobs  /api/tasks  /api/notes  │
    │           /health      WebSocket (settings.ws_path)       │
    │                                                           │
    │  State:   FallbackStore(SqlBackend?, MemoryBackend)       │
    │           SessionStore (JSON file)                        │
    │           EmailService (Resend)   Broadcaster             │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, session file load, table creation (when a database
               is configured and DB_CREATE_TABLES is on)
    Shutdown:  engine disposal

Table creation failures at startup are handled like any other durable fault:
logged, and the store switches to memory.
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import ArgumentError

from daily_tracker import __version__
from daily_tracker.config import Settings
from daily_tracker.config import settings as default_settings
from daily_tracker.database import (
    build_engine,
    build_session_factory,
    create_tables,
    dispose_engine,
)
from daily_tracker.exceptions import (
    AuthenticationError,
    NotFoundError,
    TrackerError,
    ValidationError,
)
from daily_tracker.middleware.logging import RequestLoggingMiddleware
from daily_tracker.middleware.request_id import RequestIDMiddleware, request_id_var
from daily_tracker.routes import auth, health, jobs, notes, tasks
from daily_tracker.routes.realtime import websocket_endpoint
from daily_tracker.services.auth_service import AuthService
from daily_tracker.services.broadcaster import Broadcaster
from daily_tracker.services.email_service import EmailService
from daily_tracker.services.resource_service import build_resource_services
from daily_tracker.services.session_store import SessionStore
from daily_tracker.storage import FallbackStore, MemoryBackend, SqlBackend, StoreState

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once, to stdout, and quiet chatty libraries."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Storage Assembly
# ══════════════════════════════════════════════════════════════════════════

def build_store(settings: Settings):
    """
    Build the FallbackStore for these settings.

    Returns (store, engine). `engine` is None in memory-only mode. An empty
    DATABASE_URL is a healthy memory-only start; a URL that cannot be turned
    into an engine starts the store already degraded.
    """
    otp_ttl = timedelta(seconds=settings.otp_ttl_seconds)
    memory = MemoryBackend(otp_ttl=otp_ttl)

    if not settings.durable_storage_enabled:
        logger.warning("DATABASE_URL not set; using in-memory storage (data is not persisted)")
        return FallbackStore(durable=None, memory=memory), None

    try:
        engine = build_engine(settings.database_url, settings)
    except (ArgumentError, ImportError) as exc:
        logger.error("Could not create database engine, using in-memory storage: %s", exc)
        return FallbackStore(durable=None, memory=memory, state=StoreState(degraded=True)), None

    durable = SqlBackend(build_session_factory(engine), otp_ttl=otp_ttl)
    return FallbackStore(durable=durable, memory=memory), engine


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info("Daily Tracker backend %s starting (storage=%s)", __version__, app.state.store.mode)

    await app.state.sessions.load()

    engine = app.state.engine
    if engine is not None and settings.db_create_tables:
        try:
            await create_tables(engine)
            logger.info("Database tables ready")
        except Exception as exc:
            logger.error("Table creation failed: %s", exc, exc_info=True)
            if app.state.store.state.mark_degraded():
                logger.warning("Storage degraded to process memory; new data will not survive a restart")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Daily Tracker backend shutting down...")
    await dispose_engine(engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler map:
        ValidationError / DuplicateError → 400
        RequestValidationError           → 400 (field errors in details)
        AuthenticationError              → 401
        NotFoundError                    → 404
        TrackerError (other)             → 500
        Exception                        → 500, traceback logged
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        logger.warning("[%s] Invalid request payload: %d error(s)", request_id_var.get(""), len(errors))
        return _error_response(400, "validation_error", "Invalid request data", {"errors": errors})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(401, "not_authenticated", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(TrackerError)
    async def handle_tracker_error(request: Request, exc: TrackerError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[FallbackStore] = None,
    sessions: Optional[SessionStore] = None,
    email: Optional[EmailService] = None,
    broadcaster: Optional[Broadcaster] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Every component can be injected. A store passed in is used as-is and no
    engine is managed by the app.
    """
    settings = settings or default_settings

    engine = None
    if store is None:
        store, engine = build_store(settings)
    if sessions is None:
        sessions = SessionStore(settings.session_file, ttl=timedelta(days=settings.session_ttl_days))
    if email is None:
        email = EmailService.from_settings(settings)
    if broadcaster is None:
        broadcaster = Broadcaster()

    app = FastAPI(
        title="Daily Tracker API",
        description="Personal tracker for job applications, tasks and notes.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.store = store
    app.state.sessions = sessions
    app.state.email = email
    app.state.broadcaster = broadcaster
    app.state.auth_service = AuthService(
        store,
        sessions,
        email,
        password_min_length=settings.password_min_length,
    )
    app.state.resource_services = build_resource_services(store, broadcaster)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(jobs.router)
    app.include_router(tasks.router)
    app.include_router(notes.router)
    app.include_router(health.router)
    app.add_api_websocket_route(settings.ws_path, websocket_endpoint)

    return app


app = create_app()
