"""
Potion API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app(settings) returns a configured FastAPI
       instance. The settings object is passed in explicitly and handed to
       the token service and the MongoDB client.
Who:   Called by uvicorn to start the server (uvicorn potion_api.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────────────┐  │
    │  │  Req ID  │→│  Logging        │→│ GZip / CORS  │  │
    │  └──────────┘ └─────────────────┘ └──────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /auth/*      │ │ /potions/*   │ │ GET /health │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ Auth→401 │ 404 │ DB/500     │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → MongoDB client → indexes
    Shutdown: close MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from potion_api.config import Settings, settings as default_settings
from potion_api.database import close_client, create_client, ensure_indexes
from potion_api.exceptions import (
    AuthenticationError,
    AuthInternalError,
    ConflictError,
    DatabaseError,
    InvalidQueryParameter,
    NotFoundError,
    PotionApiError,
    ValidationFailed,
)
from potion_api.middleware.logging import RequestLoggingMiddleware
from potion_api.middleware.request_id import RequestIDMiddleware, request_id_var
from potion_api.routes import auth, health, potions
from potion_api.security import public_write_routes
from potion_api.services.token_service import TokenService

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, validate settings, open the MongoDB client,
    ensure indexes. Shutdown: close the client.
    """
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Potion API starting up (environment=%s)...", app_settings.environment)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if app_settings.is_production:
            raise

    for route_name in public_write_routes(app_settings):
        logger.warning("Access policy for '%s' is public: no session required", route_name)

    client = create_client(app_settings)
    app.state.mongo_client = client
    app.state.database = client[app_settings.mongo_db_name]

    try:
        await ensure_indexes(app.state.database)
    except PyMongoError as e:
        # Keep serving: /health reports the database as disconnected
        logger.error("Could not ensure MongoDB indexes: %s", str(e))

    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Potion API shutting down...")
    await close_client(client)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "request_id": request_id_var.get("")},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and JSON bodies.

    Handler hierarchy:
        ValidationFailed, RequestValidationError → 400 {"errors": [...]}
        InvalidQueryParameter                    → 400 {"error": ...}
        AuthenticationError (and subclasses)     → 401
        NotFoundError                            → 404
        ConflictError, AuthInternalError         → 500 with their message
        DatabaseError, PotionApiError, Exception → 500 generic message

    Security: responses never carry stack traces or driver messages.
    """

    @app.exception_handler(ValidationFailed)
    async def handle_validation_failed(request: Request, exc: ValidationFailed):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation failed: %s", rid, exc.errors)
        return JSONResponse(status_code=400, content={"errors": exc.errors, "request_id": rid})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Body/path errors detected by FastAPI, reshaped into itemized field errors."""
        rid = request_id_var.get("")
        errors = []
        for err in exc.errors():
            location = [str(part) for part in err.get("loc", ()) if part != "body"]
            errors.append({
                "field": ".".join(location) or "body",
                "message": err.get("msg", "Invalid value"),
            })
        logger.warning("[%s] Request validation error: %s", rid, errors)
        return JSONResponse(status_code=400, content={"errors": errors, "request_id": rid})

    @app.exception_handler(InvalidQueryParameter)
    async def handle_invalid_query(request: Request, exc: InvalidQueryParameter):
        logger.warning("[%s] Invalid query parameter: %s", request_id_var.get(""), exc.message)
        return _error(400, exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        logger.info("[%s] Authentication refused: %s", request_id_var.get(""), type(exc).__name__)
        return _error(401, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("[%s] Conflict: %s", request_id_var.get(""), exc.context)
        return _error(500, exc.message)

    @app.exception_handler(AuthInternalError)
    async def handle_auth_internal(request: Request, exc: AuthInternalError):
        logger.error("[%s] Auth internal error | Context: %s", request_id_var.get(""), exc.context)
        return _error(500, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error(500, exc.message)

    @app.exception_handler(PotionApiError)
    async def handle_app_error(request: Request, exc: PotionApiError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace logged server-side only."""
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error(500, GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Configuration for this instance. Defaults to the
                      environment-loaded `potion_api.config.settings`.

    The settings and the token service built from them are stored on
    `app.state` and reached by dependencies through the request; nothing
    reads a module-level global at request time.
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Potion API",
        description="API de gestion des potions et users",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.token_service = TokenService.from_settings(app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,     # Session cookie travels cross-origin
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(potions.router)
    app.include_router(health.router)

    return app


# uvicorn expects `potion_api.main:app` to be importable
app = create_app()
