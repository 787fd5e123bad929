"""
Prosthesis Orders Backend — FastAPI Application Factory
=========================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, exception
       handling and the lifecycle of the two shared resources (document
       store and mail client).
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Served by uvicorn (`uvicorn prosthesis_orders.main:app` or
       `python -m prosthesis_orders`).

Lifecycle:
    Startup (any failure aborts the process):
    1. Initialize logging
    2. Validate configuration (DELETE_PIN, mail provider credentials)
    3. Open and probe the Firestore store
    4. Build the notification dispatcher for the configured provider

    Shutdown:
    1. Close the mail client
    2. Release the Firebase app
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prosthesis_orders import __version__
from prosthesis_orders.config import Settings, settings as default_settings
from prosthesis_orders.exceptions import (
    ConfigurationError,
    ForbiddenError,
    ProsthesisOrdersError,
    StoreError,
    ValidationError,
)
from prosthesis_orders.middleware.logging import RequestLoggingMiddleware
from prosthesis_orders.middleware.request_id import RequestIDMiddleware, request_id_var
from prosthesis_orders.routes import health, records
from prosthesis_orders.services.notification_service import build_dispatcher
from prosthesis_orders.store import close_store, open_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: 2026-01-15T12:00:00 [INFO] prosthesis_orders.store: message
    Output: stdout (captured by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every call at INFO/DEBUG
    for noisy in ("uvicorn.access", "httpx", "httpcore", "google", "urllib3", "grpc"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

def build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # ── Startup ───────────────────────────────────────────────────────
        setup_logging(settings.log_level)
        logger.info("Prosthesis Orders backend %s starting up...", __version__)

        try:
            settings.validate_required()
        except ConfigurationError as e:
            logger.critical("%s", e.message)
            logger.critical("Fix the configuration and restart the server.")
            raise

        try:
            app.state.record_store = await open_store(settings)
        except StoreError as e:
            logger.critical("%s | Context: %s", e.message, e.context)
            raise

        try:
            app.state.notifier = build_dispatcher(settings)
        except Exception:
            await close_store(app.state.record_store)
            app.state.record_store = None
            raise

        logger.info(
            "Serving /api/%s on http://%s:%d",
            settings.store_collection,
            settings.host,
            settings.port,
        )

        yield

        # ── Shutdown ──────────────────────────────────────────────────────
        logger.info("Prosthesis Orders backend shutting down...")
        try:
            await app.state.notifier.close()
        finally:
            await close_store(app.state.record_store)
            app.state.record_store = None
            app.state.notifier = None
        logger.info("Shutdown complete.")

    return lifespan


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError        → 400
        ForbiddenError         → 403
        StoreError             → 500 (generic message, detail logged)
        ProsthesisOrdersError  → 500 (catch-all for custom)
        Exception              → 500 (unexpected, traceback logged)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message),
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        # Context stays server-side: it names collections and SDK errors
        logger.error(
            "[%s] Store error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(ProsthesisOrdersError)
    async def handle_app_error(request: Request, exc: ProsthesisOrdersError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Settings = default_settings) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build the app through this factory and inject an in-memory store
    with `app.dependency_overrides`, so no lifespan (and no Firestore) runs.
    """
    app = FastAPI(
        title="Prosthesis Orders API",
        description=(
            "CRUD backend for prosthesis orders stored in Firestore, "
            "with an email notification for every new order."
        ),
        version=__version__,
        lifespan=build_lifespan(settings),
    )

    # Execution order is the reverse of addition: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.state.settings = settings

    register_exception_handlers(app)

    app.include_router(records.router, prefix=f"/api/{settings.store_collection}")
    app.include_router(health.router)

    return app


app = create_app()
