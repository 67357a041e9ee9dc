"""
DocGate — FastAPI Application Factory
=======================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the app around a DocumentStore (constructed from
       settings unless one is injected), registers middleware, exception
       handlers and routes, and returns it.
Who:   uvicorn imports `docgate.main:app`; tests call create_app(store=...).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Req ID → Logging → GZip → CORS             │
    │                                                          │
    │  Routes:                                                 │
    │   /  /health  /collections/{name}/...  /collections/orders│
    │                                                          │
    │  Exception Handlers:                                     │
    │   Validation→400 │ NotFound→404 │ DB/Store/other→500     │
    │   no route→404 "Resource not found!"                     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect the DocumentStore (ping). Failure is fatal: the lifespan
       raises and uvicorn exits with a non-zero status.
    Shutdown:
    1. Close the Motor client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from docgate import __version__
from docgate.config import settings
from docgate.database import DocumentStore
from docgate.exceptions import (
    DatabaseError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from docgate.middleware.logging import RequestLoggingMiddleware
from docgate.middleware.request_id import RequestIDMiddleware, request_id_var
from docgate.responses import IndentedJSONResponse
from docgate.routes import register_routes

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Resource not found!"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] docgate.access: [1f3a9c2b] 127.0.0.1 - GET /collections/x HTTP/1.1 200 ...
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # docgate.access replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("motor").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect the store before any traffic is accepted; close it on shutdown.

    An injected store that is already connected is left as it is.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("DocGate %s starting up...", __version__)

    store: DocumentStore = app.state.store
    if not store.is_connected:
        try:
            await store.connect()
        except DatabaseError as e:
            logger.error("Error connecting to MongoDB: %s | Context: %s", e.message, e.context)
            raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("DocGate shutting down...")
    store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (body is not a JSON object, ...)
        NotFoundError           → 404 Not Found
        StoreUnavailableError   → 500 "Database not connected"
        DatabaseError           → 500, generic message, driver error logged
        HTTPException 404/405   → 404 plain text "Resource not found!"
        Exception (fallback)    → 500, stack trace logged

    Internal details (driver messages, stack traces) are never part of a response.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return IndentedJSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Malformed request: %s", rid, exc.errors())
        return IndentedJSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Request body must be a JSON object",
                "details": {"errors": [error.get("msg") for error in exc.errors()]},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return IndentedJSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        rid = request_id_var.get("")
        logger.error("[%s] %s", rid, exc.message)
        return IndentedJSONResponse(
            status_code=500,
            content={
                "error": "store_unavailable",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return IndentedJSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for errors nobody translated, e.g. bson's InvalidId on
        GET /collections/{name}/{id} or a driver error during a sorted list.
        """
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return IndentedJSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: the DocumentStore handlers will use. Defaults to one built from
            settings; it is connected by the lifespan, not here, so importing
            this module never opens a connection.
    """
    app = FastAPI(
        title="DocGate API",
        description=(
            "Generic HTTP gateway for create/read/update/delete operations "
            "over any named MongoDB collection."
        ),
        version=__version__,
        default_response_class=IndentedJSONResponse,
        lifespan=lifespan,
    )
    app.state.store = store or DocumentStore.from_settings(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    register_routes(app)

    return app


app = create_app()
