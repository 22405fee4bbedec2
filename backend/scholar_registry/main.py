"""
Scholar Registry: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers;
       the lifespan builds the store handle and blob store once per process.
Who:   uvicorn (`uvicorn scholar_registry.main:app`) and the test suite.

Application Layout:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /record/...  │ │ /files/...   │ │ /health     │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  app.state: database, blob_store, scholar_service   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (problems are logged, not fatal)
    3. Build the Database handle and ping it
    4. Build the blob store and the ScholarService around it

    Shutdown:
    1. Dispose the database engine (only if the lifespan created it)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from scholar_registry import __version__
from scholar_registry.blobs import build_blob_store
from scholar_registry.config import settings
from scholar_registry.database import Database
from scholar_registry.exceptions import (
    BlobStorageError,
    ImageTooLargeError,
    InvalidIdentifierError,
    NoUpdatesProvidedError,
    NotFoundError,
    ScholarRegistryError,
    StoreError,
    ValidationError,
)
from scholar_registry.middleware.logging import RequestLoggingMiddleware
from scholar_registry.middleware.request_id import RequestIDMiddleware, request_id_var
from scholar_registry.routes import files, health, records
from scholar_registry.services.scholar_service import ScholarService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] scholar_registry.services...: message
    Output goes to stdout so container runtimes collect it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "botocore", "boto3", "s3transfer"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the process-wide collaborators and release them on shutdown.

    Anything already present on app.state (set by a test or an embedding
    application) is kept as-is and not disposed here.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Scholar Registry %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_settings(settings)

    if await app.state.database.ping():
        logger.info("Database reachable")
    else:
        # Keep serving: /health reports the outage and requests fail with 500
        logger.error("Database unreachable at startup")

    if getattr(app.state, "blob_store", None) is None:
        app.state.blob_store = build_blob_store(settings)
    if getattr(app.state, "scholar_service", None) is None:
        app.state.scholar_service = ScholarService(app.state.blob_store)

    logger.info("Blob backend: %s", settings.blob_backend)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Scholar Registry shutting down...")
    if owns_database:
        await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _client_error(status_code: int, error: str, exc: ScholarRegistryError) -> JSONResponse:
    rid = request_id_var.get("")
    logger.warning("[%s] %s: %s", rid, error, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": exc.message,
            "details": exc.context,
            "request_id": rid,
        },
    )


def _server_error(label: str, exc: ScholarRegistryError) -> JSONResponse:
    rid = request_id_var.get("")
    # Context stays in the server log; the client gets the message only
    logger.error("[%s] %s: %s | Context: %s", rid, label, exc.message, exc.context)
    return JSONResponse(
        status_code=500,
        content={
            "error": "server_error",
            "message": exc.message,
            "request_id": rid,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler table:
        InvalidIdentifierError  → 400 invalid_identifier
        NoUpdatesProvidedError  → 400 no_updates
        ValidationError         → 400 validation_error
        ImageTooLargeError      → 413 image_too_large
        NotFoundError           → 404 not_found
        StoreError              → 500 server_error
        BlobStorageError        → 500 server_error
        Exception (fallback)    → 500 internal_server_error
    """

    @app.exception_handler(InvalidIdentifierError)
    async def handle_invalid_identifier(request: Request, exc: InvalidIdentifierError):
        return _client_error(400, "invalid_identifier", exc)

    @app.exception_handler(NoUpdatesProvidedError)
    async def handle_no_updates(request: Request, exc: NoUpdatesProvidedError):
        return _client_error(400, "no_updates", exc)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return _client_error(400, "validation_error", exc)

    @app.exception_handler(ImageTooLargeError)
    async def handle_image_too_large(request: Request, exc: ImageTooLargeError):
        return _client_error(413, "image_too_large", exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        return _server_error("Store error", exc)

    @app.exception_handler(BlobStorageError)
    async def handle_blob_storage_error(request: Request, exc: BlobStorageError):
        return _server_error("Blob storage error", exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    No I/O happens here; connections are made in the lifespan, so tests can
    build an app and attach their own database and blob store to app.state.
    """
    app = FastAPI(
        title="Scholar Registry API",
        description=(
            "CRUD API for scholar records with optional profile images "
            "stored in S3, plus read-only sponsor lookups."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Added last = runs first: RequestID → Logging → GZip → CORS
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

    app.include_router(records.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
