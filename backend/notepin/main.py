"""
Notepin — FastAPI Application Factory
======================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the post store, upload and post services, wires
       middleware, exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn notepin.main:app` or `python -m notepin`) and tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: Request ID → Logging → GZip → CORS     │
    │                                                     │
    │  Routes:                                            │
    │   /api/posts (CRUD)   /uploads/{name}   /   /health │
    │                                                     │
    │  Exception Handlers:                                │
    │   ValidationError→400  NotFound→404  Storage→500    │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → data/upload directories → store.open()
    Shutdown: store.close()
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from notepin import __version__
from notepin.config import Settings, settings as default_settings
from notepin.exceptions import (
    DatabaseError,
    FileStorageError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from notepin.middleware.logging import RequestLoggingMiddleware
from notepin.middleware.request_id import RequestIDMiddleware, request_id_for
from notepin.routes import health, pages, posts, uploads
from notepin.services.post_service import PostService
from notepin.services.upload_service import UploadService
from notepin.stores import PostStore, build_post_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once from the lifespan handler, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup and shutdown procedures.

    Stores also prepare themselves lazily on first use, so an app driven
    without lifespan events (ASGI test transports) still works.
    """
    cfg: Settings = app.state.settings
    store: PostStore = app.state.post_service.store

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(cfg.log_level)
    logger.info("=" * 60)
    logger.info("Notepin starting up (storage backend: %s)", store.backend_name)

    data_dir = Path(cfg.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Data directory: %s", data_dir.resolve())
    logger.info("Upload directory: %s", app.state.upload_service.upload_dir)

    await store.open()

    logger.info("Server ready at http://%s:%d", cfg.host, cfg.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Notepin shutting down...")
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and JSON bodies.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        NotFoundError                            → 404
        DatabaseError / FileStorageError         → 500 (generic message)
        Exception (fallback)                     → 500

    Internal details (paths, SQL errors, stack traces) are logged, never
    returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_for(request)
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
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
        # Malformed bodies and path params share the 400 shape of business-rule failures
        rid = request_id_for(request)
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.warning("[%s] Request validation error on %s: %s", rid, field or "request", message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": f"{field}: {message}" if field else message,
                "details": {"field": field} if field else {},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_for(request)
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_for(request)
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        rid = request_id_for(request)
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        rid = request_id_for(request)
        logger.error("[%s] Storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_for(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[PostStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment-driven singleton
        store:    PostStore to serve; defaults to the backend named by
                  settings.storage_backend

    Returns: Fully configured FastAPI instance.
    """
    cfg = settings or default_settings

    app = FastAPI(
        title="Notepin API",
        description="Personal notes board: short posts with up to nine images.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Services ──────────────────────────────────────────────────────────
    upload_service = UploadService(settings=cfg)
    post_store = store or build_post_store(cfg)
    app.state.settings = cfg
    app.state.upload_service = upload_service
    app.state.post_service = PostService(post_store, upload_service, settings=cfg)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(posts.router)
    app.include_router(uploads.router, prefix=upload_service.url_prefix)
    app.include_router(health.router)
    app.include_router(pages.router)

    public_dir = cfg.resolved_public_dir
    if public_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(public_dir)), name="static")
    else:
        logger.warning("Public directory %s not found; /static is not served", public_dir)

    return app


app = create_app()
