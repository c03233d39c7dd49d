"""FastAPI application entry point.

Category engine service: hierarchical blog categories over a flat
relational store.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from category_engine import __version__
from category_engine.config import settings
from category_engine.core.errors import (
    CategoryError,
    CategoryNotFoundError,
    CategoryStoreError,
    DuplicateNameError,
    DuplicateSlugError,
    HasAttachedContentError,
)
from category_engine.infra.database import (
    close_db_engine,
    create_tables,
    verify_db_connection,
)
from category_engine.infra.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from category_engine.schemas.common import ErrorResponse
from category_engine.services.cache import close_category_cache, get_category_cache

# Import routers
from category_engine.api.routes import categories_router, health_router

# Setup logging first
setup_logging()
logger = get_logger(__name__)

# Errors that conflict with existing data rather than being malformed
_CONFLICT_ERRORS = (DuplicateSlugError, DuplicateNameError, HasAttachedContentError)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup:
    - Create tables when running on SQLite (local runs)
    - Verify database connection
    - Configure the category cache

    Shutdown:
    - Close database connections
    - Close the Redis pool
    """
    logger.info(
        "Category engine starting",
        environment=settings.environment,
        sqlite=settings.is_sqlite,
    )

    if settings.is_sqlite:
        await create_tables()

    db_ok = await verify_db_connection()
    if not db_ok:
        logger.warning("Database connection failed - will retry on first request")

    get_category_cache()

    yield

    # Shutdown
    logger.info("Category engine shutting down")
    await close_db_engine()
    await close_category_cache()
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Category Engine",
    description="Hierarchical category management for the blog",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "dev" else None,
    redoc_url=None,
)

# CORS middleware (mainly for local development)
if settings.environment == "dev":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind request context for every log line and log mutating requests."""
    bind_request_context(
        method=request.method,
        path=request.url.path,
        user_id=request.headers.get("X-User-Id", ""),
    )

    if request.method in ("POST", "PATCH", "DELETE"):
        logger.info("Category mutation received")

    try:
        return await call_next(request)
    finally:
        clear_request_context()


# =============================================================================
# Exception Handlers
# =============================================================================


def _error_status(exc: CategoryError) -> int:
    if isinstance(exc, CategoryNotFoundError):
        return 404
    if isinstance(exc, _CONFLICT_ERRORS):
        return 409
    if isinstance(exc, CategoryStoreError):
        return 503
    return 422


@app.exception_handler(CategoryError)
async def category_error_handler(request: Request, exc: CategoryError) -> JSONResponse:
    """Turn category errors into structured responses carrying their code."""
    status_code = _error_status(exc)
    if status_code >= 500:
        logger.error("Category store unavailable", error=exc.message, path=request.url.path)

    body = ErrorResponse(error=exc.message, error_type=exc.code, detail=exc.details or None)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "error_type": type(exc).__name__,
        },
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router, tags=["Health"])
app.include_router(categories_router, prefix="/categories", tags=["Categories"])


# =============================================================================
# Root Endpoint
# =============================================================================


@app.get("/")
async def root() -> dict:
    """Root endpoint - basic service info."""
    return {
        "service": "Category Engine",
        "version": __version__,
        "environment": settings.environment,
    }
