"""FastAPI application entry point.

Category hierarchy service for the storefront admin and vendor portals.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.core.mutation_validator import RejectionKind
from app.infra.database import close_db_engine, verify_db_connection
from app.infra.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from app.schemas.common import ErrorResponse
from app.services.category_service import CategoryServiceError

# Import routers
from app.api.routes.categories import router as categories_router
from app.api.routes.health import router as health_router

# Setup logging first
setup_logging()
logger = get_logger(__name__)

REJECTION_STATUS: dict[RejectionKind, int] = {
    RejectionKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionKind.PARENT_NOT_FOUND: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RejectionKind.INVALID_NAME: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RejectionKind.DEPTH_EXCEEDED: status.HTTP_409_CONFLICT,
    RejectionKind.CYCLIC_PARENT: status.HTTP_409_CONFLICT,
    RejectionKind.HAS_PRODUCTS: status.HTTP_409_CONFLICT,
    RejectionKind.HAS_SUBCATEGORIES: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup:
    - Verify database connection (SQL store only)

    Shutdown:
    - Close database connections
    """
    logger.info(
        "Category service starting",
        environment=settings.environment,
        category_store=settings.category_store,
        max_depth=settings.category_max_depth,
    )

    if settings.category_store == "sql":
        db_ok = await verify_db_connection()
        if not db_ok:
            logger.warning("Database connection failed - will retry on first request")

    yield

    # Shutdown
    logger.info("Category service shutting down")
    await close_db_engine()
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Storefront Category Service",
    description="Category hierarchy engine for the storefront admin panel",
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
    """Bind request context and log category writes."""
    bind_request_context(method=request.method, path=request.url.path)
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        logger.info("Category write received")

    try:
        response = await call_next(request)
    finally:
        clear_request_context()

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(CategoryServiceError)
async def category_error_handler(request: Request, exc: CategoryServiceError) -> JSONResponse:
    """Turn structural rejections into correctable client errors."""
    body = ErrorResponse(
        error=exc.message,
        error_type=exc.kind.value,
        detail={"category_id": exc.rejection.node_id},
    )
    return JSONResponse(
        status_code=REJECTION_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST),
        content=body.model_dump(),
    )


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
        "service": "Storefront Category Service",
        "version": __version__,
        "environment": settings.environment,
    }
