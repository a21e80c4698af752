"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_ledger.api.deps import get_locale
from clinic_ledger.api.v1.router import api_router
from clinic_ledger.core.config import settings
from clinic_ledger.core.errors import ClinicError, ErrorCategory, resolve_message
from clinic_ledger.core.logging import setup_logging
from clinic_ledger.db.init_db import init_db
from clinic_ledger.db.session import AsyncSessionLocal

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

SERVICE_NAME = "Clinic Booking & Ledger API"
VERSION = "0.1.0"

CATEGORY_STATUS = {
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCategory.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCategory.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCategory.FUNDS_INSUFFICIENT: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.OVERPAYMENT_REJECTED: status.HTTP_400_BAD_REQUEST,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    logger.info(f"Starting {SERVICE_NAME} (env={settings.env})")

    if settings.init_db_on_startup and settings.is_dev:
        logger.info("Initializing database...")
        async with AsyncSessionLocal() as session:
            await init_db(session)

    yield

    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}")


# Create FastAPI application
app = FastAPI(
    title=SERVICE_NAME,
    description="Doctor day booking and patient payment ledger",
    version=VERSION,
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
    openapi_url="/openapi.json" if settings.is_dev else None,
    lifespan=lifespan,
)

# CORS middleware (configure appropriately for production)
if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError) -> JSONResponse:
    """Map domain errors to HTTP responses with a localized message."""
    logger.info(
        f"{type(exc).__name__}: {exc.detail or exc.message_key}",
        extra={"error_code": exc.code},
    )
    return JSONResponse(
        status_code=CATEGORY_STATUS.get(exc.category, status.HTTP_400_BAD_REQUEST),
        content={
            "code": exc.code,
            "message": resolve_message(exc.message_key, get_locale(request)),
            "key": exc.message_key,
        },
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    # Don't expose internal errors in production
    if settings.is_prod:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


# Include API router
app.include_router(api_router, prefix="/api/v1")


# Root endpoint
@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Service info."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "docs": "/docs" if settings.is_dev else "Disabled in production",
    }
