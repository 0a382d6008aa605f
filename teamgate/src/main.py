"""
FastAPI application entry point for the teamgate backend.

This module initializes the FastAPI application with:
- Google sign-in routes (/auth/google, /auth/google.callback)
- Team user administration routes (/api/users/...)
- Rate limiting for the sign-in endpoints
- Exception handlers for consistent error responses
- Logging configuration

Environment Variables:
    TEAMGATE_ENV: Environment (production/development, default: development)
    TEAMGATE_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    TEAMGATE_DB_URL: Database URL
    URL: Public base URL
"""

from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from teamgate.src.config.oauth import get_oauth_settings
from teamgate.src.config.settings import get_settings
from teamgate.src.utils.logging_config import init_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Logs the effective sign-in configuration on startup.

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    logger.info("Starting teamgate backend application")

    oauth_settings = get_oauth_settings()
    settings = get_settings()

    if not oauth_settings.google_enabled:
        logger.warning("GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set; Google sign-in is disabled")
    if not settings.jwt_configured:
        logger.warning("SECRET_KEY not set; access tokens cannot be issued")
    if not settings.storage_configured:
        logger.info("Avatar storage not configured; Team avatars are not re-hosted")
    if oauth_settings.allowed_domains:
        logger.info(f"Sign-in restricted to: {', '.join(oauth_settings.allowed_domains)}")

    logger.info("Teamgate backend started successfully")

    yield

    logger.info("Shutting down teamgate backend application")


# Initialize logging before creating app
init_logging()

# Create FastAPI application
app = FastAPI(
    title="Teamgate API",
    description="Google federated sign-in with automatic Team and User provisioning.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Exception handlers
@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Args:
        request: HTTP request
        exc: Pydantic ValidationError

    Returns:
        JSON response with validation error details
    """
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handle SQLAlchemy database errors."""
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and application information
    """
    return {
        "status": "healthy",
        "service": "teamgate-backend",
        "version": "1.0.0",
        "google_enabled": get_oauth_settings().google_enabled,
    }


# API routers
from teamgate.src.api import auth, users

app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth.router)
app.include_router(users.router, prefix="/api")
