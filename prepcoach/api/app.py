"""
PrepCoach - FastAPI Application.

Main FastAPI app: routes, CORS, rate limiting and the mapping from
domain errors to HTTP status codes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from prepcoach.api.routes import limiter, router as api_router
from prepcoach.core.config import configure_logging, get_settings
from prepcoach.core.exceptions import (
    NotFoundError,
    PrepCoachError,
    ProviderRateLimitError,
    StateError,
    ValidationError,
)

# Configure logging
configure_logging()
logger = logging.getLogger(__name__)


# Most specific first; first isinstance match wins
ERROR_STATUS_CODES: list[tuple[type[PrepCoachError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (StateError, 409),
    (ProviderRateLimitError, 429),
]


def status_for_error(exc: PrepCoachError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def prepcoach_error_handler(request: Request, exc: PrepCoachError) -> JSONResponse:
    status_code = status_for_error(exc)
    if status_code >= 500:
        logger.error(f"Unhandled PrepCoach error on {request.url.path}: {exc}")
    else:
        logger.info(f"{status_code} on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message, "details": exc.details},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs startup configuration and shutdown.
    """
    settings = get_settings()
    logger.info("🚀 PrepCoach API starting...")
    if not settings.GEMINI_API_KEY:
        logger.warning("⚠️ GEMINI_API_KEY not set - AI endpoints will return fallback content")
    logger.info(f"📦 Persistence backend: {settings.PERSISTENCE_BACKEND}")

    yield

    logger.info("👋 PrepCoach API shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="PrepCoach",
        description="Interview Preparation Coaching API",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Domain errors
    app.add_exception_handler(PrepCoachError, prepcoach_error_handler)

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {"message": "PrepCoach API is running. See /api/docs."}

    return app


# Create app instance
app = create_app()
