"""Mawaqit — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mawaqit import __version__
from mawaqit.adhkar.router import adhkar_router, categories_router
from mawaqit.common.exceptions import register_exception_handlers
from mawaqit.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from mawaqit.common.rate_limit import RateLimiter, RateLimitMiddleware
from mawaqit.config import settings
from mawaqit.database import engine
from mawaqit.hadiths.router import router as hadiths_router
from mawaqit.logging_config import configure_logging
from mawaqit.prayer_times.router import router as prayer_times_router
from mawaqit.sections.router import router as sections_router
from mawaqit.special_topics.router import router as special_topics_router
from mawaqit.users.router import router as users_router

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/v1/health"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Mawaqit API starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("Mawaqit API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Mawaqit",
        description="Prayer times, hadiths, adhkar and special topics",
        version=__version__,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Middleware: the last one added runs first on the way in
    app.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=settings.ENVIRONMENT == "production",
    )
    if settings.RATE_LIMIT_ENABLED:
        limiter = RateLimiter(
            burst=settings.RATE_LIMIT_BURST,
            window=settings.RATE_LIMIT_WINDOW_SECONDS,
            ttl=settings.RATE_LIMIT_TTL_SECONDS,
            shards=settings.RATE_LIMIT_SHARDS,
        )
        app.state.rate_limiter = limiter
        app.add_middleware(RateLimitMiddleware, limiter=limiter, skip_paths=[HEALTH_PATH])
    app.add_middleware(RequestLoggingMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # Health check (no auth, not rate limited)
    @app.get(HEALTH_PATH, tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(sections_router, prefix="/api/v1/sections", tags=["sections"])
    app.include_router(prayer_times_router, prefix="/api/v1/prayer-times", tags=["prayer-times"])
    app.include_router(hadiths_router, prefix="/api/v1/hadiths", tags=["hadiths"])
    app.include_router(adhkar_router, prefix="/api/v1/adhkar", tags=["adhkar"])
    app.include_router(categories_router, prefix="/api/v1/adhkar-categories", tags=["adhkar-categories"])
    app.include_router(special_topics_router, prefix="/api/v1/special-topics", tags=["special-topics"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["users"])

    return app


app = create_app()
