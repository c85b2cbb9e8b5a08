"""
Content Discovery API entry point.

Wires logging, error rendering, telemetry and the discovery/health routers
into a single FastAPI application.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from discovery.api.routers import discovery_router, health_router
from discovery.config import get_settings
from discovery.config.logging import configure_logging
from discovery.core.exceptions import AppException, DiscoveryUnavailableError
from discovery.core.telemetry import setup_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()

    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(
        f"Search cache TTL {settings.SEARCH_CACHE_TTL_SEC}s, "
        f"breaker opens after {settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD} failures"
    )

    yield

    logger.info(f"Stopping {settings.APP_NAME}")


# =============================================================================
# Error rendering
# =============================================================================


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def discovery_unavailable_handler(
    request: Request,
    exc: DiscoveryUnavailableError,
) -> JSONResponse:
    """Content source outage: log the failed operation, answer 503."""
    logger.warning(
        f"Discovery unavailable for {request.url.path}: "
        f"{exc.operation} failed ({exc.details['cause']})"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


def create_app() -> FastAPI:
    """Build the discovery application from current settings."""
    settings = get_settings()
    configure_logging(debug=settings.DEBUG)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
        Search, related content and recommendations for a psychology
        knowledge hub.

        - Relevance-scored search with a TTL result cache
        - Weighted similarity for related items and cross-links
        - Recommendations mixing items, blog posts and projects
        - View, bookmark and completion tracking with decayed popularity
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(DiscoveryUnavailableError, discovery_unavailable_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(discovery_router)

    setup_telemetry(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("discovery.main:app", host="0.0.0.0", port=8000, reload=True)
