"""
FastAPI application factory.

* Registers routes for rides, users and admin.
* Opens / closes the Redis read cache via lifespan events and exposes it on
  ``app.state.cache`` for dependency injection.
* Renders every ``CarpoolError`` as a typed JSON error.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from carpool.api.middleware import limiter
from carpool.api.routes import admin, rides, users
from carpool.config import settings
from carpool.domain.errors import CarpoolError
from carpool.infrastructure.cache import ReadCache
from carpool.infrastructure.redis_client import create_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the read cache on startup; close it on shutdown."""
    app.state.cache = ReadCache(create_redis(settings.redis_url))
    logger.info("Read cache ready (ttl=%ds)", settings.cache_ttl_seconds)
    yield
    await app.state.cache.close()
    logger.info("Read cache closed")


async def carpool_error_handler(request: Request, exc: CarpoolError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="Carpool Ride Engine API",
        description=(
            "Drivers publish trips with fixed seat capacity; passengers "
            "discover matching routes and reserve seats without "
            "overselling.  Rides move through a lifecycle to completion "
            "or cancellation."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Typed engine errors
    app.add_exception_handler(CarpoolError, carpool_error_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
