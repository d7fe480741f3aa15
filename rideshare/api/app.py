"""
FastAPI application factory.

* Registers routes for rides, ride requests and admin.
* Opens / disposes the database client via lifespan events (unless one was
  injected, e.g. by tests).
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rideshare.api.errors import register_error_handlers
from rideshare.api.middleware import limiter
from rideshare.api.routes import admin, requests, rides
from rideshare.config import settings
from rideshare.infrastructure.database import Database, create_database

logging.basicConfig(level=settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database client on startup; dispose it on shutdown."""
    owned = getattr(app.state, "database", None) is None
    if owned:
        app.state.database = create_database(settings)
        logger.info("Database client opened")
    yield
    if owned:
        await app.state.database.dispose()
        logger.info("Database client closed")


def create_app(database: Optional[Database] = None) -> FastAPI:
    app = FastAPI(
        title="Ride Sharing Coordination API",
        description=(
            "Drivers publish scheduled or time-window rides, passengers "
            "search and request seats, drivers accept or revoke requests. "
            "Seat counts stay consistent with accepted requests under "
            "concurrent operations."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    if database is not None:
        app.state.database = database

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(requests.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
