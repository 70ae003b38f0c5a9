"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and services, registers routers, and creates the
schema before the first request.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from resource_booking.controllers.booking_controller import router as booking_router
from resource_booking.controllers.operations_controller import router as operations_router
from resource_booking.domain.models import Clock
from resource_booking.repository.data_repository import DataRepository
from resource_booking.services.auth_service import AuthService
from resource_booking.services.availability_service import AvailabilityChecker
from resource_booking.services.booking_service import BookingService
from resource_booking.services.resource_service import ResourceService
from resource_booking.utils.config import Settings, get_settings
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services hold no state between requests; everything they share lives in
    the database behind the repository.
    """
    settings = settings or get_settings()

    repository = DataRepository(settings)
    availability_checker = AvailabilityChecker(repository)
    booking_service = BookingService(
        repository=repository,
        settings=settings,
        availability_checker=availability_checker,
        clock=clock,
    )
    resource_service = ResourceService(
        repository=repository,
        settings=settings,
        clock=clock,
    )
    auth_service = AuthService(settings=settings, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the schema before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(booking_router)
    app.include_router(operations_router)

    app.state.repository = repository
    app.state.booking_service = booking_service
    app.state.resource_service = resource_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    """Idempotent startup sequence. Safe to re-run on server restarts."""
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    logger.info("Startup complete, accepting bookings")


# Module-level app object for uvicorn
app = create_app()
