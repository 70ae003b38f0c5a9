"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from resource_booking.domain.errors import (
    AlreadyRated,
    BookingError,
    Forbidden,
    InvalidQuery,
    InvalidResource,
    InvalidScore,
    InvalidTimeRange,
    InvalidTransition,
    NotCompleted,
    NotFound,
    ResourceUnavailable,
    ScheduleConflict,
)
from resource_booking.services.auth_service import (
    AuthService,
    InvalidOperationsTokenError,
    OperationsTokenNotConfiguredError,
)
from resource_booking.services.booking_service import BookingService
from resource_booking.services.resource_service import ResourceService
from resource_booking.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)

_ERROR_STATUS_CODES: tuple[tuple[type[BookingError], int], ...] = (
    (InvalidTimeRange, status.HTTP_400_BAD_REQUEST),
    (InvalidScore, status.HTTP_400_BAD_REQUEST),
    (InvalidResource, status.HTTP_400_BAD_REQUEST),
    (InvalidQuery, status.HTTP_400_BAD_REQUEST),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ScheduleConflict, status.HTTP_409_CONFLICT),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (NotCompleted, status.HTTP_409_CONFLICT),
    (AlreadyRated, status.HTTP_409_CONFLICT),
    (ResourceUnavailable, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def http_error_for(exc: BookingError) -> HTTPException:
    """Translate a booking rule violation into the API's status code."""
    for error_type, status_code in _ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_booking_service(request: Request) -> BookingService:
    service = getattr(request.app.state, "booking_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Booking service is not initialized",
        )
    return service


def get_resource_service(request: Request) -> ResourceService:
    service = getattr(request.app.state, "resource_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Resource service is not initialized",
        )
    return service


async def require_operations(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if not auth_service.auth_enabled:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        auth_service.validate_bearer_token(credentials.credentials)
    except (OperationsTokenNotConfiguredError, InvalidOperationsTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
