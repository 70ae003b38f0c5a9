"""Controller layer for operations-role endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from resource_booking.controllers.dependencies import (
    get_auth_service,
    get_booking_service,
    get_resource_service,
    http_error_for,
    require_operations,
)
from resource_booking.controllers.schemas import (
    AdvanceStatusRequest,
    BookingDetailResponse,
    BookingResponse,
    BookingWithDetailsResponse,
    CreateResourceRequest,
    LoginResponse,
    OperationsLoginRequest,
    RegisterUserRequest,
    ResourceResponse,
    SetResourceActiveRequest,
    StatisticsResponse,
    UserResponse,
)
from resource_booking.domain.errors import BookingError
from resource_booking.domain.models import BookingQuery, BookingStatus, ResourceCategory
from resource_booking.services.auth_service import (
    AuthService,
    InvalidOperationsTokenError,
    OperationsTokenNotConfiguredError,
)
from resource_booking.services.booking_service import BookingService
from resource_booking.services.resource_service import ResourceService
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/operations", tags=["operations"])


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: OperationsLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.operations_token)
        return LoginResponse(access_token=bearer)
    except (OperationsTokenNotConfiguredError, InvalidOperationsTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected operations login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to log in",
        ) from exc


@router.post(
    "/resources",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_operations)],
)
def create_resource(
    payload: CreateResourceRequest,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    try:
        resource = service.create_resource(
            name=payload.name,
            category=payload.category,
            subcategory=payload.subcategory,
            capacity=payload.capacity,
            hourly_rate=payload.hourly_rate,
            description=payload.description,
            is_active=payload.is_active,
        )
        return ResourceResponse.from_domain(resource)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected resource creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create resource",
        ) from exc


@router.post(
    "/resources/{resource_id}/active",
    response_model=ResourceResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_operations)],
)
def set_resource_active(
    resource_id: int,
    payload: SetResourceActiveRequest,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    try:
        resource = service.set_resource_active(resource_id, payload.is_active)
        return ResourceResponse.from_domain(resource)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:
        logger.exception("Unexpected resource activation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update resource",
        ) from exc


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_operations)],
)
def register_user(
    payload: RegisterUserRequest,
    service: ResourceService = Depends(get_resource_service),
) -> UserResponse:
    try:
        user = service.register_user(
            username=payload.username,
            email=payload.email,
            role=payload.role,
        )
        return UserResponse.from_domain(user)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:
        logger.exception("Unexpected user registration failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register user",
        ) from exc


@router.get(
    "/bookings",
    response_model=list[BookingWithDetailsResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_operations)],
)
def list_bookings(
    requester_id: Optional[int] = Query(default=None, gt=0),
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    category: Optional[ResourceCategory] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    service: BookingService = Depends(get_booking_service),
) -> list[BookingWithDetailsResponse]:
    try:
        items = service.list_bookings(
            BookingQuery(
                requester_id=requester_id,
                status=booking_status,
                category=category,
                start_from=start_from,
                start_to=start_to,
                limit=limit if limit is not None else service.default_page_limit,
                offset=offset,
            )
        )
        return [BookingWithDetailsResponse.from_details(item) for item in items]
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected booking listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list bookings",
        ) from exc


@router.post(
    "/bookings/{booking_id}/status",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_operations)],
)
def advance_status(
    booking_id: int,
    payload: AdvanceStatusRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.advance_status(booking_id, payload.status)
        return BookingResponse.from_domain(booking)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected status update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking status",
        ) from exc


@router.get(
    "/bookings/{booking_id}/detail",
    response_model=BookingDetailResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_operations)],
)
def booking_detail(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
) -> BookingDetailResponse:
    """Plain-value projection for the external share formatter."""
    try:
        return BookingDetailResponse.from_domain(service.get_booking_detail(booking_id))
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:
        logger.exception("Unexpected booking detail failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load booking detail",
        ) from exc


@router.get(
    "/statistics",
    response_model=StatisticsResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_operations)],
)
def get_statistics(
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
    service: BookingService = Depends(get_booking_service),
) -> StatisticsResponse:
    try:
        return StatisticsResponse.from_domain(
            service.get_statistics(window_start=window_start, window_end=window_end)
        )
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected statistics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute statistics",
        ) from exc
