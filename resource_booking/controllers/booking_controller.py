"""HTTP controller layer for requester-facing booking operations."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from resource_booking.controllers.dependencies import (
    get_booking_service,
    get_resource_service,
    http_error_for,
)
from resource_booking.controllers.schemas import (
    BookingResponse,
    BookingWithDetailsResponse,
    CancelBookingRequest,
    CreateBookingRequest,
    HealthResponse,
    RateBookingRequest,
    RatingResponse,
    ResourceResponse,
)
from resource_booking.domain.errors import BookingError
from resource_booking.domain.models import utc_now
from resource_booking.services.booking_service import BookingService
from resource_booking.services.resource_service import ResourceService
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=utc_now())


@router.get(
    "/resources",
    response_model=list[ResourceResponse],
    status_code=status.HTTP_200_OK,
)
def list_resources(
    service: ResourceService = Depends(get_resource_service),
) -> list[ResourceResponse]:
    """Active resources only; inactive ones cannot be booked."""
    try:
        return [ResourceResponse.from_domain(item) for item in service.list_active_resources()]
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected resource listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list resources",
        ) from exc


@router.post(
    "/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    payload: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.create_booking(
            requester_id=payload.requester_id,
            resource_id=payload.resource_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            notes=payload.notes,
        )
        return BookingResponse.from_domain(booking)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected booking creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking",
        ) from exc


@router.get(
    "/users/{user_id}/bookings",
    response_model=list[BookingWithDetailsResponse],
    status_code=status.HTTP_200_OK,
)
def list_user_bookings(
    user_id: int,
    limit: Optional[int] = None,
    offset: int = 0,
    service: BookingService = Depends(get_booking_service),
) -> list[BookingWithDetailsResponse]:
    """Every booking of the requester unless `limit` asks for one page."""
    try:
        items = service.list_requester_bookings(user_id, limit=limit, offset=offset)
        return [BookingWithDetailsResponse.from_details(item) for item in items]
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected user booking listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list bookings",
        ) from exc


@router.post(
    "/bookings/{booking_id}/cancel",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def cancel_booking(
    booking_id: int,
    payload: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.cancel_booking(booking_id, payload.requester_id)
        return BookingResponse.from_domain(booking)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected booking cancellation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel booking",
        ) from exc


@router.post(
    "/bookings/{booking_id}/rating",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
)
def rate_booking(
    booking_id: int,
    payload: RateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> RatingResponse:
    try:
        rating = service.rate_booking(
            booking_id,
            payload.requester_id,
            payload.score,
            payload.feedback,
        )
        return RatingResponse.from_domain(rating)
    except BookingError as exc:
        raise http_error_for(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected rating failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to rate booking",
        ) from exc
