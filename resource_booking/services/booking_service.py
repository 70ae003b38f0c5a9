"""Booking orchestration: creation, lifecycle changes, ratings, statistics."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime
from typing import Optional

from resource_booking.domain import lifecycle
from resource_booking.domain.constraints import validate_booking_query, validate_score
from resource_booking.domain.errors import (
    AlreadyRated,
    Forbidden,
    InvalidTimeRange,
    InvalidTransition,
    NotCompleted,
    NotFound,
    ResourceUnavailable,
    ScheduleConflict,
)
from resource_booking.domain.models import (
    Booking,
    BookingDetail,
    BookingQuery,
    BookingStatus,
    BookingWithDetails,
    Clock,
    Rating,
    ensure_utc,
    utc_now,
)
from resource_booking.domain.rates import compute_amount, quantize_amount
from resource_booking.domain.statistics import BookingStatistics, aggregate
from resource_booking.repository.data_repository import DataRepository
from resource_booking.services.availability_service import AvailabilityChecker
from resource_booking.utils.config import Settings, get_settings
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)


class BookingService:
    """Public contract of the scheduling engine.

    Each mutating operation runs inside one write transaction of the
    repository, so the availability check and the insert that follows it
    cannot interleave with another writer.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        availability_checker: Optional[AvailabilityChecker] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._availability = availability_checker or AvailabilityChecker(self._repository)
        self._clock = clock or utc_now

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def create_booking(
        self,
        *,
        requester_id: int,
        resource_id: int,
        start_time: datetime,
        end_time: datetime,
        notes: Optional[str] = None,
    ) -> Booking:
        start = ensure_utc(start_time)
        end = ensure_utc(end_time)
        if start >= end:
            raise InvalidTimeRange("Start time must be before end time")
        now = self._now()
        if start <= now:
            raise InvalidTimeRange("Start time must be in the future")

        with self._repository.write_transaction() as conn:
            resource = self._repository.get_resource(resource_id, conn=conn)
            if resource is None or not resource.is_active:
                logger.warning("Booking rejected: resource %s unavailable", resource_id)
                raise ResourceUnavailable(f"Resource {resource_id} not found or inactive")

            if self._availability.has_conflict(resource_id, start, end, conn=conn):
                logger.warning(
                    "Booking rejected: resource %s already booked in %s..%s",
                    resource_id,
                    start.isoformat(),
                    end.isoformat(),
                )
                raise ScheduleConflict(
                    "Resource is not available during the requested time period"
                )

            total_amount = quantize_amount(
                compute_amount(resource.hourly_rate, start, end),
                self._settings.currency_decimal_places,
            )
            booking = self._repository.insert_booking(
                requester_id=requester_id,
                resource_id=resource_id,
                start_time=start,
                end_time=end,
                total_amount=total_amount,
                notes=notes,
                created_at=now,
                conn=conn,
            )

        logger.info(
            "Booking %s created for resource %s by requester %s (amount=%s)",
            booking.booking_id,
            resource_id,
            requester_id,
            booking.total_amount,
        )
        return booking

    def _apply_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
        conn: sqlite3.Connection,
    ) -> Booking:
        updated = self._repository.update_booking_status(
            booking.booking_id,
            expected_status=booking.status,
            new_status=new_status,
            updated_at=self._now(),
            conn=conn,
        )
        if updated is None:
            current = self._repository.get_booking(booking.booking_id, conn=conn)
            raise InvalidTransition(
                current=current.status if current is not None else booking.status,
                requested=new_status,
            )
        return updated

    def cancel_booking(self, booking_id: int, requester_id: int) -> Booking:
        """Cancel on behalf of the owning requester.

        A booking that exists but belongs to someone else is reported as
        NotFound, same as a missing one.
        """
        with self._repository.write_transaction() as conn:
            booking = self._repository.get_requester_booking(
                booking_id,
                requester_id,
                conn=conn,
            )
            if booking is None:
                raise NotFound("Booking not found or does not belong to user")
            new_status = lifecycle.requester_cancel(booking.status)
            updated = self._apply_status(booking, new_status, conn)

        logger.info("Booking %s cancelled by requester %s", booking_id, requester_id)
        return updated

    def advance_status(self, booking_id: int, new_status: BookingStatus) -> Booking:
        """Operations-only transition through the full lifecycle table."""
        with self._repository.write_transaction() as conn:
            booking = self._repository.get_booking(booking_id, conn=conn)
            if booking is None:
                raise NotFound(f"Booking with id {booking_id} not found")
            try:
                target = lifecycle.transition(booking.status, new_status)
            except InvalidTransition:
                logger.warning(
                    "Booking %s: rejected transition %s -> %s",
                    booking_id,
                    booking.status.value,
                    new_status.value,
                )
                raise
            updated = self._apply_status(booking, target, conn)

        logger.info(
            "Booking %s moved %s -> %s",
            booking_id,
            booking.status.value,
            updated.status.value,
        )
        return updated

    def rate_booking(
        self,
        booking_id: int,
        requester_id: int,
        score: int,
        feedback: Optional[str] = None,
    ) -> Rating:
        try:
            with self._repository.write_transaction() as conn:
                booking = self._repository.get_booking(booking_id, conn=conn)
                if booking is None:
                    raise NotFound(f"Booking with id {booking_id} not found")
                if booking.status is not BookingStatus.COMPLETED:
                    raise NotCompleted("Only completed bookings can be rated")
                if booking.requester_id != requester_id:
                    raise Forbidden("Booking does not belong to user")
                if self._repository.get_rating_for_booking(booking_id, conn=conn) is not None:
                    raise AlreadyRated("Rating already exists for this booking")
                validate_score(score)
                rating = self._repository.insert_rating(
                    booking_id=booking_id,
                    requester_id=requester_id,
                    score=score,
                    feedback=feedback,
                    created_at=self._now(),
                    conn=conn,
                )
        except sqlite3.IntegrityError as exc:
            raise AlreadyRated("Rating already exists for this booking") from exc

        logger.info("Booking %s rated %s by requester %s", booking_id, score, requester_id)
        return rating

    def get_statistics(
        self,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> BookingStatistics:
        start = ensure_utc(window_start) if window_start is not None else None
        end = ensure_utc(window_end) if window_end is not None else None
        bookings = self._repository.list_bookings_created_between(start, end)
        return aggregate(bookings, window_start=start, window_end=end)

    @property
    def default_page_limit(self) -> int:
        return self._settings.bookings_page_default_limit

    def _normalized_query(self, query: BookingQuery) -> BookingQuery:
        normalized = replace(
            query,
            start_from=ensure_utc(query.start_from) if query.start_from is not None else None,
            start_to=ensure_utc(query.start_to) if query.start_to is not None else None,
        )
        validate_booking_query(normalized, self._settings.bookings_page_max_limit)
        return normalized

    def list_bookings(self, query: BookingQuery) -> list[BookingWithDetails]:
        return self._repository.query_bookings(self._normalized_query(query))

    def list_requester_bookings(
        self,
        requester_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[BookingWithDetails]:
        """All of a requester's bookings, or one page when `limit` is given."""
        if limit is not None:
            return self.list_bookings(
                BookingQuery(requester_id=requester_id, limit=limit, offset=offset)
            )
        query = self._normalized_query(
            BookingQuery(
                requester_id=requester_id,
                limit=self.default_page_limit,
                offset=offset,
            )
        )
        return self._repository.query_bookings(query, paginate=False)

    def get_booking_detail(self, booking_id: int) -> BookingDetail:
        detail = self._repository.get_booking_detail(booking_id)
        if detail is None:
            raise NotFound(f"Booking with id {booking_id} not found")
        return detail
