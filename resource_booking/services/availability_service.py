"""Schedule conflict detection backed by persisted bookings."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from resource_booking.domain.availability import find_conflicts
from resource_booking.domain.models import Booking, BookingStatus, ensure_utc
from resource_booking.repository.data_repository import DataRepository
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)

_BLOCKING_STATUSES = tuple(
    status for status in BookingStatus if status is not BookingStatus.CANCELLED
)


class AvailabilityChecker:
    """Answers whether a candidate span collides with an active booking."""

    def __init__(self, repository: DataRepository) -> None:
        self._repository = repository

    def conflicting_bookings(
        self,
        resource_id: int,
        candidate_start: datetime,
        candidate_end: datetime,
        exclude_booking_id: Optional[int] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[Booking]:
        bookings = self._repository.list_resource_bookings(
            resource_id,
            statuses=_BLOCKING_STATUSES,
            conn=conn,
        )
        return find_conflicts(
            bookings,
            ensure_utc(candidate_start),
            ensure_utc(candidate_end),
            exclude_booking_id=exclude_booking_id,
        )

    def has_conflict(
        self,
        resource_id: int,
        candidate_start: datetime,
        candidate_end: datetime,
        exclude_booking_id: Optional[int] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        conflicts = self.conflicting_bookings(
            resource_id,
            candidate_start,
            candidate_end,
            exclude_booking_id=exclude_booking_id,
            conn=conn,
        )
        if conflicts:
            logger.debug(
                "Resource %s span %s..%s conflicts with bookings %s",
                resource_id,
                candidate_start.isoformat(),
                candidate_end.isoformat(),
                [booking.booking_id for booking in conflicts],
            )
        return bool(conflicts)
