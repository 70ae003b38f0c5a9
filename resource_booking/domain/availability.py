"""Half-open interval overlap rules for resource schedules."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from resource_booking.domain.models import Booking, BookingStatus


def spans_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """[s1, e1) and [s2, e2) overlap iff s1 < e2 and s2 < e1."""
    return first_start < second_end and second_start < first_end


def find_conflicts(
    bookings: Iterable[Booking],
    candidate_start: datetime,
    candidate_end: datetime,
    exclude_booking_id: Optional[int] = None,
) -> list[Booking]:
    """Return non-cancelled bookings whose span overlaps the candidate.

    Bookings in the past are not skipped; a stale pending booking still
    occupies its span.
    """
    return [
        booking
        for booking in bookings
        if booking.status is not BookingStatus.CANCELLED
        and booking.booking_id != exclude_booking_id
        and spans_overlap(
            booking.start_time,
            booking.end_time,
            candidate_start,
            candidate_end,
        )
    ]
