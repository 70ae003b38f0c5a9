"""Aggregation of bookings into operational statistics."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from resource_booking.domain.models import Booking, BookingStatus


@dataclass(frozen=True)
class BookingStatistics:
    total_count: int
    per_status_counts: Mapping[BookingStatus, int]
    total_revenue: Decimal

    def to_dict(self) -> dict[str, int | Decimal]:
        payload: dict[str, int | Decimal] = {"total_bookings": self.total_count}
        for status in BookingStatus:
            payload[status.value] = self.per_status_counts[status]
        payload["total_revenue"] = self.total_revenue
        return payload


def in_window(
    created_at: datetime,
    window_start: Optional[datetime],
    window_end: Optional[datetime],
) -> bool:
    if window_start is not None and created_at < window_start:
        return False
    if window_end is not None and created_at > window_end:
        return False
    return True


def aggregate(
    bookings: Iterable[Booking],
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> BookingStatistics:
    """Count bookings per status and sum their recorded amounts.

    Both window bounds are inclusive on `created_at`. Revenue includes the
    recorded amount of cancelled bookings: it reports booked value, not
    realized income.
    """
    included = [
        booking
        for booking in bookings
        if in_window(booking.created_at, window_start, window_end)
    ]
    counts = Counter(booking.status for booking in included)
    per_status = {status: counts.get(status, 0) for status in BookingStatus}
    revenue = sum((booking.total_amount for booking in included), Decimal("0"))
    return BookingStatistics(
        total_count=len(included),
        per_status_counts=per_status,
        total_revenue=revenue,
    )
