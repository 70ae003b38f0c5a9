"""Rate calculation for bookings."""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


_SECONDS_PER_HOUR = Decimal(3600)
_MICROSECONDS_PER_SECOND = Decimal(1_000_000)


def _span_seconds(start: datetime, end: datetime) -> Decimal:
    delta = end - start
    seconds = Decimal(delta.days * 86_400 + delta.seconds)
    if delta.microseconds:
        seconds += Decimal(delta.microseconds) / _MICROSECONDS_PER_SECOND
    return seconds


def hours_between(start: datetime, end: datetime) -> Decimal:
    return _span_seconds(start, end) / _SECONDS_PER_HOUR


def compute_amount(hourly_rate: Decimal, start: datetime, end: datetime) -> Decimal:
    """Return `hourly_rate` times the fractional hours in [start, end).

    Callers validate `start < end`. Multiplication happens before the
    division by 3600 so whole-second spans stay exact.
    """
    return Decimal(hourly_rate) * _span_seconds(start, end) / _SECONDS_PER_HOUR


def quantize_amount(amount: Decimal, decimal_places: int = 2) -> Decimal:
    quantum = Decimal(1).scaleb(-decimal_places)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)
