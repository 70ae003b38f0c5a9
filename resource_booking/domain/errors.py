"""Typed business-rule failures surfaced by the booking engine."""

from __future__ import annotations

from resource_booking.domain.models import BookingStatus


class BookingError(Exception):
    """Base class for recoverable booking rule violations."""


class InvalidTimeRange(BookingError):
    """Raised when start is not before end, or start is not in the future."""


class ResourceUnavailable(BookingError):
    """Raised when the resource does not exist or is inactive."""


class ScheduleConflict(BookingError):
    """Raised when an active booking already overlaps the requested span."""


class NotFound(BookingError):
    """Raised when an entity is missing or not visible to the caller."""


class Forbidden(BookingError):
    """Raised when the caller lacks rights over an existing entity."""


class InvalidTransition(BookingError):
    """Raised when the requested status is not reachable from the current one."""

    def __init__(self, current: BookingStatus, requested: BookingStatus) -> None:
        super().__init__(
            f"Invalid status transition from {current.value} to {requested.value}"
        )
        self.current = current
        self.requested = requested


class NotCompleted(BookingError):
    """Raised when rating a booking that has not completed."""


class AlreadyRated(BookingError):
    """Raised when a rating already exists for the booking."""


class InvalidScore(BookingError):
    """Raised when a rating score falls outside 1..5."""


class InvalidResource(BookingError):
    """Raised when resource or user registration input is invalid."""


class DuplicateUser(InvalidResource):
    """Raised when a username or email is already registered."""


class InvalidQuery(BookingError):
    """Raised when booking listing filters or paging are invalid."""
