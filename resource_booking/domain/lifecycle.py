"""Booking lifecycle state machine.

    pending -> confirmed -> ongoing -> completed
    cancelled is reachable from pending, confirmed and ongoing.

completed and cancelled are terminal. The table is keyed by every
`BookingStatus` member; a status added to the enum without a row here fails
at import time.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from resource_booking.domain.errors import Forbidden, InvalidTransition
from resource_booking.domain.models import BookingStatus


ALLOWED_TRANSITIONS: Mapping[BookingStatus, frozenset[BookingStatus]] = MappingProxyType(
    {
        BookingStatus.PENDING: frozenset(
            {BookingStatus.CONFIRMED, BookingStatus.CANCELLED}
        ),
        BookingStatus.CONFIRMED: frozenset(
            {BookingStatus.ONGOING, BookingStatus.CANCELLED}
        ),
        BookingStatus.ONGOING: frozenset(
            {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
        ),
        BookingStatus.COMPLETED: frozenset(),
        BookingStatus.CANCELLED: frozenset(),
    }
)

REQUESTER_CANCELLABLE: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def _check_table_is_exhaustive() -> None:
    missing = set(BookingStatus) - set(ALLOWED_TRANSITIONS)
    if missing:
        names = ", ".join(sorted(status.value for status in missing))
        raise RuntimeError(f"Transition table has no entry for: {names}")


_check_table_is_exhaustive()


def allowed_targets(current: BookingStatus) -> frozenset[BookingStatus]:
    return ALLOWED_TRANSITIONS[current]


def transition(current: BookingStatus, requested: BookingStatus) -> BookingStatus:
    """Return `requested` when the table permits it, else raise."""
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current=current, requested=requested)
    return requested


def requester_cancel(current: BookingStatus) -> BookingStatus:
    """Apply the owning requester's cancellation policy on top of the table.

    Terminal statuses fail through the table. An ongoing booking is
    cancellable by the table but only operations staff may do it.
    """
    if current not in REQUESTER_CANCELLABLE and current not in TERMINAL_STATUSES:
        raise Forbidden(
            f"Bookings with status {current.value} can only be cancelled by operations"
        )
    return transition(current, BookingStatus.CANCELLED)
