"""Domain models for resources, bookings, and ratings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC instant; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ResourceCategory(str, Enum):
    MEETING_ROOM = "meeting_room"
    CRANE_SERVICE = "crane_service"
    FORKLIFT_SERVICE = "forklift_service"


class UserRole(str, Enum):
    USER = "user"
    OPERATIONS = "operations"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Resource:
    resource_id: int
    name: str
    category: ResourceCategory
    subcategory: str
    capacity: Optional[int]
    hourly_rate: Decimal
    description: Optional[str]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class User:
    user_id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime


@dataclass(frozen=True)
class Booking:
    booking_id: int
    requester_id: int
    resource_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    total_amount: Decimal
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Rating:
    rating_id: int
    booking_id: int
    requester_id: int
    score: int
    feedback: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class BookingWithDetails:
    """Booking joined with its resource, optional rating and requester record.

    `requester` is None when no user row matches the booking's requester id.
    """

    booking: Booking
    resource: Resource
    rating: Optional[Rating]
    requester: Optional[User] = None


@dataclass(frozen=True)
class BookingDetail:
    """Plain-value projection handed to the share/export formatter."""

    booking_id: int
    resource_name: str
    resource_category: ResourceCategory
    resource_subcategory: str
    start_time: datetime
    end_time: datetime
    requester_username: Optional[str]
    requester_email: Optional[str]
    total_amount: Decimal
    status: BookingStatus
    notes: Optional[str]


@dataclass(frozen=True)
class BookingQuery:
    requester_id: Optional[int] = None
    status: Optional[BookingStatus] = None
    category: Optional[ResourceCategory] = None
    start_from: Optional[datetime] = None
    start_to: Optional[datetime] = None
    limit: int = 50
    offset: int = 0
