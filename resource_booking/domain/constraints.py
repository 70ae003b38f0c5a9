"""Domain-level validation rules for catalog entries and booking queries."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from resource_booking.domain.errors import InvalidQuery, InvalidResource, InvalidScore
from resource_booking.domain.models import BookingQuery, ResourceCategory


MIN_SCORE = 1
MAX_SCORE = 5
MAX_HOURLY_RATE = Decimal("1000000")


@dataclass(frozen=True)
class ResourceSpec:
    name: str
    category: ResourceCategory
    subcategory: str
    capacity: Optional[int]
    hourly_rate: Decimal
    description: Optional[str]
    is_active: bool = True


def validate_resource_spec(spec: ResourceSpec) -> None:
    if not spec.name.strip():
        raise InvalidResource("name must be non-empty")
    if not spec.subcategory.strip():
        raise InvalidResource("subcategory must be non-empty")
    if spec.capacity is not None and spec.capacity <= 0:
        raise InvalidResource("capacity must be > 0 when provided")
    try:
        rate = Decimal(spec.hourly_rate)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidResource("hourly_rate must be a decimal number") from exc
    if not rate.is_finite() or rate <= 0:
        raise InvalidResource("hourly_rate must be > 0")
    if rate > MAX_HOURLY_RATE:
        raise InvalidResource(f"hourly_rate must be <= {MAX_HOURLY_RATE}")


def validate_user_contact(username: str, email: str) -> None:
    if not 3 <= len(username.strip()) <= 50:
        raise InvalidResource("username must be between 3 and 50 characters")
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise InvalidResource("email must be a valid address")


def validate_booking_query(query: BookingQuery, max_limit: int) -> None:
    if query.limit <= 0:
        raise InvalidQuery("limit must be > 0")
    if query.limit > max_limit:
        raise InvalidQuery(f"limit must be <= {max_limit}")
    if query.offset < 0:
        raise InvalidQuery("offset must be >= 0")
    if (
        query.start_from is not None
        and query.start_to is not None
        and query.start_from > query.start_to
    ):
        raise InvalidQuery("start_from must not be after start_to")


def validate_score(score: int) -> None:
    if isinstance(score, bool) or not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidScore(f"score must be an integer between {MIN_SCORE} and {MAX_SCORE}")
