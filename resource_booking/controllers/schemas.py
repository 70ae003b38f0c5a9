"""Request and response DTOs shared by the HTTP controllers."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from resource_booking.domain.models import (
    Booking,
    BookingDetail,
    BookingStatus,
    BookingWithDetails,
    Rating,
    Resource,
    ResourceCategory,
    User,
    UserRole,
)
from resource_booking.domain.statistics import BookingStatistics


class ResourceResponse(BaseModel):
    id: int
    name: str
    category: ResourceCategory
    subcategory: str
    capacity: Optional[int] = None
    hourly_rate: Decimal
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, resource: Resource) -> "ResourceResponse":
        return cls(
            id=resource.resource_id,
            name=resource.name,
            category=resource.category,
            subcategory=resource.subcategory,
            capacity=resource.capacity,
            hourly_rate=resource.hourly_rate,
            description=resource.description,
            is_active=resource.is_active,
            created_at=resource.created_at,
        )


class BookingResponse(BaseModel):
    id: int
    requester_id: int
    resource_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.booking_id,
            requester_id=booking.requester_id,
            resource_id=booking.resource_id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
            total_amount=booking.total_amount,
            notes=booking.notes,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class RatingResponse(BaseModel):
    id: int
    booking_id: int
    requester_id: int
    score: int = Field(ge=1, le=5)
    feedback: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, rating: Rating) -> "RatingResponse":
        return cls(
            id=rating.rating_id,
            booking_id=rating.booking_id,
            requester_id=rating.requester_id,
            score=rating.score,
            feedback=rating.feedback,
            created_at=rating.created_at,
        )


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.user_id,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )


class BookingWithDetailsResponse(BookingResponse):
    resource: ResourceResponse
    rating: Optional[RatingResponse] = None
    requester: Optional[UserResponse] = None

    @classmethod
    def from_details(cls, item: BookingWithDetails) -> "BookingWithDetailsResponse":
        base = BookingResponse.from_domain(item.booking)
        return cls(
            **base.model_dump(),
            resource=ResourceResponse.from_domain(item.resource),
            rating=RatingResponse.from_domain(item.rating) if item.rating else None,
            requester=UserResponse.from_domain(item.requester) if item.requester else None,
        )


class BookingDetailResponse(BaseModel):
    booking_id: int
    resource_name: str
    resource_category: ResourceCategory
    resource_subcategory: str
    start_time: datetime
    end_time: datetime
    requester_username: Optional[str] = None
    requester_email: Optional[str] = None
    total_amount: Decimal
    status: BookingStatus
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, detail: BookingDetail) -> "BookingDetailResponse":
        return cls(
            booking_id=detail.booking_id,
            resource_name=detail.resource_name,
            resource_category=detail.resource_category,
            resource_subcategory=detail.resource_subcategory,
            start_time=detail.start_time,
            end_time=detail.end_time,
            requester_username=detail.requester_username,
            requester_email=detail.requester_email,
            total_amount=detail.total_amount,
            status=detail.status,
            notes=detail.notes,
        )


class StatisticsResponse(BaseModel):
    total_bookings: int = Field(ge=0)
    pending: int = Field(ge=0)
    confirmed: int = Field(ge=0)
    ongoing: int = Field(ge=0)
    completed: int = Field(ge=0)
    cancelled: int = Field(ge=0)
    total_revenue: Decimal

    @classmethod
    def from_domain(cls, statistics: BookingStatistics) -> "StatisticsResponse":
        return cls(**statistics.to_dict())


class CreateBookingRequest(BaseModel):
    """Input DTO; time ordering and future-start rules live in the service."""

    requester_id: int = Field(gt=0)
    resource_id: int = Field(gt=0)
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = Field(default=None, max_length=2000)


class CancelBookingRequest(BaseModel):
    requester_id: int = Field(gt=0)


class RateBookingRequest(BaseModel):
    # Score bounds are enforced by the service so that rating preconditions
    # are reported in a fixed order.
    requester_id: int = Field(gt=0)
    score: int
    feedback: Optional[str] = Field(default=None, max_length=2000)


class AdvanceStatusRequest(BaseModel):
    status: BookingStatus


class CreateResourceRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: ResourceCategory
    subcategory: str = Field(min_length=1, max_length=100)
    capacity: Optional[int] = None
    hourly_rate: Decimal = Field(max_digits=12, decimal_places=2)
    description: Optional[str] = None
    is_active: bool = True


class SetResourceActiveRequest(BaseModel):
    is_active: bool


class RegisterUserRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(min_length=3, max_length=254)
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def validate_email_shape(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class OperationsLoginRequest(BaseModel):
    operations_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
