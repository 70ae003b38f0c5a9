from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from resource_booking.domain.errors import (
    AlreadyRated,
    DuplicateUser,
    Forbidden,
    InvalidQuery,
    InvalidResource,
    InvalidScore,
    InvalidTimeRange,
    InvalidTransition,
    NotCompleted,
    NotFound,
    ResourceUnavailable,
    ScheduleConflict,
)
from resource_booking.domain.models import (
    BookingQuery,
    BookingStatus,
    ResourceCategory,
    UserRole,
)
from resource_booking.repository.data_repository import DataRepository
from resource_booking.services.booking_service import BookingService
from resource_booking.services.resource_service import ResourceService
from resource_booking.utils.config import Settings, get_settings


NOW = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
TOMORROW_10 = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _build_test_settings(tmp_path: Path, filename: str, **overrides) -> Settings:
    return replace(get_settings(), database_path=tmp_path / filename, **overrides)


def _build_services(tmp_path: Path, filename: str = "bookings.db", **overrides):
    settings = _build_test_settings(tmp_path, filename, **overrides)
    repository = DataRepository(settings)
    repository.initialize_database()
    clock = FixedClock(NOW)
    booking_service = BookingService(repository=repository, settings=settings, clock=clock)
    resource_service = ResourceService(repository=repository, settings=settings, clock=clock)
    return booking_service, resource_service, repository, clock


def _create_room(resource_service: ResourceService, rate: str = "50.00", **overrides):
    fields = {
        "name": "Conference Room A",
        "category": ResourceCategory.MEETING_ROOM,
        "subcategory": "standard_room",
        "capacity": 10,
        "hourly_rate": Decimal(rate),
    }
    fields.update(overrides)
    return resource_service.create_resource(**fields)


def _hours(start_hour: int, end_hour: int) -> tuple[datetime, datetime]:
    return TOMORROW_10.replace(hour=start_hour), TOMORROW_10.replace(hour=end_hour)


def _book(booking_service, resource_id: int, start_hour: int, end_hour: int, requester_id: int = 1):
    start, end = _hours(start_hour, end_hour)
    return booking_service.create_booking(
        requester_id=requester_id,
        resource_id=resource_id,
        start_time=start,
        end_time=end,
    )


def _complete(booking_service: BookingService, booking_id: int) -> None:
    for status in (BookingStatus.CONFIRMED, BookingStatus.ONGOING, BookingStatus.COMPLETED):
        booking_service.advance_status(booking_id, status)


# --- creation ---

def test_simple_booking_is_pending_and_priced(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)

    booking = _book(booking_service, room.resource_id, 10, 12)

    assert booking.status is BookingStatus.PENDING
    assert booking.total_amount == Decimal("100.00")
    assert booking.created_at == NOW
    assert booking.updated_at == NOW
    assert booking.start_time.tzinfo is not None


def test_overlapping_request_is_rejected(tmp_path: Path) -> None:
    booking_service, resource_service, repository, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    _book(booking_service, room.resource_id, 10, 12)

    with pytest.raises(ScheduleConflict):
        _book(booking_service, room.resource_id, 11, 13, requester_id=2)

    assert repository.count_bookings() == 1


def test_touching_boundary_is_accepted(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    _book(booking_service, room.resource_id, 10, 12)

    second = _book(booking_service, room.resource_id, 12, 13, requester_id=2)

    assert second.status is BookingStatus.PENDING


def test_cancellation_frees_the_slot(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    first = _book(booking_service, room.resource_id, 10, 12)

    cancelled = booking_service.cancel_booking(first.booking_id, requester_id=1)
    replacement = _book(booking_service, room.resource_id, 10, 12, requester_id=2)

    assert cancelled.status is BookingStatus.CANCELLED
    assert replacement.status is BookingStatus.PENDING


def test_stale_pending_booking_still_blocks(tmp_path: Path) -> None:
    booking_service, resource_service, _, clock = _build_services(tmp_path)
    room = _create_room(resource_service)
    _book(booking_service, room.resource_id, 10, 12)

    clock.now = NOW + timedelta(hours=1)

    with pytest.raises(ScheduleConflict):
        _book(booking_service, room.resource_id, 10, 11, requester_id=2)


def test_different_resources_do_not_conflict(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room_a = _create_room(resource_service)
    room_b = _create_room(resource_service, name="Conference Room B")
    _book(booking_service, room_a.resource_id, 10, 12)

    assert _book(booking_service, room_b.resource_id, 10, 12).resource_id == room_b.resource_id


def test_start_after_end_is_invalid(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)

    with pytest.raises(InvalidTimeRange):
        _book(booking_service, room.resource_id, 12, 10)
    with pytest.raises(InvalidTimeRange):
        _book(booking_service, room.resource_id, 10, 10)


def test_start_in_the_past_is_invalid(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)

    with pytest.raises(InvalidTimeRange):
        booking_service.create_booking(
            requester_id=1,
            resource_id=room.resource_id,
            start_time=NOW,
            end_time=NOW + timedelta(hours=1),
        )


def test_time_range_is_checked_before_resource(tmp_path: Path) -> None:
    booking_service, _, _, _ = _build_services(tmp_path)

    with pytest.raises(InvalidTimeRange):
        _book(booking_service, 999, 12, 10)


def test_missing_or_inactive_resource_is_unavailable(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service, is_active=False)

    with pytest.raises(ResourceUnavailable):
        _book(booking_service, room.resource_id, 10, 12)
    with pytest.raises(ResourceUnavailable):
        _book(booking_service, 999, 10, 12)


def test_resource_check_comes_before_conflict_check(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    _book(booking_service, room.resource_id, 10, 12)
    resource_service.set_resource_active(room.resource_id, False)

    with pytest.raises(ResourceUnavailable):
        _book(booking_service, room.resource_id, 10, 12, requester_id=2)


def test_deactivation_does_not_touch_existing_bookings(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    resource_service.set_resource_active(room.resource_id, False)

    confirmed = booking_service.advance_status(booking.booking_id, BookingStatus.CONFIRMED)

    assert confirmed.status is BookingStatus.CONFIRMED


def test_fractional_hours_and_naive_times(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service, rate="33.33")

    booking = booking_service.create_booking(
        requester_id=1,
        resource_id=room.resource_id,
        start_time=datetime(2026, 3, 2, 10, 0),
        end_time=datetime(2026, 3, 2, 11, 30),
    )

    assert booking.total_amount == Decimal("50.00")
    assert booking.start_time == TOMORROW_10


def test_concurrent_overlapping_requests_admit_exactly_one(tmp_path: Path) -> None:
    booking_service, resource_service, repository, _ = _build_services(tmp_path)
    room = _create_room(resource_service)

    def attempt(requester_id: int) -> str:
        try:
            _book(booking_service, room.resource_id, 10, 12, requester_id=requester_id)
            return "created"
        except ScheduleConflict:
            return "conflict"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(1, 9)))

    assert outcomes.count("created") == 1
    assert outcomes.count("conflict") == 7
    assert repository.count_bookings() == 1


# --- lifecycle ---

def test_operations_walk_the_full_lifecycle(tmp_path: Path) -> None:
    booking_service, resource_service, _, clock = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)

    clock.now = NOW + timedelta(minutes=5)
    confirmed = booking_service.advance_status(booking.booking_id, BookingStatus.CONFIRMED)
    ongoing = booking_service.advance_status(booking.booking_id, BookingStatus.ONGOING)
    completed = booking_service.advance_status(booking.booking_id, BookingStatus.COMPLETED)

    assert confirmed.status is BookingStatus.CONFIRMED
    assert confirmed.updated_at == NOW + timedelta(minutes=5)
    assert confirmed.created_at == NOW
    assert ongoing.status is BookingStatus.ONGOING
    assert completed.status is BookingStatus.COMPLETED


def test_skipping_a_step_is_invalid(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)

    with pytest.raises(InvalidTransition):
        booking_service.advance_status(booking.booking_id, BookingStatus.COMPLETED)


@pytest.mark.parametrize("target", list(BookingStatus))
def test_terminal_bookings_stay_terminal(tmp_path: Path, target: BookingStatus) -> None:
    booking_service, resource_service, repository, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    booking_service.cancel_booking(booking.booking_id, requester_id=1)

    with pytest.raises(InvalidTransition):
        booking_service.advance_status(booking.booking_id, target)

    assert repository.get_booking(booking.booking_id).status is BookingStatus.CANCELLED


def test_advance_unknown_booking_is_not_found(tmp_path: Path) -> None:
    booking_service, _, _, _ = _build_services(tmp_path)

    with pytest.raises(NotFound):
        booking_service.advance_status(404, BookingStatus.CONFIRMED)


def test_operations_may_cancel_ongoing_booking(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    booking_service.advance_status(booking.booking_id, BookingStatus.CONFIRMED)
    booking_service.advance_status(booking.booking_id, BookingStatus.ONGOING)

    cancelled = booking_service.advance_status(booking.booking_id, BookingStatus.CANCELLED)

    assert cancelled.status is BookingStatus.CANCELLED


# --- requester cancel ---

def test_cancel_by_other_requester_is_not_found(tmp_path: Path) -> None:
    booking_service, resource_service, repository, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)

    with pytest.raises(NotFound):
        booking_service.cancel_booking(booking.booking_id, requester_id=2)

    assert repository.get_booking(booking.booking_id).status is BookingStatus.PENDING


def test_requester_cannot_cancel_ongoing_booking(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    booking_service.advance_status(booking.booking_id, BookingStatus.CONFIRMED)
    booking_service.advance_status(booking.booking_id, BookingStatus.ONGOING)

    with pytest.raises(Forbidden):
        booking_service.cancel_booking(booking.booking_id, requester_id=1)


def test_cancelling_twice_is_invalid_transition(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    booking_service.cancel_booking(booking.booking_id, requester_id=1)

    with pytest.raises(InvalidTransition):
        booking_service.cancel_booking(booking.booking_id, requester_id=1)


# --- ratings ---

def test_rate_completed_booking(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    _complete(booking_service, booking.booking_id)

    rating = booking_service.rate_booking(booking.booking_id, 1, 5, "Great room")

    assert rating.score == 5
    assert rating.feedback == "Great room"
    assert rating.booking_id == booking.booking_id


def test_second_rating_is_rejected(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    _complete(booking_service, booking.booking_id)
    booking_service.rate_booking(booking.booking_id, 1, 4)

    with pytest.raises(AlreadyRated):
        booking_service.rate_booking(booking.booking_id, 1, 5)


def test_rating_errors_follow_precondition_order(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)

    with pytest.raises(NotFound):
        booking_service.rate_booking(404, 2, 9)
    # Not completed is reported before ownership and score.
    with pytest.raises(NotCompleted):
        booking_service.rate_booking(booking.booking_id, 2, 9)

    _complete(booking_service, booking.booking_id)
    with pytest.raises(Forbidden):
        booking_service.rate_booking(booking.booking_id, 2, 9)
    with pytest.raises(InvalidScore):
        booking_service.rate_booking(booking.booking_id, 1, 9)

    booking_service.rate_booking(booking.booking_id, 1, 3)
    with pytest.raises(AlreadyRated):
        booking_service.rate_booking(booking.booking_id, 1, 9)


# --- statistics ---

def test_statistics_over_mixed_statuses(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service, rate="100.00")
    pending = _book(booking_service, room.resource_id, 10, 11)
    confirmed = _book(booking_service, room.resource_id, 11, 13)
    completed = _book(booking_service, room.resource_id, 13, 14)
    cancelled = _book(booking_service, room.resource_id, 14, 15)
    booking_service.advance_status(confirmed.booking_id, BookingStatus.CONFIRMED)
    _complete(booking_service, completed.booking_id)
    booking_service.cancel_booking(cancelled.booking_id, requester_id=1)

    stats = booking_service.get_statistics()

    assert pending.status is BookingStatus.PENDING
    assert stats.total_count == 4
    assert stats.total_revenue == Decimal("500.00")
    assert stats.per_status_counts[BookingStatus.PENDING] == 1
    assert stats.per_status_counts[BookingStatus.CONFIRMED] == 1
    assert stats.per_status_counts[BookingStatus.ONGOING] == 0
    assert stats.per_status_counts[BookingStatus.COMPLETED] == 1
    assert stats.per_status_counts[BookingStatus.CANCELLED] == 1


def test_statistics_window_filters_on_creation(tmp_path: Path) -> None:
    booking_service, resource_service, _, clock = _build_services(tmp_path)
    room = _create_room(resource_service)
    _book(booking_service, room.resource_id, 10, 11)
    clock.now = NOW + timedelta(hours=2)
    _book(booking_service, room.resource_id, 11, 12)
    clock.now = NOW + timedelta(hours=4)
    _book(booking_service, room.resource_id, 12, 13)

    stats = booking_service.get_statistics(
        window_start=NOW + timedelta(hours=2),
        window_end=NOW + timedelta(hours=4),
    )

    assert stats.total_count == 2
    assert stats.total_revenue == Decimal("100.00")


def test_statistics_on_empty_store(tmp_path: Path) -> None:
    booking_service, _, _, _ = _build_services(tmp_path)

    stats = booking_service.get_statistics()

    assert stats.total_count == 0
    assert stats.total_revenue == Decimal("0")
    assert all(count == 0 for count in stats.per_status_counts.values())


# --- listings and detail ---

def test_list_bookings_filters_and_pages(tmp_path: Path) -> None:
    booking_service, resource_service, _, clock = _build_services(tmp_path)
    room = _create_room(resource_service)
    crane = _create_room(
        resource_service,
        rate="350.00",
        name="Crane 7",
        category=ResourceCategory.CRANE_SERVICE,
        subcategory="110_ton_crane",
        capacity=110,
    )
    first = _book(booking_service, room.resource_id, 10, 11, requester_id=1)
    clock.now = NOW + timedelta(minutes=1)
    second = _book(booking_service, crane.resource_id, 10, 11, requester_id=2)
    clock.now = NOW + timedelta(minutes=2)
    third = _book(booking_service, room.resource_id, 11, 12, requester_id=1)
    booking_service.advance_status(third.booking_id, BookingStatus.CONFIRMED)

    everything = booking_service.list_bookings(BookingQuery())
    assert [item.booking.booking_id for item in everything] == [
        third.booking_id,
        second.booking_id,
        first.booking_id,
    ]

    cranes = booking_service.list_bookings(BookingQuery(category=ResourceCategory.CRANE_SERVICE))
    assert [item.resource.name for item in cranes] == ["Crane 7"]

    confirmed = booking_service.list_bookings(BookingQuery(status=BookingStatus.CONFIRMED))
    assert [item.booking.booking_id for item in confirmed] == [third.booking_id]

    page = booking_service.list_bookings(BookingQuery(limit=1, offset=1))
    assert [item.booking.booking_id for item in page] == [second.booking_id]

    mine = booking_service.list_requester_bookings(1)
    assert {item.booking.booking_id for item in mine} == {first.booking_id, third.booking_id}


def test_list_bookings_rejects_bad_paging(tmp_path: Path) -> None:
    booking_service, _, _, _ = _build_services(tmp_path)

    with pytest.raises(InvalidQuery):
        booking_service.list_bookings(BookingQuery(limit=0))


def test_listing_includes_rating(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    booking = _book(booking_service, room.resource_id, 10, 12)
    _complete(booking_service, booking.booking_id)
    booking_service.rate_booking(booking.booking_id, 1, 4, "Fine")

    [item] = booking_service.list_requester_bookings(1)

    assert item.rating is not None
    assert item.rating.score == 4


def test_booking_detail_projection(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    user = resource_service.register_user(
        username="alice",
        email="Alice@Example.com",
        role=UserRole.USER,
    )
    room = _create_room(resource_service)
    booking = booking_service.create_booking(
        requester_id=user.user_id,
        resource_id=room.resource_id,
        start_time=TOMORROW_10,
        end_time=TOMORROW_10 + timedelta(hours=2),
        notes="Projector needed",
    )

    detail = booking_service.get_booking_detail(booking.booking_id)

    assert detail.resource_name == "Conference Room A"
    assert detail.resource_category is ResourceCategory.MEETING_ROOM
    assert detail.requester_username == "alice"
    assert detail.requester_email == "alice@example.com"
    assert detail.total_amount == Decimal("100.00")
    assert detail.notes == "Projector needed"
    assert detail.status is BookingStatus.PENDING


def test_booking_detail_for_unknown_booking(tmp_path: Path) -> None:
    booking_service, _, _, _ = _build_services(tmp_path)

    with pytest.raises(NotFound):
        booking_service.get_booking_detail(404)


# --- catalog ---

def test_invalid_resource_is_rejected(tmp_path: Path) -> None:
    _, resource_service, _, _ = _build_services(tmp_path)

    with pytest.raises(InvalidResource):
        _create_room(resource_service, rate="0")


def test_set_active_on_unknown_resource(tmp_path: Path) -> None:
    _, resource_service, _, _ = _build_services(tmp_path)

    with pytest.raises(NotFound):
        resource_service.set_resource_active(404, False)


def test_list_active_resources_hides_inactive(tmp_path: Path) -> None:
    _, resource_service, _, _ = _build_services(tmp_path)
    active = _create_room(resource_service)
    _create_room(resource_service, name="Closed Room", is_active=False)

    assert [item.resource_id for item in resource_service.list_active_resources()] == [
        active.resource_id
    ]


def test_duplicate_username_is_rejected(tmp_path: Path) -> None:
    _, resource_service, _, _ = _build_services(tmp_path)
    resource_service.register_user(username="bob", email="bob@example.com", role=UserRole.USER)

    with pytest.raises(DuplicateUser):
        resource_service.register_user(
            username="bob",
            email="other@example.com",
            role=UserRole.USER,
        )


def test_list_bookings_accepts_mixed_naive_and_aware_bounds(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    inside = _book(booking_service, room.resource_id, 10, 11)
    _book(booking_service, room.resource_id, 12, 13)

    items = booking_service.list_bookings(
        BookingQuery(
            start_from=datetime(2026, 3, 2, 10, 0),
            start_to=TOMORROW_10 + timedelta(hours=1),
        )
    )

    assert [item.booking.booking_id for item in items] == [inside.booking_id]


def test_list_bookings_reversed_mixed_bounds_is_invalid_query(tmp_path: Path) -> None:
    booking_service, _, _, _ = _build_services(tmp_path)

    with pytest.raises(InvalidQuery):
        booking_service.list_bookings(
            BookingQuery(
                start_from=datetime(2026, 3, 3, 0, 0),
                start_to=TOMORROW_10,
            )
        )


def test_requester_listing_returns_every_booking_beyond_page_size(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(
        tmp_path,
        bookings_page_default_limit=2,
        bookings_page_max_limit=5,
    )
    room = _create_room(resource_service)
    for offset in range(7):
        _book(booking_service, room.resource_id, 10 + offset, 11 + offset, requester_id=7)
    _book(booking_service, room.resource_id, 20, 21, requester_id=8)

    everything = booking_service.list_requester_bookings(7)
    page = booking_service.list_requester_bookings(7, limit=3, offset=5)

    assert len(everything) == 7
    assert all(item.booking.requester_id == 7 for item in everything)
    assert len(page) == 2


def test_listing_carries_requester_record(tmp_path: Path) -> None:
    booking_service, resource_service, _, _ = _build_services(tmp_path)
    user = resource_service.register_user(
        username="carol",
        email="carol@example.com",
        role=UserRole.USER,
    )
    room = _create_room(resource_service)
    _book(booking_service, room.resource_id, 10, 11, requester_id=user.user_id)
    _book(booking_service, room.resource_id, 11, 12, requester_id=999)

    by_requester = {
        item.booking.requester_id: item.requester
        for item in booking_service.list_bookings(BookingQuery())
    }

    assert by_requester[user.user_id].username == "carol"
    assert by_requester[user.user_id].email == "carol@example.com"
    assert by_requester[999] is None


def test_rate_above_cap_is_rejected_before_pricing(tmp_path: Path) -> None:
    _, resource_service, repository, _ = _build_services(tmp_path)

    with pytest.raises(InvalidResource):
        _create_room(resource_service, rate="1E+27")

    assert repository.list_resources(active_only=False) == []


def test_set_active_reports_resource_vanishing_after_update(tmp_path: Path, monkeypatch) -> None:
    _, resource_service, repository, _ = _build_services(tmp_path)
    room = _create_room(resource_service)
    monkeypatch.setattr(repository, "get_resource", lambda resource_id, conn=None: None)

    with pytest.raises(NotFound):
        resource_service.set_resource_active(room.resource_id, False)


def test_create_user_raises_when_row_cannot_be_read_back(tmp_path: Path, monkeypatch) -> None:
    _, _, repository, _ = _build_services(tmp_path)
    monkeypatch.setattr(repository, "get_user", lambda user_id: None)

    with pytest.raises(RuntimeError):
        repository.create_user(
            username="dave",
            email="dave@example.com",
            role=UserRole.USER,
            created_at=NOW,
        )
