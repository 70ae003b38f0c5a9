"""Catalog management for bookable resources and requester contacts."""

from __future__ import annotations

import sqlite3
from decimal import Decimal
from typing import Optional

from resource_booking.domain.constraints import (
    ResourceSpec,
    validate_resource_spec,
    validate_user_contact,
)
from resource_booking.domain.errors import DuplicateUser, NotFound
from resource_booking.domain.models import (
    Clock,
    Resource,
    ResourceCategory,
    User,
    UserRole,
    utc_now,
)
from resource_booking.repository.data_repository import DataRepository
from resource_booking.utils.config import Settings, get_settings
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)


class ResourceService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_now

    def create_resource(
        self,
        *,
        name: str,
        category: ResourceCategory,
        subcategory: str,
        capacity: Optional[int],
        hourly_rate: Decimal,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Resource:
        spec = ResourceSpec(
            name=name,
            category=category,
            subcategory=subcategory,
            capacity=capacity,
            hourly_rate=hourly_rate,
            description=description,
            is_active=is_active,
        )
        validate_resource_spec(spec)
        resource = self._repository.create_resource(spec, created_at=self._clock())
        logger.info(
            "Resource %s created (%s/%s, rate=%s)",
            resource.resource_id,
            resource.category.value,
            resource.subcategory,
            resource.hourly_rate,
        )
        return resource

    def list_active_resources(self) -> list[Resource]:
        return self._repository.list_resources(active_only=True)

    def set_resource_active(self, resource_id: int, is_active: bool) -> Resource:
        """Toggle availability for new bookings; existing bookings are untouched."""
        if not self._repository.set_resource_active(resource_id, is_active):
            raise NotFound(f"Resource {resource_id} not found")
        resource = self._repository.get_resource(resource_id)
        if resource is None:
            raise NotFound(f"Resource {resource_id} not found")
        logger.info("Resource %s active=%s", resource_id, is_active)
        return resource

    def register_user(self, *, username: str, email: str, role: UserRole) -> User:
        validate_user_contact(username, email)
        try:
            user = self._repository.create_user(
                username=username.strip(),
                email=email.strip().lower(),
                role=role,
                created_at=self._clock(),
            )
        except sqlite3.IntegrityError as exc:
            raise DuplicateUser("username or email is already registered") from exc
        logger.info("User %s registered with role %s", user.user_id, role.value)
        return user
