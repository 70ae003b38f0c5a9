#!/usr/bin/env python3
"""Validate local booking engine environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resource_booking.domain.models import BookingStatus, ResourceCategory
from resource_booking.repository.data_repository import DataRepository
from resource_booking.services.booking_service import BookingService
from resource_booking.services.resource_service import ResourceService
from resource_booking.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="booking-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = ["fastapi", "uvicorn", "pydantic", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_specs:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "booking_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RuntimeError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Booking smoke cycle on the temporary database
        try:
            resource_service = ResourceService(repository=repository, settings=validation_settings)
            booking_service = BookingService(repository=repository, settings=validation_settings)
            resource = resource_service.create_resource(
                name="Validation Room",
                category=ResourceCategory.MEETING_ROOM,
                subcategory="standard_room",
                capacity=4,
                hourly_rate=Decimal("50.00"),
            )
            start = (datetime.now(timezone.utc) + timedelta(days=1)).replace(
                minute=0, second=0, microsecond=0
            )
            booking = booking_service.create_booking(
                requester_id=1,
                resource_id=resource.resource_id,
                start_time=start,
                end_time=start + timedelta(hours=2),
            )
            if booking.total_amount != Decimal("100.00"):
                raise RuntimeError(f"expected amount 100.00, got {booking.total_amount}")
            booking_service.advance_status(booking.booking_id, BookingStatus.CONFIRMED)
            statistics = booking_service.get_statistics()
            if statistics.per_status_counts[BookingStatus.CONFIRMED] != 1:
                raise RuntimeError("statistics did not count the confirmed booking")
            ok, line = _print_result(
                "Booking smoke cycle",
                True,
                f": booking {booking.booking_id} amount={booking.total_amount}",
            )
        except Exception as exc:
            ok, line = _print_result("Booking smoke cycle", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Booking Engine Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
