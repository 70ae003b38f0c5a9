"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Iterator, Optional

from resource_booking.domain.constraints import ResourceSpec
from resource_booking.domain.models import (
    Booking,
    BookingDetail,
    BookingQuery,
    BookingStatus,
    BookingWithDetails,
    Rating,
    Resource,
    ResourceCategory,
    User,
    UserRole,
    ensure_utc,
)
from resource_booking.utils.config import Settings, get_settings
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)

# Fixed-width UTC text keeps lexical and chronological order identical.
_INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"

_BOOKING_COLUMNS = """
    b.id AS booking_id,
    b.requester_id,
    b.resource_id,
    b.start_time,
    b.end_time,
    b.status,
    b.total_amount,
    b.notes,
    b.created_at,
    b.updated_at
"""

_RESOURCE_COLUMNS = """
    r.id AS r_id,
    r.name AS r_name,
    r.category AS r_category,
    r.subcategory AS r_subcategory,
    r.capacity AS r_capacity,
    r.hourly_rate AS r_hourly_rate,
    r.description AS r_description,
    r.is_active AS r_is_active,
    r.created_at AS r_created_at
"""


def to_db_instant(value: datetime) -> str:
    return ensure_utc(value).strftime(_INSTANT_FORMAT)


def from_db_instant(raw: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(raw))


def _row_to_resource(row: sqlite3.Row, prefix: str = "") -> Resource:
    capacity = row[f"{prefix}capacity"]
    return Resource(
        resource_id=int(row[f"{prefix}id"]),
        name=str(row[f"{prefix}name"]),
        category=ResourceCategory(row[f"{prefix}category"]),
        subcategory=str(row[f"{prefix}subcategory"]),
        capacity=int(capacity) if capacity is not None else None,
        hourly_rate=Decimal(row[f"{prefix}hourly_rate"]),
        description=row[f"{prefix}description"],
        is_active=bool(row[f"{prefix}is_active"]),
        created_at=from_db_instant(row[f"{prefix}created_at"]),
    )


def _row_to_booking(row: sqlite3.Row) -> Booking:
    return Booking(
        booking_id=int(row["booking_id"]),
        requester_id=int(row["requester_id"]),
        resource_id=int(row["resource_id"]),
        start_time=from_db_instant(row["start_time"]),
        end_time=from_db_instant(row["end_time"]),
        status=BookingStatus(row["status"]),
        total_amount=Decimal(row["total_amount"]),
        notes=row["notes"],
        created_at=from_db_instant(row["created_at"]),
        updated_at=from_db_instant(row["updated_at"]),
    )


def _row_to_rating(row: sqlite3.Row, prefix: str = "") -> Rating:
    return Rating(
        rating_id=int(row[f"{prefix}id"]),
        booking_id=int(row[f"{prefix}booking_id"]),
        requester_id=int(row[f"{prefix}requester_id"]),
        score=int(row[f"{prefix}score"]),
        feedback=row[f"{prefix}feedback"],
        created_at=from_db_instant(row[f"{prefix}created_at"]),
    )


def _row_to_user(row: sqlite3.Row, prefix: str = "") -> User:
    return User(
        user_id=int(row[f"{prefix}id"]),
        username=str(row[f"{prefix}username"]),
        email=str(row[f"{prefix}email"]),
        role=UserRole(row[f"{prefix}role"]),
        created_at=from_db_instant(row[f"{prefix}created_at"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic.

    Methods that take a `conn` argument join the caller's transaction when
    one is passed; otherwise they run on a short-lived connection of their
    own.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_busy_timeout_seconds,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def _session(
        self,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
            return
        connection = self._connect()
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    @contextmanager
    def write_transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the database write lock for a read-check-write sequence.

        `BEGIN IMMEDIATE` takes the reserved lock up front, so a second
        writer (in this or another process) waits until COMMIT instead of
        reading the same pre-insert state.
        """
        connection = self._connect()
        connection.isolation_level = None
        try:
            connection.execute("BEGIN IMMEDIATE;")
            try:
                yield connection
            except BaseException:
                connection.execute("ROLLBACK;")
                raise
            connection.execute("COMMIT;")
        finally:
            connection.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._session() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username TEXT NOT NULL UNIQUE,
                        email TEXT NOT NULL UNIQUE,
                        role TEXT NOT NULL DEFAULT 'user'
                            CHECK (role IN ('user', 'operations')),
                        created_at TEXT NOT NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Resources (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        category TEXT NOT NULL CHECK (
                            category IN ('meeting_room', 'crane_service', 'forklift_service')
                        ),
                        subcategory TEXT NOT NULL,
                        capacity INTEGER CHECK (capacity IS NULL OR capacity > 0),
                        hourly_rate TEXT NOT NULL,
                        description TEXT,
                        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
                        created_at TEXT NOT NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        requester_id INTEGER NOT NULL,
                        resource_id INTEGER NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'pending' CHECK (
                            status IN ('pending', 'confirmed', 'ongoing', 'completed', 'cancelled')
                        ),
                        total_amount TEXT NOT NULL,
                        notes TEXT,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        CHECK (start_time < end_time),
                        FOREIGN KEY (resource_id) REFERENCES Resources(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Ratings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        booking_id INTEGER NOT NULL UNIQUE,
                        requester_id INTEGER NOT NULL,
                        score INTEGER NOT NULL CHECK (score BETWEEN 1 AND 5),
                        feedback TEXT,
                        created_at TEXT NOT NULL,
                        FOREIGN KEY (booking_id) REFERENCES Bookings(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_resource_status
                    ON Bookings(resource_id, status);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_requester_created
                    ON Bookings(requester_id, created_at);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_created
                    ON Bookings(created_at);
                    """
                )
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    # Users

    def create_user(
        self,
        username: str,
        email: str,
        role: UserRole,
        created_at: datetime,
    ) -> User:
        """Insert a contact record; raises sqlite3.IntegrityError on duplicates."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Users (username, email, role, created_at)
                VALUES (?, ?, ?, ?);
                """,
                (username, email, role.value, to_db_instant(created_at)),
            )
            user_id = int(cursor.lastrowid)
        user = self.get_user(user_id)
        if user is None:
            raise RuntimeError(f"User {user_id} missing after insert")
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, username, email, role, created_at FROM Users WHERE id = ?;",
                (user_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_user(row)

    # Resources

    def create_resource(self, spec: ResourceSpec, created_at: datetime) -> Resource:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Resources (
                    name,
                    category,
                    subcategory,
                    capacity,
                    hourly_rate,
                    description,
                    is_active,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    spec.name.strip(),
                    spec.category.value,
                    spec.subcategory.strip(),
                    spec.capacity,
                    str(Decimal(spec.hourly_rate)),
                    spec.description,
                    int(spec.is_active),
                    to_db_instant(created_at),
                ),
            )
            resource_id = int(cursor.lastrowid)
        resource = self.get_resource(resource_id)
        if resource is None:
            raise RuntimeError(f"Resource {resource_id} missing after insert")
        return resource

    def get_resource(
        self,
        resource_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Resource]:
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute("SELECT * FROM Resources WHERE id = ?;", (resource_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_resource(row)

    def list_resources(self, active_only: bool = True) -> list[Resource]:
        with self._session() as conn:
            cursor = conn.cursor()
            if active_only:
                cursor.execute("SELECT * FROM Resources WHERE is_active = 1 ORDER BY id ASC;")
            else:
                cursor.execute("SELECT * FROM Resources ORDER BY id ASC;")
            return [_row_to_resource(row) for row in cursor.fetchall()]

    def set_resource_active(self, resource_id: int, is_active: bool) -> bool:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE Resources SET is_active = ? WHERE id = ?;",
                (int(is_active), resource_id),
            )
            return cursor.rowcount == 1

    # Bookings

    def list_resource_bookings(
        self,
        resource_id: int,
        statuses: Iterable[BookingStatus],
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[Booking]:
        """Return the resource's bookings whose status is in `statuses`."""
        status_values = [status.value for status in statuses]
        if not status_values:
            return []
        placeholders = ",".join("?" for _ in status_values)
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM Bookings AS b
                WHERE b.resource_id = ?
                  AND b.status IN ({placeholders})
                ORDER BY b.start_time ASC, b.id ASC;
                """,
                (resource_id, *status_values),
            )
            return [_row_to_booking(row) for row in cursor.fetchall()]

    def insert_booking(
        self,
        *,
        requester_id: int,
        resource_id: int,
        start_time: datetime,
        end_time: datetime,
        total_amount: Decimal,
        notes: Optional[str],
        created_at: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Booking:
        timestamp = to_db_instant(created_at)
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute(
                """
                INSERT INTO Bookings (
                    requester_id,
                    resource_id,
                    start_time,
                    end_time,
                    status,
                    total_amount,
                    notes,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    requester_id,
                    resource_id,
                    to_db_instant(start_time),
                    to_db_instant(end_time),
                    BookingStatus.PENDING.value,
                    str(total_amount),
                    notes,
                    timestamp,
                    timestamp,
                ),
            )
            booking_id = int(cursor.lastrowid)
            booking = self.get_booking(booking_id, conn=session)
        if booking is None:
            raise RuntimeError(f"Booking {booking_id} missing after insert")
        return booking

    def get_booking(
        self,
        booking_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Booking]:
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute(
                f"SELECT {_BOOKING_COLUMNS} FROM Bookings AS b WHERE b.id = ?;",
                (booking_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_booking(row)

    def get_requester_booking(
        self,
        booking_id: int,
        requester_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Booking]:
        """Fetch a booking only when it belongs to `requester_id`."""
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM Bookings AS b
                WHERE b.id = ? AND b.requester_id = ?;
                """,
                (booking_id, requester_id),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_booking(row)

    def update_booking_status(
        self,
        booking_id: int,
        expected_status: BookingStatus,
        new_status: BookingStatus,
        updated_at: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Booking]:
        """Compare-and-set the status; returns None if it changed underneath."""
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute(
                """
                UPDATE Bookings
                SET status = ?, updated_at = ?
                WHERE id = ? AND status = ?;
                """,
                (
                    new_status.value,
                    to_db_instant(updated_at),
                    booking_id,
                    expected_status.value,
                ),
            )
            if cursor.rowcount != 1:
                return None
            return self.get_booking(booking_id, conn=session)

    def list_bookings_created_between(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Booking]:
        """Filtered read-all on creation instant; both bounds inclusive."""
        conditions: list[str] = []
        params: list[str] = []
        if created_from is not None:
            conditions.append("b.created_at >= ?")
            params.append(to_db_instant(created_from))
        if created_to is not None:
            conditions.append("b.created_at <= ?")
            params.append(to_db_instant(created_to))
        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM Bookings AS b
                {where_clause}
                ORDER BY b.created_at ASC, b.id ASC;
                """,
                tuple(params),
            )
            return [_row_to_booking(row) for row in cursor.fetchall()]

    def query_bookings(
        self,
        query: BookingQuery,
        paginate: bool = True,
    ) -> list[BookingWithDetails]:
        """Return bookings joined with resource, rating and requester, newest first.

        With `paginate=False` the limit is ignored and every row from
        `query.offset` on is returned.
        """
        conditions: list[str] = []
        params: list[object] = []
        if query.requester_id is not None:
            conditions.append("b.requester_id = ?")
            params.append(query.requester_id)
        if query.status is not None:
            conditions.append("b.status = ?")
            params.append(query.status.value)
        if query.category is not None:
            conditions.append("r.category = ?")
            params.append(query.category.value)
        if query.start_from is not None:
            conditions.append("b.start_time >= ?")
            params.append(to_db_instant(query.start_from))
        if query.start_to is not None:
            conditions.append("b.start_time <= ?")
            params.append(to_db_instant(query.start_to))
        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT
                    {_BOOKING_COLUMNS},
                    {_RESOURCE_COLUMNS},
                    rt.id AS rt_id,
                    rt.booking_id AS rt_booking_id,
                    rt.requester_id AS rt_requester_id,
                    rt.score AS rt_score,
                    rt.feedback AS rt_feedback,
                    rt.created_at AS rt_created_at,
                    u.id AS u_id,
                    u.username AS u_username,
                    u.email AS u_email,
                    u.role AS u_role,
                    u.created_at AS u_created_at
                FROM Bookings AS b
                INNER JOIN Resources AS r ON r.id = b.resource_id
                LEFT JOIN Ratings AS rt ON rt.booking_id = b.id
                LEFT JOIN Users AS u ON u.id = b.requester_id
                {where_clause}
                ORDER BY b.created_at DESC, b.id DESC
                LIMIT ? OFFSET ?;
                """,
                # SQLite treats a negative LIMIT as no limit.
                (*params, query.limit if paginate else -1, query.offset),
            )
            return [
                BookingWithDetails(
                    booking=_row_to_booking(row),
                    resource=_row_to_resource(row, prefix="r_"),
                    rating=(
                        _row_to_rating(row, prefix="rt_")
                        if row["rt_id"] is not None
                        else None
                    ),
                    requester=(
                        _row_to_user(row, prefix="u_")
                        if row["u_id"] is not None
                        else None
                    ),
                )
                for row in cursor.fetchall()
            ]

    def get_booking_detail(self, booking_id: int) -> Optional[BookingDetail]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT
                    {_BOOKING_COLUMNS},
                    r.name AS resource_name,
                    r.category AS resource_category,
                    r.subcategory AS resource_subcategory,
                    u.username AS requester_username,
                    u.email AS requester_email
                FROM Bookings AS b
                INNER JOIN Resources AS r ON r.id = b.resource_id
                LEFT JOIN Users AS u ON u.id = b.requester_id
                WHERE b.id = ?;
                """,
                (booking_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            booking = _row_to_booking(row)
            return BookingDetail(
                booking_id=booking.booking_id,
                resource_name=str(row["resource_name"]),
                resource_category=ResourceCategory(row["resource_category"]),
                resource_subcategory=str(row["resource_subcategory"]),
                start_time=booking.start_time,
                end_time=booking.end_time,
                requester_username=row["requester_username"],
                requester_email=row["requester_email"],
                total_amount=booking.total_amount,
                status=booking.status,
                notes=booking.notes,
            )

    def count_bookings(self) -> int:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Bookings;")
            return int(cursor.fetchone()["count"])

    # Ratings

    def get_rating_for_booking(
        self,
        booking_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Rating]:
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute("SELECT * FROM Ratings WHERE booking_id = ?;", (booking_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_rating(row)

    def insert_rating(
        self,
        *,
        booking_id: int,
        requester_id: int,
        score: int,
        feedback: Optional[str],
        created_at: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Rating:
        """Insert a rating; raises sqlite3.IntegrityError if one already exists."""
        with self._session(conn) as session:
            cursor = session.cursor()
            cursor.execute(
                """
                INSERT INTO Ratings (booking_id, requester_id, score, feedback, created_at)
                VALUES (?, ?, ?, ?, ?);
                """,
                (booking_id, requester_id, score, feedback, to_db_instant(created_at)),
            )
            rating_id = int(cursor.lastrowid)
            cursor.execute("SELECT * FROM Ratings WHERE id = ?;", (rating_id,))
            return _row_to_rating(cursor.fetchone())
