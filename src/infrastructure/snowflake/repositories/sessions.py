"""
Snowflake repository for the session timetable.

This module implements the repository pattern for gym sessions.
The repository:
1. Translates between GymSession and database rows
2. Encapsulates all SQL queries
3. Derives current_bookings from the bookings table instead of storing it

The application code never writes SQL directly; it asks the repository
for what it needs in domain terms.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Protocol
from uuid import UUID

from src.core.gym.models import SEAT_HOLDING_STATUSES, GymSession, SessionType


logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_base64: Optional[str] = None
    database: str = "JCU_GYM"
    schema: str = "MEMBERSHIP"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


_SEAT_HOLDING_SQL = ", ".join(f"'{status.value}'" for status in SEAT_HOLDING_STATUSES)

_SEAT_COUNT_SQL = f"""
    (SELECT COUNT(*) FROM bookings b
     WHERE b.session_id = s.session_id
       AND b.status IN ({_SEAT_HOLDING_SQL})) AS current_bookings
"""

_SESSION_COLUMNS = f"""
    s.session_id,
    s.session_date,
    s.start_time,
    s.end_time,
    s.capacity,
    s.session_type,
    s.instructor,
    s.description,
    s.is_active,
    s.created_at,
    {_SEAT_COUNT_SQL}
"""


class GymSessionRepository:
    """
    Repository for timetable sessions.

    - create_session: Add a session to the timetable
    - get_session: Load one session with its live booking count
    - list_sessions: Sessions in a date range, for the timetable view
    - lock_session: Serialise bookings against one session
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def create_session(self, session: GymSession) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO gym_sessions (
                    session_id, session_date, start_time, end_time, capacity,
                    session_type, instructor, description, is_active,
                    created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                str(session.id),
                session.session_date,
                session.start_time,
                session.end_time,
                session.capacity,
                session.session_type.value,
                session.instructor,
                session.description,
                session.is_active,
                session.created_at,
                session.created_at,
            ))
            self._conn.commit()

            logger.info(
                "Created gym session",
                extra={
                    "session_id": str(session.id),
                    "session_date": session.session_date.isoformat(),
                    "capacity": session.capacity,
                }
            )

        except Exception as e:
            logger.error(
                "Failed to create gym session",
                extra={"session_id": str(session.id), "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def get_session(self, session_id: UUID) -> Optional[GymSession]:
        """Load a session, or None if there's no such session."""
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_SESSION_COLUMNS}
                FROM gym_sessions s
                WHERE s.session_id = %s
            """, (str(session_id),))

            row = cursor.fetchone()
            return self._build_session(row) if row else None

        finally:
            cursor.close()

    def list_sessions(
        self,
        start_date: date,
        end_date: date,
        include_inactive: bool = False,
    ) -> list[GymSession]:
        """Sessions between two dates (inclusive), earliest first."""
        cursor = self._conn.cursor()

        try:
            active_filter = "" if include_inactive else "AND s.is_active = TRUE"

            cursor.execute(f"""
                SELECT {_SESSION_COLUMNS}
                FROM gym_sessions s
                WHERE s.session_date BETWEEN %s AND %s
                {active_filter}
                ORDER BY s.session_date, s.start_time
            """, (start_date, end_date))

            return [self._build_session(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def lock_session(self, session_id: UUID) -> bool:
        """
        Touch the session row so concurrent bookings queue behind us.

        Snowflake has no SELECT ... FOR UPDATE; an UPDATE inside an open
        transaction holds the lock until commit or rollback instead.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE gym_sessions
                SET updated_at = CURRENT_TIMESTAMP()
                WHERE session_id = %s
                  AND is_active = TRUE
            """, (str(session_id),))

            return cursor.rowcount > 0

        finally:
            cursor.close()

    def ping(self) -> bool:
        """Cheap round trip for readiness checks."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("SELECT 1")
            return cursor.fetchone() is not None
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _build_session(self, row) -> GymSession:
        return GymSession(
            id=UUID(row[0]),
            session_date=row[1],
            start_time=row[2],
            end_time=row[3],
            capacity=row[4],
            session_type=SessionType(row[5]) if row[5] else SessionType.GENERAL,
            instructor=row[6],
            description=row[7],
            is_active=bool(row[8]),
            created_at=row[9] or datetime.utcnow(),
            current_bookings=row[10] or 0,
        )
