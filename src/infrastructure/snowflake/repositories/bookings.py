"""
Snowflake repository for bookings.

Bookings are never deleted. Cancelling, checking in or missing a session
only changes the status, so history-based calculations see everything.
"""

import logging
from typing import Optional
from uuid import UUID

from src.core.gym.models import Booking, BookingStatus

from .sessions import SnowflakeConnection

logger = logging.getLogger(__name__)


_BOOKING_COLUMNS = """
    b.booking_id,
    b.user_id,
    b.session_id,
    b.status,
    b.booked_at,
    b.updated_at,
    s.session_date,
    s.start_time
"""


class BookingRepository:
    """
    Repository for session bookings.

    Writes here assume the caller has opened a transaction when the write
    depends on something it read (see BookingService).
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def has_confirmed_booking(self, user_id: str, session_id: UUID) -> bool:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT COUNT(*) FROM bookings
                WHERE user_id = %s
                  AND session_id = %s
                  AND status = 'confirmed'
            """, (user_id, str(session_id)))

            row = cursor.fetchone()
            return bool(row and row[0])

        finally:
            cursor.close()

    def add_booking(self, booking: Booking) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO bookings (
                    booking_id, user_id, session_id, status, booked_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s)
            """, (
                str(booking.id),
                booking.user_id,
                str(booking.session_id),
                booking.status.value,
                booking.booked_at,
                booking.updated_at,
            ))

            logger.info(
                "Booking created",
                extra={
                    "booking_id": str(booking.id),
                    "user_id": booking.user_id,
                    "session_id": str(booking.session_id),
                }
            )

        except Exception as e:
            logger.error(
                "Failed to create booking",
                extra={
                    "user_id": booking.user_id,
                    "session_id": str(booking.session_id),
                    "error": str(e),
                }
            )
            raise
        finally:
            cursor.close()

    def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_BOOKING_COLUMNS}
                FROM bookings b
                LEFT JOIN gym_sessions s ON b.session_id = s.session_id
                WHERE b.booking_id = %s
            """, (str(booking_id),))

            row = cursor.fetchone()
            return self._build_booking(row) if row else None

        finally:
            cursor.close()

    def save_status(self, booking: Booking, previous: BookingStatus) -> bool:
        """
        Write the booking's new status if the row still has the previous one.

        The status guard in the WHERE clause turns a lost race into a
        zero rowcount instead of a silent overwrite.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE bookings
                SET status = %s,
                    updated_at = %s
                WHERE booking_id = %s
                  AND status = %s
            """, (
                booking.status.value,
                booking.updated_at,
                str(booking.id),
                previous.value,
            ))

            updated = cursor.rowcount > 0
            if updated:
                logger.info(
                    "Booking status changed",
                    extra={
                        "booking_id": str(booking.id),
                        "from": previous.value,
                        "to": booking.status.value,
                    }
                )
            return updated

        finally:
            cursor.close()

    def list_for_member(
        self,
        user_id: str,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        """A member's bookings, most recent session first."""
        cursor = self._conn.cursor()

        try:
            params: tuple = (user_id,)
            status_filter = ""
            if status is not None:
                status_filter = "AND b.status = %s"
                params = (user_id, status.value)

            cursor.execute(f"""
                SELECT {_BOOKING_COLUMNS}
                FROM bookings b
                LEFT JOIN gym_sessions s ON b.session_id = s.session_id
                WHERE b.user_id = %s
                {status_filter}
                ORDER BY s.session_date DESC, s.start_time DESC
            """, params)

            return [self._build_booking(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _build_booking(self, row) -> Booking:
        return Booking(
            id=UUID(row[0]),
            user_id=row[1],
            session_id=UUID(row[2]),
            status=BookingStatus(row[3]),
            booked_at=row[4],
            updated_at=row[5],
            session_date=row[6],
            start_time=row[7],
        )
