"""
Session booking.

The booking guard decides whether a member may take a seat in a session.
It's a pure function over a snapshot of the session - the interesting part
is making sure the snapshot can't go stale between the check and the
insert. BookingService does that by running lock, check and insert inside
one transaction keyed on the session row.
"""

from typing import Optional
from uuid import UUID

from .errors import (
    BookingNotFoundError,
    DuplicateBookingError,
    ForbiddenError,
    InvalidBookingTransitionError,
    SessionFullError,
    SessionNotFoundError,
)
from .models import Booking, BookingStatus, GymSession
from .ports import BookingStore, SessionStore, TransactionManager


def check_booking_allowed(
    session: Optional[GymSession],
    has_confirmed_booking: bool,
) -> GymSession:
    """
    Run the booking checks in order and return the session if they all pass.

    1. The session exists and is active
    2. There's a free seat
    3. The member doesn't already hold a confirmed booking for it

    Each failure is a distinct error whose message is shown to the member
    as-is.
    """
    if session is None or not session.is_active:
        raise SessionNotFoundError()

    if session.current_bookings >= session.capacity:
        raise SessionFullError()

    if has_confirmed_booking:
        raise DuplicateBookingError()

    return session


class BookingService:
    """
    Creates bookings and moves them through their lifecycle.

    Stateless apart from its stores. One instance per request is fine.
    """

    def __init__(
        self,
        sessions: SessionStore,
        bookings: BookingStore,
        transactions: TransactionManager,
    ) -> None:
        self._sessions = sessions
        self._bookings = bookings
        self._transactions = transactions

    def book_session(self, user_id: str, session_id: UUID) -> Booking:
        """Create a confirmed booking, or raise the first check that fails."""
        with self._transactions.transaction():
            if not self._sessions.lock_session(session_id):
                raise SessionNotFoundError()

            session = check_booking_allowed(
                self._sessions.get_session(session_id),
                self._bookings.has_confirmed_booking(user_id, session_id),
            )

            booking = Booking(
                user_id=user_id,
                session_id=session.id,
                status=BookingStatus.CONFIRMED,
                session_date=session.session_date,
                start_time=session.start_time,
            )
            self._bookings.add_booking(booking)

        return booking

    def get_booking(self, booking_id: UUID) -> Booking:
        booking = self._bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError()
        return booking

    def cancel_booking(
        self,
        booking_id: UUID,
        acting_user_id: Optional[str],
        is_admin: bool = False,
    ) -> Booking:
        """Cancel a confirmed booking. Members may only cancel their own."""
        booking = self.get_booking(booking_id)
        if not is_admin and booking.user_id != acting_user_id:
            raise ForbiddenError("You can only cancel your own bookings")
        return self._change_status(booking, BookingStatus.CANCELLED)

    def complete_booking(self, booking_id: UUID) -> Booking:
        """Record that the member turned up (check-in)."""
        return self._change_status(self.get_booking(booking_id), BookingStatus.COMPLETED)

    def mark_no_show(self, booking_id: UUID) -> Booking:
        return self._change_status(self.get_booking(booking_id), BookingStatus.NO_SHOW)

    def list_member_bookings(
        self,
        user_id: str,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        return self._bookings.list_for_member(user_id, status)

    def _change_status(self, booking: Booking, new_status: BookingStatus) -> Booking:
        previous = booking.status
        booking.transition_to(new_status)

        with self._transactions.transaction():
            if not self._bookings.save_status(booking, previous):
                # Someone else changed it between our read and write
                raise InvalidBookingTransitionError(
                    f"Booking is no longer {previous.value}"
                )

        return booking
