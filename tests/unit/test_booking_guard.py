"""
Tests for the booking guard and BookingService.

The guard runs its checks in a fixed order, so a request that fails more
than one check always gets the same error.
"""

import threading
from datetime import date, time
from uuid import uuid4

import pytest

from src.core.gym.booking import check_booking_allowed
from src.core.gym.errors import (
    DuplicateBookingError,
    ForbiddenError,
    InvalidBookingTransitionError,
    SessionFullError,
    SessionNotFoundError,
)
from src.core.gym.models import BookingStatus, GymSession


def _session(capacity: int = 5, current_bookings: int = 0, is_active: bool = True) -> GymSession:
    return GymSession(
        session_date=date(2025, 3, 12),
        start_time=time(7, 0),
        end_time=time(8, 0),
        capacity=capacity,
        current_bookings=current_bookings,
        is_active=is_active,
    )


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------

class TestCheckBookingAllowed:

    def test_allows_open_session(self):
        session = _session()
        assert check_booking_allowed(session, has_confirmed_booking=False) is session

    def test_missing_session(self):
        with pytest.raises(SessionNotFoundError, match="Session not found"):
            check_booking_allowed(None, has_confirmed_booking=False)

    def test_inactive_session_counts_as_missing(self):
        with pytest.raises(SessionNotFoundError):
            check_booking_allowed(_session(is_active=False), has_confirmed_booking=False)

    def test_full_session(self):
        with pytest.raises(SessionFullError, match="fully booked"):
            check_booking_allowed(_session(capacity=2, current_bookings=2), has_confirmed_booking=False)

    def test_duplicate_booking(self):
        with pytest.raises(DuplicateBookingError):
            check_booking_allowed(_session(), has_confirmed_booking=True)

    def test_full_is_reported_before_duplicate(self):
        """A member already booked into a full session is told it's full."""
        with pytest.raises(SessionFullError):
            check_booking_allowed(_session(capacity=1, current_bookings=1), has_confirmed_booking=True)

    def test_missing_is_reported_before_everything(self):
        with pytest.raises(SessionNotFoundError):
            check_booking_allowed(
                _session(capacity=1, current_bookings=1, is_active=False),
                has_confirmed_booking=True,
            )


# ---------------------------------------------------------------------------
# BookingService
# ---------------------------------------------------------------------------

class TestBookSession:

    def test_creates_confirmed_booking(self, booking_service, make_session, session_repository):
        session = make_session(capacity=3)

        booking = booking_service.book_session("member-a", session.id)

        assert booking.status == BookingStatus.CONFIRMED
        assert booking.session_date == session.session_date
        assert session_repository.get_session(session.id).current_bookings == 1

    def test_unknown_session(self, booking_service):
        with pytest.raises(SessionNotFoundError):
            booking_service.book_session("member-a", uuid4())

    def test_second_booking_by_same_member_is_rejected(self, booking_service, make_session):
        session = make_session(capacity=3)
        booking_service.book_session("member-a", session.id)

        with pytest.raises(DuplicateBookingError):
            booking_service.book_session("member-a", session.id)

    def test_rejected_booking_leaves_no_row(self, booking_service, make_session, mock_connection):
        session = make_session(capacity=1)
        booking_service.book_session("member-a", session.id)

        with pytest.raises(SessionFullError):
            booking_service.book_session("member-b", session.id)

        assert len(mock_connection._table("bookings")) == 1

    def test_last_seat_goes_to_exactly_one_member(self, booking_service, make_session, session_repository):
        """Many members racing for one seat: one wins, the rest see 'full'."""
        session = make_session(capacity=1)
        outcomes: list[str] = []
        outcomes_lock = threading.Lock()

        def attempt(user_id: str) -> None:
            try:
                booking_service.book_session(user_id, session.id)
                result = "booked"
            except SessionFullError:
                result = "full"
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(f"member-{i}",)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("booked") == 1
        assert outcomes.count("full") == 7
        stored = session_repository.get_session(session.id)
        assert stored.current_bookings == stored.capacity == 1


class TestBookingStatusChanges:

    def test_cancel_frees_the_seat(self, booking_service, make_session, session_repository):
        session = make_session(capacity=1)
        booking = booking_service.book_session("member-a", session.id)

        booking_service.cancel_booking(booking.id, acting_user_id="member-a")

        assert session_repository.get_session(session.id).current_bookings == 0
        booking_service.book_session("member-b", session.id)

    def test_member_can_rebook_after_cancelling(self, booking_service, make_session):
        session = make_session()
        booking = booking_service.book_session("member-a", session.id)
        booking_service.cancel_booking(booking.id, acting_user_id="member-a")

        again = booking_service.book_session("member-a", session.id)
        assert again.status == BookingStatus.CONFIRMED

    def test_only_owner_or_admin_can_cancel(self, booking_service, make_session):
        session = make_session()
        booking = booking_service.book_session("member-a", session.id)

        with pytest.raises(ForbiddenError):
            booking_service.cancel_booking(booking.id, acting_user_id="member-b")

        cancelled = booking_service.cancel_booking(booking.id, acting_user_id=None, is_admin=True)
        assert cancelled.status == BookingStatus.CANCELLED

    def test_completed_booking_still_holds_its_seat(self, booking_service, make_session, session_repository):
        session = make_session(capacity=1)
        booking = booking_service.book_session("member-a", session.id)

        booking_service.complete_booking(booking.id)

        assert session_repository.get_session(session.id).is_full

    def test_no_show_frees_the_seat(self, booking_service, make_session, session_repository):
        session = make_session(capacity=1)
        booking = booking_service.book_session("member-a", session.id)

        booking_service.mark_no_show(booking.id)

        assert session_repository.get_session(session.id).current_bookings == 0

    def test_cannot_cancel_after_check_in(self, booking_service, make_session):
        session = make_session()
        booking = booking_service.book_session("member-a", session.id)
        booking_service.complete_booking(booking.id)

        with pytest.raises(InvalidBookingTransitionError):
            booking_service.cancel_booking(booking.id, acting_user_id="member-a")

    def test_no_show_is_recorded(self, booking_service, make_session, booking_repository):
        session = make_session()
        booking = booking_service.book_session("member-a", session.id)

        booking_service.mark_no_show(booking.id)

        assert booking_repository.get_booking(booking.id).status == BookingStatus.NO_SHOW

    def test_list_filters_by_status(self, booking_service, make_session):
        first = booking_service.book_session("member-a", make_session().id)
        booking_service.book_session("member-a", make_session().id)
        booking_service.complete_booking(first.id)

        completed = booking_service.list_member_bookings("member-a", BookingStatus.COMPLETED)

        assert [b.id for b in completed] == [first.id]
        assert len(booking_service.list_member_bookings("member-a")) == 2
