"""
Shared fixtures.

Everything runs against the in-memory mock connection, so no test needs
Snowflake credentials.
"""

from datetime import date, time
from itertools import count

import pytest

from src.core.gym.achievements import AchievementService
from src.core.gym.booking import BookingService
from src.core.gym.members import MemberService
from src.core.gym.models import GymSession, Member, MemberStatus
from src.infrastructure.snowflake.client import (
    MockSnowflakeConnection,
    SnowflakeTransactionManager,
)
from src.infrastructure.snowflake.repositories import (
    AchievementRepository,
    BookingRepository,
    GymSessionRepository,
    MemberRepository,
)

# A Wednesday. The week runs Sunday 9th to Saturday 15th.
TODAY = date(2025, 3, 12)
EMAIL_DOMAIN = "my.jcu.edu.au"

_member_numbers = count(1)


@pytest.fixture
def mock_connection() -> MockSnowflakeConnection:
    return MockSnowflakeConnection()


@pytest.fixture
def session_repository(mock_connection) -> GymSessionRepository:
    return GymSessionRepository(mock_connection)


@pytest.fixture
def booking_repository(mock_connection) -> BookingRepository:
    return BookingRepository(mock_connection)


@pytest.fixture
def member_repository(mock_connection) -> MemberRepository:
    return MemberRepository(mock_connection)


@pytest.fixture
def achievement_repository(mock_connection) -> AchievementRepository:
    return AchievementRepository(mock_connection)


@pytest.fixture
def transactions(mock_connection) -> SnowflakeTransactionManager:
    return SnowflakeTransactionManager(mock_connection)


@pytest.fixture
def booking_service(session_repository, booking_repository, transactions) -> BookingService:
    return BookingService(
        sessions=session_repository,
        bookings=booking_repository,
        transactions=transactions,
    )


@pytest.fixture
def achievement_service(
    achievement_repository, booking_repository, member_repository, transactions
) -> AchievementService:
    return AchievementService(
        achievements=achievement_repository,
        bookings=booking_repository,
        members=member_repository,
        transactions=transactions,
    )


@pytest.fixture
def member_service(
    member_repository, booking_repository, achievement_repository, transactions
) -> MemberService:
    return MemberService(
        members=member_repository,
        bookings=booking_repository,
        achievements=achievement_repository,
        transactions=transactions,
        email_domain=EMAIL_DOMAIN,
    )


@pytest.fixture
def make_session(session_repository):
    """Add a session to the timetable and return it."""

    def _make(
        session_date: date = TODAY,
        start_time: time = time(10, 0),
        end_time: time = None,
        capacity: int = 10,
    ) -> GymSession:
        session = GymSession(
            session_date=session_date,
            start_time=start_time,
            end_time=end_time or time(start_time.hour + 1, start_time.minute),
            capacity=capacity,
        )
        session_repository.create_session(session)
        return session

    return _make


@pytest.fixture
def make_member(member_repository):
    """Store an approved member and return it."""

    def _make(points: int = 0) -> Member:
        number = next(_member_numbers)
        member = Member(
            id=f"member-{number}",
            email=f"member{number}@{EMAIL_DOMAIN}",
            first_name="Test",
            last_name=f"Member {number}",
            status=MemberStatus.APPROVED,
            points=points,
        )
        assert member_repository.add_member(member)
        return member

    return _make


@pytest.fixture
def record_workout(make_session, booking_service):
    """Book a session for the member and check them in."""

    def _record(user_id: str, day: date, start_time: time = time(10, 0)):
        session = make_session(session_date=day, start_time=start_time)
        booking = booking_service.book_session(user_id, session.id)
        return booking_service.complete_booking(booking.id)

    return _record
