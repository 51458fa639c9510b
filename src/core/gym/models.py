"""
Domain models for the gym.

These models represent the core business concepts: timetable sessions,
bookings and members. They have no dependencies on FastAPI or Snowflake;
repositories translate rows into these objects and back.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from .errors import InvalidBookingTransitionError


class SessionType(Enum):
    GENERAL = "general"
    CLASS = "class"
    PERSONAL_TRAINING = "personal-training"


class BookingStatus(Enum):
    """
    Lifecycle of a booking.

    Only a confirmed booking can change status. Everything else is final.
    """
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    COMPLETED = "completed"


# Statuses that hold a seat in the session
SEAT_HOLDING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)

_ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class MemberRole(Enum):
    STUDENT = "student"
    STAFF = "staff"
    ADMIN = "admin"


class MembershipType(Enum):
    ONE_TRIMESTER = "1-trimester"
    THREE_TRIMESTER = "3-trimester"
    ONE_YEAR = "1-year"
    PREMIUM = "premium"
    GUEST = "guest"


class MemberStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


@dataclass
class GymSession:
    """
    A scheduled facility time slot with finite capacity.

    current_bookings is not stored anywhere. Repositories fill it in by
    counting the seat-holding bookings for the session.
    """
    session_date: date
    start_time: time
    end_time: time
    capacity: int
    id: UUID = field(default_factory=uuid4)
    session_type: SessionType = SessionType.GENERAL
    instructor: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    current_bookings: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError("Session capacity must be positive")
        if self.end_time <= self.start_time:
            raise ValueError("Session end time must be after start time")
        if self.current_bookings < 0:
            raise ValueError("Booking count cannot be negative")

    @property
    def is_full(self) -> bool:
        return self.current_bookings >= self.capacity

    @property
    def available_spots(self) -> int:
        return max(self.capacity - self.current_bookings, 0)


@dataclass
class Booking:
    """
    A member's claim on one seat within a session.

    The session's date and start time ride along so that history-based
    calculations (streaks, early bird) don't need a second lookup.
    """
    user_id: str
    session_id: UUID
    id: UUID = field(default_factory=uuid4)
    status: BookingStatus = BookingStatus.CONFIRMED
    booked_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    session_date: Optional[date] = None
    start_time: Optional[time] = None

    def __post_init__(self) -> None:
        if not self.user_id.strip():
            raise ValueError("Booking must belong to a user")

    def transition_to(self, new_status: BookingStatus) -> None:
        """Move to a new status, rejecting anything but confirmed -> final."""
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidBookingTransitionError(
                f"Cannot change booking from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self.updated_at = datetime.utcnow()

    @property
    def is_completed(self) -> bool:
        return self.status == BookingStatus.COMPLETED


@dataclass
class Member:
    """A gym member. The API and tables call members "users"."""
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: MemberRole = MemberRole.STUDENT
    membership_type: MembershipType = MembershipType.ONE_TRIMESTER
    status: MemberStatus = MemberStatus.PENDING
    points: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        if "@" not in self.email:
            raise ValueError("Member email must be a valid address")
        if self.points < 0:
            raise ValueError("Points cannot be negative")

    @property
    def is_approved(self) -> bool:
        return self.status == MemberStatus.APPROVED
