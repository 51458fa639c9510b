"""
Storage interfaces the gym services depend on.

Using Protocols here means the services don't know or care whether
they're talking to Snowflake, the in-memory mock, or a hand-rolled fake
in a test. They just need something that answers these calls.
"""

from contextlib import AbstractContextManager
from typing import Optional, Protocol
from uuid import UUID

from .catalog import UserAchievement
from .models import Booking, BookingStatus, GymSession, Member, MemberStatus


class TransactionManager(Protocol):
    """Runs a block of store calls as one atomic unit."""

    def transaction(self) -> AbstractContextManager[None]:
        """Commit on normal exit, roll back if the block raises."""
        ...


class SessionStore(Protocol):

    def lock_session(self, session_id: UUID) -> bool:
        """
        Take the write lock on an active session for the current transaction.

        Returns False if no active session has this id.
        """
        ...

    def get_session(self, session_id: UUID) -> Optional[GymSession]:
        ...


class BookingStore(Protocol):

    def has_confirmed_booking(self, user_id: str, session_id: UUID) -> bool:
        ...

    def add_booking(self, booking: Booking) -> None:
        ...

    def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        ...

    def save_status(self, booking: Booking, previous: BookingStatus) -> bool:
        """
        Persist a status change, guarded on the previous status.

        Returns False if the row had already moved on.
        """
        ...

    def list_for_member(
        self,
        user_id: str,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        ...


class MemberStore(Protocol):

    def get_member(self, user_id: str) -> Optional[Member]:
        ...

    def lock_member(self, user_id: str) -> bool:
        """Take the write lock on a member row. False if the member is unknown."""
        ...

    def add_points(self, user_id: str, points: int) -> None:
        ...

    def add_member(self, member: Member) -> bool:
        """Insert a member. False if the email is already registered."""
        ...

    def set_status(self, user_id: str, status: MemberStatus) -> bool:
        ...


class AchievementStore(Protocol):

    def list_earned(self, user_id: str) -> list[UserAchievement]:
        ...

    def add_earned(self, achievement: UserAchievement) -> bool:
        """Insert the join row. False if the member already has it."""
        ...
