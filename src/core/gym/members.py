"""
Member registration, approval and stats.

New members sign up with their university email and wait in "pending"
until an admin approves them.
"""

from datetime import date
from uuid import uuid4

from .errors import EmailAlreadyRegisteredError, InvalidRequestError, MemberNotFoundError
from .models import Member, MemberRole, MemberStatus, MembershipType
from .ports import AchievementStore, BookingStore, MemberStore, TransactionManager
from .stats import MemberStats, build_member_stats


class MemberService:

    def __init__(
        self,
        members: MemberStore,
        bookings: BookingStore,
        achievements: AchievementStore,
        transactions: TransactionManager,
        email_domain: str,
    ) -> None:
        self._members = members
        self._bookings = bookings
        self._achievements = achievements
        self._transactions = transactions
        self._email_domain = email_domain.lower().lstrip("@")

    def register(
        self,
        email: str,
        first_name: str,
        last_name: str,
        membership_type: MembershipType = MembershipType.ONE_TRIMESTER,
        role: MemberRole = MemberRole.STUDENT,
    ) -> Member:
        email = email.strip().lower()
        local_part, _, domain = email.partition("@")
        if not local_part or domain != self._email_domain:
            raise InvalidRequestError(
                f"Please use your university email address (@{self._email_domain})"
            )

        member = Member(
            id=str(uuid4()),
            email=email,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=role,
            membership_type=membership_type,
            status=MemberStatus.PENDING,
        )

        with self._transactions.transaction():
            if not self._members.add_member(member):
                raise EmailAlreadyRegisteredError()

        return member

    def get_member(self, user_id: str) -> Member:
        member = self._members.get_member(user_id)
        if member is None:
            raise MemberNotFoundError()
        return member

    def approve(self, user_id: str) -> Member:
        return self._set_status(user_id, MemberStatus.APPROVED)

    def get_stats(self, user_id: str, today: date) -> MemberStats:
        member = self.get_member(user_id)
        return build_member_stats(
            member,
            self._bookings.list_for_member(user_id),
            self._achievements.list_earned(user_id),
            today,
        )

    def _set_status(self, user_id: str, status: MemberStatus) -> Member:
        with self._transactions.transaction():
            if not self._members.set_status(user_id, status):
                raise MemberNotFoundError()
        return self.get_member(user_id)
