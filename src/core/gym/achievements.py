"""
Achievement queries and grants.

Progress is computed on the fly from booking history (see progress.py).
Earning an achievement is a separate, explicit step: a grant writes the
join row and bumps the member's points in one transaction, and is
rejected if the member already has it.
"""

from datetime import date

from .catalog import UserAchievement, get_definition
from .errors import (
    AchievementAlreadyEarnedError,
    AchievementLockedError,
    ForbiddenError,
    MemberNotFoundError,
)
from .ports import AchievementStore, BookingStore, MemberStore, TransactionManager
from .progress import (
    AchievementSummary,
    WorkoutHistory,
    calculate_progress,
    summarize_achievements,
)


class AchievementService:

    def __init__(
        self,
        achievements: AchievementStore,
        bookings: BookingStore,
        members: MemberStore,
        transactions: TransactionManager,
    ) -> None:
        self._achievements = achievements
        self._bookings = bookings
        self._members = members
        self._transactions = transactions

    def get_summary(self, user_id: str, today: date) -> AchievementSummary:
        """Earned achievements plus progress towards everything else."""
        if self._members.get_member(user_id) is None:
            raise MemberNotFoundError()

        history = WorkoutHistory.from_bookings(
            self._bookings.list_for_member(user_id), today
        )
        return summarize_achievements(history, self._achievements.list_earned(user_id))

    def grant(
        self,
        user_id: str,
        achievement_id: str,
        today: date,
        admin_override: bool = False,
        is_admin: bool = False,
    ) -> UserAchievement:
        """
        Award an achievement to a member.

        Without admin_override the member must have reached 100% progress.
        With it, an admin can award regardless of progress. Either way a
        member earns each achievement at most once.
        """
        if admin_override and not is_admin:
            raise ForbiddenError("Admin role required to override achievement requirements")

        definition = get_definition(achievement_id)

        with self._transactions.transaction():
            if not self._members.lock_member(user_id):
                raise MemberNotFoundError()

            earned_types = {
                a.achievement_type for a in self._achievements.list_earned(user_id)
            }
            if definition.type in earned_types:
                raise AchievementAlreadyEarnedError()

            if not admin_override:
                history = WorkoutHistory.from_bookings(
                    self._bookings.list_for_member(user_id), today
                )
                if calculate_progress(definition.type, history) < 100.0:
                    raise AchievementLockedError()

            achievement = UserAchievement(
                user_id=user_id,
                achievement_type=definition.type,
                points_awarded=definition.points,
            )
            if not self._achievements.add_earned(achievement):
                raise AchievementAlreadyEarnedError()

            self._members.add_points(user_id, definition.points)

        return achievement
