"""Per-member workout statistics for the dashboard."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from .catalog import UserAchievement
from .models import Booking, BookingStatus, Member
from .progress import WorkoutHistory, current_streak, in_current_week, longest_streak


@dataclass
class MemberStats:
    points: int
    current_streak: int
    longest_streak: int
    total_workouts: int
    weekly_bookings: int
    total_bookings: int
    membership_type: str
    status: str
    join_date: datetime
    achievements: list[str] = field(default_factory=list)


def build_member_stats(
    member: Member,
    bookings: Iterable[Booking],
    earned: Iterable[UserAchievement],
    today: date,
) -> MemberStats:
    """
    Summarise a member's activity.

    weekly_bookings counts confirmed (upcoming or not yet checked-in)
    bookings this week; the workout numbers only count completed ones.
    """
    bookings = list(bookings)
    history = WorkoutHistory.from_bookings(bookings, today)

    weekly = sum(
        1 for b in bookings
        if b.status == BookingStatus.CONFIRMED
        and b.session_date is not None
        and in_current_week(b.session_date, today)
    )

    return MemberStats(
        points=member.points,
        current_streak=current_streak(history.days, today),
        longest_streak=longest_streak(history.days),
        total_workouts=len(history.workouts),
        weekly_bookings=weekly,
        total_bookings=len(bookings),
        membership_type=member.membership_type.value,
        status=member.status.value,
        join_date=member.created_at,
        achievements=[a.achievement_type.value for a in earned],
    )
