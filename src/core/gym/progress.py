"""
Achievement progress engine.

Given a member's booking history, work out how far along they are towards
each achievement. Everything here is a pure function of the history and
"today" - the caller fetches the bookings and decides what day it is in
the gym's timezone.

Only completed bookings count. A booking that was cancelled or missed
isn't a workout.
"""

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Callable, Iterable

from .catalog import (
    ACHIEVEMENT_CATALOG,
    AchievementDefinition,
    AchievementType,
    UserAchievement,
)
from .models import Booking


WEEKLY_TARGET = 5
STREAK_TARGET = 3
EARLY_BIRD_TARGET = 5
MONTHLY_TARGET = 20
DEDICATED_TARGET = 100

EARLY_BIRD_START_HOUR = 6
EARLY_BIRD_END_HOUR = 9  # exclusive


@dataclass(frozen=True)
class Workout:
    """A completed booking, reduced to what the formulas need."""
    day: date
    start_time: time


@dataclass
class WorkoutHistory:
    workouts: list[Workout]
    today: date

    @classmethod
    def from_bookings(cls, bookings: Iterable[Booking], today: date) -> "WorkoutHistory":
        """Keep completed bookings that know their session date and time."""
        workouts = [
            Workout(day=b.session_date, start_time=b.start_time)
            for b in bookings
            if b.is_completed and b.session_date is not None and b.start_time is not None
        ]
        return cls(workouts=workouts, today=today)

    @property
    def days(self) -> list[date]:
        return [w.day for w in self.workouts]


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def week_start(today: date) -> date:
    """The Sunday on or before today. Weeks run Sunday to Saturday."""
    return today - timedelta(days=(today.weekday() + 1) % 7)


def in_current_week(day: date, today: date) -> bool:
    start = week_start(today)
    return start <= day < start + timedelta(days=7)


def in_current_month(day: date, today: date) -> bool:
    return day.year == today.year and day.month == today.month


def longest_streak(days: Iterable[date]) -> int:
    """
    Longest run of consecutive calendar days.

    Dates are deduplicated and sorted, then scanned pairwise: a gap of one
    day extends the run, anything else starts a new one.
    """
    ordered = sorted(set(days))
    if not ordered:
        return 0

    best = current = 1
    for previous, following in zip(ordered, ordered[1:]):
        if (following - previous).days == 1:
            current += 1
        else:
            current = 1
        best = max(best, current)
    return best


def current_streak(days: Iterable[date], today: date) -> int:
    """
    Consecutive workout days ending at the most recent one.

    The streak is only alive if the most recent workout was today or
    yesterday; otherwise it's zero.
    """
    ordered = sorted(set(days), reverse=True)
    if not ordered or (today - ordered[0]).days > 1:
        return 0

    streak = 1
    for later, earlier in zip(ordered, ordered[1:]):
        if (later - earlier).days != 1:
            break
        streak += 1
    return streak


def _percent(count: int, target: int) -> float:
    return min(count * 100 / target, 100.0)


# ---------------------------------------------------------------------------
# Progress formulas, one per achievement type
# ---------------------------------------------------------------------------

def _first_workout(history: WorkoutHistory) -> float:
    return 100.0 if history.workouts else 0.0


def _weekly_warrior(history: WorkoutHistory) -> float:
    count = sum(1 for d in history.days if in_current_week(d, history.today))
    return _percent(count, WEEKLY_TARGET)


def _consistency_king(history: WorkoutHistory) -> float:
    return _percent(longest_streak(history.days), STREAK_TARGET)


def _early_bird(history: WorkoutHistory) -> float:
    count = sum(
        1 for w in history.workouts
        if EARLY_BIRD_START_HOUR <= w.start_time.hour < EARLY_BIRD_END_HOUR
    )
    return _percent(count, EARLY_BIRD_TARGET)


def _month_master(history: WorkoutHistory) -> float:
    count = sum(1 for d in history.days if in_current_month(d, history.today))
    return _percent(count, MONTHLY_TARGET)


def _dedicated_member(history: WorkoutHistory) -> float:
    return _percent(len(history.workouts), DEDICATED_TARGET)


ProgressFormula = Callable[[WorkoutHistory], float]

PROGRESS_FORMULAS: dict[AchievementType, ProgressFormula] = {
    AchievementType.FIRST_WORKOUT: _first_workout,
    AchievementType.WEEKLY_WARRIOR: _weekly_warrior,
    AchievementType.CONSISTENCY_KING: _consistency_king,
    AchievementType.EARLY_BIRD: _early_bird,
    AchievementType.MONTH_MASTER: _month_master,
    AchievementType.DEDICATED_MEMBER: _dedicated_member,
}

_unhandled = set(AchievementType) - set(PROGRESS_FORMULAS)
if _unhandled:
    raise RuntimeError(
        "No progress formula for: "
        + ", ".join(sorted(t.value for t in _unhandled))
    )


def calculate_progress(achievement_type: AchievementType, history: WorkoutHistory) -> float:
    """Progress towards one achievement as a percentage in [0, 100]."""
    return PROGRESS_FORMULAS[achievement_type](history)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

@dataclass
class AchievementProgress:
    """An achievement not yet earned, with how close the member is."""
    definition: AchievementDefinition
    progress: float

    @property
    def is_unlockable(self) -> bool:
        return self.progress >= 100.0


@dataclass
class AchievementSummary:
    earned: list[UserAchievement] = field(default_factory=list)
    available: list[AchievementProgress] = field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(a.points_awarded for a in self.earned)


def summarize_achievements(
    history: WorkoutHistory,
    earned: Iterable[UserAchievement],
) -> AchievementSummary:
    """
    Split the catalog into earned and available achievements.

    Earned entries come from persisted grants, so an achievement sitting at
    100% progress stays "available" until someone grants it.
    """
    earned_list = sorted(earned, key=lambda a: a.earned_at)
    earned_types = {a.achievement_type for a in earned_list}

    available = [
        AchievementProgress(
            definition=definition,
            progress=calculate_progress(achievement_type, history),
        )
        for achievement_type, definition in ACHIEVEMENT_CATALOG.items()
        if achievement_type not in earned_types
    ]

    return AchievementSummary(earned=earned_list, available=available)
