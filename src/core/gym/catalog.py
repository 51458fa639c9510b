"""
The achievement catalog.

The set of achievements is fixed and not user-editable. Each entry is
keyed by an AchievementType so that anything dispatching on achievements
can be checked against the full set of types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import AchievementNotFoundError


class AchievementType(Enum):
    FIRST_WORKOUT = "first_workout"
    WEEKLY_WARRIOR = "weekly_warrior"
    CONSISTENCY_KING = "consistency_king"
    EARLY_BIRD = "early_bird"
    MONTH_MASTER = "month_master"
    DEDICATED_MEMBER = "dedicated_member"


class AchievementCategory(Enum):
    MILESTONE = "milestone"
    FREQUENCY = "frequency"
    STREAK = "streak"
    TIME = "time"


@dataclass(frozen=True)
class AchievementDefinition:
    """A catalog entry. Frozen because the catalog never changes at runtime."""
    type: AchievementType
    name: str
    description: str
    icon: str
    points: int
    category: AchievementCategory

    @property
    def id(self) -> str:
        return self.type.value


ACHIEVEMENT_CATALOG: dict[AchievementType, AchievementDefinition] = {
    AchievementType.FIRST_WORKOUT: AchievementDefinition(
        type=AchievementType.FIRST_WORKOUT,
        name="First Workout",
        description="Complete your first gym session",
        icon="🎯",
        points=10,
        category=AchievementCategory.MILESTONE,
    ),
    AchievementType.WEEKLY_WARRIOR: AchievementDefinition(
        type=AchievementType.WEEKLY_WARRIOR,
        name="Weekly Warrior",
        description="Complete 5 sessions in a single week",
        icon="💪",
        points=50,
        category=AchievementCategory.FREQUENCY,
    ),
    AchievementType.CONSISTENCY_KING: AchievementDefinition(
        type=AchievementType.CONSISTENCY_KING,
        name="Consistency King",
        description="Work out 3 days in a row",
        icon="🔥",
        points=75,
        category=AchievementCategory.STREAK,
    ),
    AchievementType.EARLY_BIRD: AchievementDefinition(
        type=AchievementType.EARLY_BIRD,
        name="Early Bird",
        description="Complete 5 sessions starting between 6am and 9am",
        icon="🌅",
        points=30,
        category=AchievementCategory.TIME,
    ),
    AchievementType.MONTH_MASTER: AchievementDefinition(
        type=AchievementType.MONTH_MASTER,
        name="Month Master",
        description="Complete 20 sessions in a single month",
        icon="📅",
        points=150,
        category=AchievementCategory.FREQUENCY,
    ),
    AchievementType.DEDICATED_MEMBER: AchievementDefinition(
        type=AchievementType.DEDICATED_MEMBER,
        name="Dedicated Member",
        description="Complete 100 gym sessions",
        icon="🏆",
        points=500,
        category=AchievementCategory.MILESTONE,
    ),
}


def get_definition(achievement_id: str) -> AchievementDefinition:
    """Look up a catalog entry by its string id."""
    try:
        return ACHIEVEMENT_CATALOG[AchievementType(achievement_id)]
    except ValueError:
        raise AchievementNotFoundError() from None


def parse_achievement_type(achievement_id: str) -> Optional[AchievementType]:
    """Like get_definition, but returns None for ids not in the catalog."""
    try:
        return AchievementType(achievement_id)
    except ValueError:
        return None


@dataclass
class UserAchievement:
    """
    An achievement a member has earned.

    Created once per (member, achievement) and never changed afterwards.
    points_awarded is copied from the catalog at grant time.
    """
    user_id: str
    achievement_type: AchievementType
    points_awarded: int
    earned_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def definition(self) -> AchievementDefinition:
        return ACHIEVEMENT_CATALOG[self.achievement_type]
