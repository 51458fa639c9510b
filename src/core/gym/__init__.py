"""
Gym domain logic.

Contains the domain models, the booking guard, the achievement progress
engine and the services that tie them to storage.
"""

from .achievements import AchievementService
from .booking import BookingService, check_booking_allowed
from .catalog import (
    ACHIEVEMENT_CATALOG,
    AchievementCategory,
    AchievementDefinition,
    AchievementType,
    UserAchievement,
)
from .members import MemberService
from .models import (
    Booking,
    BookingStatus,
    GymSession,
    Member,
    MemberRole,
    MemberStatus,
    MembershipType,
    SessionType,
)
from .progress import AchievementProgress, AchievementSummary, WorkoutHistory

__all__ = [
    "ACHIEVEMENT_CATALOG",
    "AchievementCategory",
    "AchievementDefinition",
    "AchievementProgress",
    "AchievementService",
    "AchievementSummary",
    "AchievementType",
    "Booking",
    "BookingService",
    "BookingStatus",
    "GymSession",
    "Member",
    "MemberRole",
    "MemberService",
    "MemberStatus",
    "MembershipType",
    "SessionType",
    "UserAchievement",
    "WorkoutHistory",
    "check_booking_allowed",
]
