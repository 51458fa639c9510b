"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .achievements import AchievementRepository
from .bookings import BookingRepository
from .members import MemberRepository
from .sessions import GymSessionRepository, SnowflakeConfig

__all__ = [
    "AchievementRepository",
    "BookingRepository",
    "GymSessionRepository",
    "MemberRepository",
    "SnowflakeConfig",
]
