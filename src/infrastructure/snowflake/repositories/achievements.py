"""
Snowflake repository for earned achievements.

The catalog itself lives in code (core.gym.catalog). Only the join rows
recording who earned what, and when, are stored.
"""

import logging

from src.core.gym.catalog import UserAchievement, parse_achievement_type

from .sessions import SnowflakeConnection

logger = logging.getLogger(__name__)


class AchievementRepository:

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def list_earned(self, user_id: str) -> list[UserAchievement]:
        """
        A member's earned achievements, oldest first.

        Rows for achievement ids that are no longer in the catalog are
        skipped rather than failing the whole request.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT user_id, achievement_id, points_awarded, earned_at
                FROM user_achievements
                WHERE user_id = %s
                ORDER BY earned_at
            """, (user_id,))

            earned = []
            for row in cursor.fetchall():
                achievement_type = parse_achievement_type(row[1])
                if achievement_type is None:
                    logger.warning(
                        "Skipping unknown achievement",
                        extra={"user_id": user_id, "achievement_id": row[1]}
                    )
                    continue

                earned.append(UserAchievement(
                    user_id=row[0],
                    achievement_type=achievement_type,
                    points_awarded=row[2] or 0,
                    earned_at=row[3],
                ))
            return earned

        finally:
            cursor.close()

    def add_earned(self, achievement: UserAchievement) -> bool:
        """Insert the join row. Returns False if the member already has it."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT COUNT(*) FROM user_achievements
                WHERE user_id = %s AND achievement_id = %s
            """, (achievement.user_id, achievement.achievement_type.value))

            row = cursor.fetchone()
            if row and row[0]:
                return False

            cursor.execute("""
                INSERT INTO user_achievements (
                    user_id, achievement_id, points_awarded, earned_at
                ) VALUES (%s, %s, %s, %s)
            """, (
                achievement.user_id,
                achievement.achievement_type.value,
                achievement.points_awarded,
                achievement.earned_at,
            ))

            logger.info(
                "Achievement granted",
                extra={
                    "user_id": achievement.user_id,
                    "achievement_id": achievement.achievement_type.value,
                    "points": achievement.points_awarded,
                }
            )
            return True

        finally:
            cursor.close()
