"""Snowflake repository for gym members."""

import logging
from datetime import datetime
from typing import Optional

from src.core.gym.models import Member, MemberRole, MemberStatus, MembershipType

from .sessions import SnowflakeConnection

logger = logging.getLogger(__name__)


class MemberRepository:
    """
    Repository for member profiles and point totals.

    Points are only ever changed with an additive UPDATE, never by
    writing back a value read earlier.
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def get_member(self, user_id: str) -> Optional[Member]:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT user_id, email, first_name, last_name, role,
                       membership_type, status, points, created_at
                FROM gym_users
                WHERE user_id = %s
            """, (user_id,))

            row = cursor.fetchone()
            return self._build_member(row) if row else None

        finally:
            cursor.close()

    def add_member(self, member: Member) -> bool:
        """
        Insert a new member. Returns False if the email is taken.

        The count and the insert aren't serialised against other
        registrations, and Snowflake doesn't enforce UNIQUE, so two
        simultaneous sign-ups with one email can both land.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT COUNT(*) FROM gym_users WHERE email = %s
            """, (member.email,))

            row = cursor.fetchone()
            if row and row[0]:
                logger.warning(
                    "Registration with existing email",
                    extra={"email": member.email}
                )
                return False

            cursor.execute("""
                INSERT INTO gym_users (
                    user_id, email, first_name, last_name, role,
                    membership_type, status, points, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                member.id,
                member.email,
                member.first_name,
                member.last_name,
                member.role.value,
                member.membership_type.value,
                member.status.value,
                member.points,
                member.created_at,
                member.created_at,
            ))

            logger.info(
                "Member registered",
                extra={"user_id": member.id, "status": member.status.value}
            )
            return True

        finally:
            cursor.close()

    def lock_member(self, user_id: str) -> bool:
        """Take the row lock on a member for the current transaction."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE gym_users
                SET updated_at = CURRENT_TIMESTAMP()
                WHERE user_id = %s
            """, (user_id,))

            return cursor.rowcount > 0

        finally:
            cursor.close()

    def add_points(self, user_id: str, points: int) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE gym_users
                SET points = points + %s,
                    updated_at = CURRENT_TIMESTAMP()
                WHERE user_id = %s
            """, (points, user_id))

        finally:
            cursor.close()

    def set_status(self, user_id: str, status: MemberStatus) -> bool:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE gym_users
                SET status = %s,
                    updated_at = CURRENT_TIMESTAMP()
                WHERE user_id = %s
            """, (status.value, user_id))

            updated = cursor.rowcount > 0
            if updated:
                logger.info(
                    "Member status changed",
                    extra={"user_id": user_id, "status": status.value}
                )
            return updated

        finally:
            cursor.close()

    def _build_member(self, row) -> Member:
        return Member(
            id=row[0],
            email=row[1],
            first_name=row[2] or "",
            last_name=row[3] or "",
            role=MemberRole(row[4]) if row[4] else MemberRole.STUDENT,
            membership_type=MembershipType(row[5]) if row[5] else MembershipType.ONE_TRIMESTER,
            status=MemberStatus(row[6]) if row[6] else MemberStatus.PENDING,
            points=row[7] or 0,
            created_at=row[8] or datetime.utcnow(),
        )
