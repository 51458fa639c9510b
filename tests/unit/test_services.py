"""
Tests for the achievement and member services, against the mock
Snowflake connection.
"""

from datetime import date, time, timedelta

import pytest

from src.core.gym.catalog import AchievementType
from src.core.gym.errors import (
    AchievementAlreadyEarnedError,
    AchievementLockedError,
    AchievementNotFoundError,
    EmailAlreadyRegisteredError,
    ForbiddenError,
    InvalidRequestError,
    MemberNotFoundError,
)
from src.core.gym.models import MemberStatus

TODAY = date(2025, 3, 12)


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------

class TestGrantAchievement:

    def test_grant_awards_points(self, achievement_service, member_repository, make_member, record_workout):
        member = make_member()
        record_workout(member.id, TODAY)

        earned = achievement_service.grant(member.id, "first_workout", TODAY)

        assert earned.achievement_type == AchievementType.FIRST_WORKOUT
        assert earned.points_awarded == 10
        assert member_repository.get_member(member.id).points == 10

    def test_second_grant_does_not_double_points(
        self, achievement_service, member_repository, make_member, record_workout
    ):
        member = make_member()
        record_workout(member.id, TODAY)
        achievement_service.grant(member.id, "first_workout", TODAY)

        with pytest.raises(AchievementAlreadyEarnedError, match="already earned"):
            achievement_service.grant(member.id, "first_workout", TODAY)

        assert member_repository.get_member(member.id).points == 10

    def test_locked_without_progress(self, achievement_service, member_repository, make_member):
        member = make_member()

        with pytest.raises(AchievementLockedError):
            achievement_service.grant(member.id, "first_workout", TODAY)

        assert member_repository.get_member(member.id).points == 0

    def test_admin_override_skips_progress(self, achievement_service, member_repository, make_member):
        member = make_member(points=5)

        achievement_service.grant(
            member.id, "dedicated_member", TODAY, admin_override=True, is_admin=True
        )

        assert member_repository.get_member(member.id).points == 505

    def test_override_needs_admin(self, achievement_service, make_member):
        member = make_member()

        with pytest.raises(ForbiddenError):
            achievement_service.grant(member.id, "first_workout", TODAY, admin_override=True)

    def test_unknown_achievement(self, achievement_service, make_member):
        with pytest.raises(AchievementNotFoundError):
            achievement_service.grant(make_member().id, "marathon_runner", TODAY)

    def test_unknown_member(self, achievement_service):
        with pytest.raises(MemberNotFoundError):
            achievement_service.grant("nobody", "first_workout", TODAY, admin_override=True, is_admin=True)

    def test_cancelled_bookings_do_not_count(
        self, achievement_service, booking_service, make_member, make_session
    ):
        member = make_member()
        booking = booking_service.book_session(member.id, make_session().id)
        booking_service.cancel_booking(booking.id, acting_user_id=member.id)

        with pytest.raises(AchievementLockedError):
            achievement_service.grant(member.id, "first_workout", TODAY)


class TestAchievementSummary:

    def test_summary_reports_progress_and_points(self, achievement_service, make_member, record_workout):
        member = make_member()
        for offset in range(3):
            record_workout(member.id, TODAY - timedelta(days=offset), start_time=time(6, 30))
        achievement_service.grant(member.id, "consistency_king", TODAY)

        summary = achievement_service.get_summary(member.id, TODAY)

        assert [a.achievement_type for a in summary.earned] == [AchievementType.CONSISTENCY_KING]
        assert summary.total_points == 75
        progress = {p.definition.type: p.progress for p in summary.available}
        assert progress[AchievementType.EARLY_BIRD] == 60.0
        assert progress[AchievementType.WEEKLY_WARRIOR] == 60.0

    def test_summary_for_unknown_member(self, achievement_service):
        with pytest.raises(MemberNotFoundError):
            achievement_service.get_summary("nobody", TODAY)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class TestMemberService:

    def test_register_creates_pending_member(self, member_service):
        member = member_service.register("Jo.Bloggs@my.jcu.edu.au", "Jo", "Bloggs")

        assert member.email == "jo.bloggs@my.jcu.edu.au"
        assert member.status == MemberStatus.PENDING
        assert member_service.get_member(member.id).points == 0

    def test_register_requires_university_email(self, member_service):
        with pytest.raises(InvalidRequestError, match="university email"):
            member_service.register("jo@gmail.com", "Jo", "Bloggs")

    def test_register_rejects_duplicate_email(self, member_service):
        member_service.register("jo@my.jcu.edu.au", "Jo", "Bloggs")

        with pytest.raises(EmailAlreadyRegisteredError):
            member_service.register("jo@my.jcu.edu.au", "Joanne", "Bloggs")

    def test_approve(self, member_service):
        member = member_service.register("jo@my.jcu.edu.au", "Jo", "Bloggs")

        approved = member_service.approve(member.id)

        assert approved.status == MemberStatus.APPROVED

    def test_pending_member_can_still_book(self, member_service, booking_service, make_session):
        """Approval is a status change only; booking doesn't check it."""
        member = member_service.register("jo@my.jcu.edu.au", "Jo", "Bloggs")

        booking = booking_service.book_session(member.id, make_session().id)

        assert member_service.get_member(member.id).status == MemberStatus.PENDING
        assert booking.user_id == member.id

    def test_approve_unknown_member(self, member_service):
        with pytest.raises(MemberNotFoundError):
            member_service.approve("nobody")

    def test_stats(self, member_service, booking_service, make_member, make_session, record_workout):
        member = make_member()
        record_workout(member.id, TODAY - timedelta(days=1))
        record_workout(member.id, TODAY)
        booking_service.book_session(member.id, make_session(session_date=TODAY + timedelta(days=1)).id)

        stats = member_service.get_stats(member.id, TODAY)

        assert stats.total_workouts == 2
        assert stats.current_streak == 2
        assert stats.longest_streak == 2
        assert stats.weekly_bookings == 1
        assert stats.total_bookings == 3
        assert stats.achievements == []
