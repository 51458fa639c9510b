"""
Member API endpoints.

Registration, approval, profile, dashboard stats and booking history.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.gym.models import BookingStatus, Member, MemberRole, MembershipType
from ...core.gym.stats import MemberStats
from ..dependencies import (
    AdminOnly,
    AuthenticatedUser,
    BookingServiceDep,
    MemberServiceDep,
    Today,
)
from .bookings import BookingResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class RegisterMemberRequest(BaseModel):
    """Sign-up request. Accepts camelCase keys from the web client too."""
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3, max_length=254)
    first_name: str = Field(alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(alias="lastName", min_length=1, max_length=100)
    membership_type: MembershipType = Field(MembershipType.ONE_TRIMESTER, alias="membershipType")


class MemberResponse(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    role: str
    membership_type: str
    status: str
    points: int
    created_at: datetime

    @classmethod
    def from_member(cls, member: Member) -> "MemberResponse":
        return cls(
            user_id=member.id,
            email=member.email,
            first_name=member.first_name,
            last_name=member.last_name,
            role=member.role.value,
            membership_type=member.membership_type.value,
            status=member.status.value,
            points=member.points,
            created_at=member.created_at,
        )


class MemberStatsResponse(BaseModel):
    user_id: str
    points: int
    current_streak: int = Field(description="Consecutive workout days ending today or yesterday")
    longest_streak: int
    total_workouts: int = Field(description="Completed bookings")
    weekly_bookings: int = Field(description="Confirmed bookings this week")
    total_bookings: int
    membership_type: str
    status: str
    join_date: datetime
    achievements: list[str]

    @classmethod
    def from_stats(cls, user_id: str, stats: MemberStats) -> "MemberStatsResponse":
        return cls(
            user_id=user_id,
            points=stats.points,
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
            total_workouts=stats.total_workouts,
            weekly_bookings=stats.weekly_bookings,
            total_bookings=stats.total_bookings,
            membership_type=stats.membership_type,
            status=stats.status,
            join_date=stats.join_date,
            achievements=stats.achievements,
        )


class MemberBookingsResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Sign up with a university email. New members wait for admin approval.",
    responses={
        409: {"description": "Email already registered"},
        422: {"description": "Email outside the university domain"},
    },
)
async def register_member(
    request: RegisterMemberRequest,
    api_key: AuthenticatedUser = None,
    service: MemberServiceDep = None,
) -> MemberResponse:
    member = service.register(
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        membership_type=request.membership_type,
        role=MemberRole.STUDENT,
    )

    logger.info(
        "Member registered",
        extra={"user_id": member.id, "membership_type": member.membership_type.value}
    )

    return MemberResponse.from_member(member)


@router.get(
    "/{user_id}",
    response_model=MemberResponse,
    status_code=status.HTTP_200_OK,
    summary="Get member",
)
async def get_member(
    user_id: str,
    api_key: AuthenticatedUser = None,
    service: MemberServiceDep = None,
) -> MemberResponse:
    return MemberResponse.from_member(service.get_member(user_id))


@router.post(
    "/{user_id}/approve",
    response_model=MemberResponse,
    status_code=status.HTTP_200_OK,
    summary="Approve member",
    description="Approve a pending registration (admin only)",
)
async def approve_member(
    user_id: str,
    _admin: AdminOnly = None,
    service: MemberServiceDep = None,
) -> MemberResponse:
    member = service.approve(user_id)
    logger.info("Member approved", extra={"user_id": user_id})
    return MemberResponse.from_member(member)


@router.get(
    "/{user_id}/stats",
    response_model=MemberStatsResponse,
    status_code=status.HTTP_200_OK,
    summary="Member stats",
    description="Points, streaks and booking counts for the member dashboard",
)
async def get_member_stats(
    user_id: str,
    today: Today,
    api_key: AuthenticatedUser = None,
    service: MemberServiceDep = None,
) -> MemberStatsResponse:
    return MemberStatsResponse.from_stats(user_id, service.get_stats(user_id, today))


@router.get(
    "/{user_id}/bookings",
    response_model=MemberBookingsResponse,
    status_code=status.HTTP_200_OK,
    summary="Member bookings",
    description="A member's bookings, most recent session first. Optionally filtered by status.",
)
async def get_member_bookings(
    user_id: str,
    booking_status: Optional[str] = Query(None, alias="status", description="confirmed, cancelled, no-show or completed"),
    api_key: AuthenticatedUser = None,
    service: BookingServiceDep = None,
) -> MemberBookingsResponse:
    status_filter = None
    if booking_status is not None:
        try:
            status_filter = BookingStatus(booking_status)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown booking status: {booking_status}",
            )

    bookings = service.list_member_bookings(user_id, status_filter)

    return MemberBookingsResponse(
        bookings=[BookingResponse.from_booking(b) for b in bookings],
        total=len(bookings),
    )
