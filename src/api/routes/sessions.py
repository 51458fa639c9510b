"""
Timetable API endpoints.

Members browse upcoming sessions; admins add sessions to the timetable.
Booking counts are live: they come from the bookings table on every read.
"""

import logging
from datetime import date, time, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from ...core.gym.errors import SessionNotFoundError
from ...core.gym.models import GymSession, SessionType
from ..dependencies import (
    AdminOnly,
    AuthenticatedUser,
    SessionRepositoryDep,
    SettingsDep,
    Today,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    """Request to add a session to the timetable."""
    session_date: date = Field(description="Day the session runs")
    start_time: time = Field(description="Start time (gym local time)")
    end_time: time = Field(description="End time (gym local time)")
    capacity: int = Field(description="Number of seats", gt=0, le=500)
    session_type: SessionType = Field(SessionType.GENERAL, description="Kind of session")
    instructor: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)


class SessionResponse(BaseModel):
    """A timetable session with live availability."""
    session_id: UUID
    session_date: date
    start_time: time
    end_time: time
    capacity: int
    current_bookings: int
    available_spots: int
    is_full: bool
    session_type: str
    instructor: Optional[str] = None
    description: Optional[str] = None
    is_active: bool

    @classmethod
    def from_session(cls, session: GymSession) -> "SessionResponse":
        return cls(
            session_id=session.id,
            session_date=session.session_date,
            start_time=session.start_time,
            end_time=session.end_time,
            capacity=session.capacity,
            current_bookings=session.current_bookings,
            available_spots=session.available_spots,
            is_full=session.is_full,
            session_type=session.session_type.value,
            instructor=session.instructor,
            description=session.description,
            is_active=session.is_active,
        )


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]
    total: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=SessionListResponse,
    status_code=status.HTTP_200_OK,
    summary="List sessions",
    description="Timetable sessions between two dates (inclusive). Defaults to the coming week.",
)
async def list_sessions(
    today: Today,
    settings: SettingsDep,
    start_date: Optional[date] = Query(None, description="First day (default: today)"),
    end_date: Optional[date] = Query(None, description="Last day (default: start + 6 days)"),
    include_inactive: bool = Query(False, description="Include cancelled sessions"),
    api_key: AuthenticatedUser = None,
    repository: SessionRepositoryDep = None,
) -> SessionListResponse:
    start = start_date or today
    end = end_date or start + timedelta(days=6)

    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )

    if (end - start).days + 1 > settings.max_session_range_days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Date range cannot exceed {settings.max_session_range_days} days",
        )

    sessions = repository.list_sessions(start, end, include_inactive=include_inactive)

    logger.info(
        "Listed sessions",
        extra={
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "count": len(sessions),
        }
    )

    return SessionListResponse(
        sessions=[SessionResponse.from_session(s) for s in sessions],
        total=len(sessions),
    )


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Get session",
)
async def get_session(
    session_id: UUID,
    api_key: AuthenticatedUser = None,
    repository: SessionRepositoryDep = None,
) -> SessionResponse:
    session = repository.get_session(session_id)
    if session is None:
        raise SessionNotFoundError()

    return SessionResponse.from_session(session)


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create session",
    description="Add a session to the timetable (admin only)",
)
async def create_session(
    request: CreateSessionRequest,
    _admin: AdminOnly = None,
    repository: SessionRepositoryDep = None,
) -> SessionResponse:
    try:
        session = GymSession(
            session_date=request.session_date,
            start_time=request.start_time,
            end_time=request.end_time,
            capacity=request.capacity,
            session_type=request.session_type,
            instructor=request.instructor,
            description=request.description,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    repository.create_session(session)

    return SessionResponse.from_session(session)
