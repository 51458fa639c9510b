"""
Booking API endpoints.

Creating a booking goes through the booking guard: the session must
exist, have a free seat, and the member mustn't already be booked in.
The checks and the insert happen in one transaction, so the last seat
can only be taken once.

The member is taken from the request body, falling back to the
X-User-Id header.
"""

import logging
from datetime import date, datetime, time
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Header, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.gym.models import Booking
from ..dependencies import (
    AdminOnly,
    AuthenticatedUser,
    BookingServiceDep,
    IsAdmin,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CreateBookingRequest(BaseModel):
    """Request to book a seat. Accepts camelCase keys from the web client too."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId", max_length=100)
    session_id: Optional[UUID] = Field(None, alias="sessionId")


class BookingResponse(BaseModel):
    booking_id: UUID
    user_id: str
    session_id: UUID
    status: str
    booked_at: datetime
    updated_at: datetime
    session_date: Optional[date] = None
    start_time: Optional[time] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            booking_id=booking.id,
            user_id=booking.user_id,
            session_id=booking.session_id,
            status=booking.status.value,
            booked_at=booking.booked_at,
            updated_at=booking.updated_at,
            session_date=booking.session_date,
            start_time=booking.start_time,
        )


class BookingCreatedResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingResponse


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a session",
    description="Book a seat in a session. Fails if the session is missing, full, or already booked by this member.",
    responses={
        404: {"description": "Session not found"},
        409: {"description": "Session is fully booked, or already booked by this member"},
    },
)
async def create_booking(
    request: CreateBookingRequest,
    x_user_id: Annotated[Optional[str], Header()] = None,
    api_key: AuthenticatedUser = None,
    service: BookingServiceDep = None,
) -> BookingCreatedResponse:
    user_id = (request.user_id or "").strip() or (x_user_id or "").strip()

    if not user_id or not request.session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID and Session ID are required",
        )

    logger.info(
        "Booking requested",
        extra={"user_id": user_id, "session_id": str(request.session_id)}
    )

    booking = service.book_session(user_id=user_id, session_id=request.session_id)

    return BookingCreatedResponse(
        message="Session booked successfully",
        booking=BookingResponse.from_booking(booking),
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    summary="Get booking",
)
async def get_booking(
    booking_id: UUID,
    api_key: AuthenticatedUser = None,
    service: BookingServiceDep = None,
) -> BookingResponse:
    return BookingResponse.from_booking(service.get_booking(booking_id))


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel booking",
    description="Cancel a confirmed booking. Members can cancel their own; admins can cancel any.",
)
async def cancel_booking(
    booking_id: UUID,
    is_admin: IsAdmin,
    x_user_id: Annotated[Optional[str], Header()] = None,
    service: BookingServiceDep = None,
) -> BookingResponse:
    booking = service.cancel_booking(booking_id, acting_user_id=x_user_id, is_admin=is_admin)
    return BookingResponse.from_booking(booking)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    summary="Check in",
    description="Mark a confirmed booking as completed (admin only)",
)
async def complete_booking(
    booking_id: UUID,
    _admin: AdminOnly = None,
    service: BookingServiceDep = None,
) -> BookingResponse:
    return BookingResponse.from_booking(service.complete_booking(booking_id))


@router.post(
    "/{booking_id}/no-show",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark no-show",
    description="Mark a confirmed booking as a no-show (admin only)",
)
async def mark_no_show(
    booking_id: UUID,
    _admin: AdminOnly = None,
    service: BookingServiceDep = None,
) -> BookingResponse:
    return BookingResponse.from_booking(service.mark_no_show(booking_id))
