"""
Public time-slot endpoints: a user's calendar view and booking a slot.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query
from fastapi import status as http_status

from services.scheduler.models import SlotStatus, get_session
from services.scheduler.schemas.meetings import (
    CreateMeetingRequest,
    CreateMeetingResponse,
)
from services.scheduler.schemas.time_slots import PageableUserTimeSlotsResponse
from services.scheduler.services.booking_engine import BookingEngine
from services.scheduler.services.calendar_cache import (
    calendar_projector_for,
    invalidate_user_calendar,
    user_directory_for,
)
from services.scheduler.settings import get_settings

router = APIRouter()


@router.get("/user/{user_id}", response_model=PageableUserTimeSlotsResponse)
def get_user_time_slots(
    user_id: UUID,
    start_date: Optional[date] = Query(
        None, description="First local date to include (YYYY-MM-DD)"
    ),
    end_date: Optional[date] = Query(
        None, description="Last local date to include (YYYY-MM-DD)"
    ),
    status: Optional[SlotStatus] = Query(None, description="Filter by slot status"),
    page: int = Query(0, ge=0, description="Zero-based page of date groups"),
    size: Optional[int] = Query(None, ge=1, description="Date groups per page"),
) -> PageableUserTimeSlotsResponse:
    settings = get_settings()
    size = min(size or settings.default_page_size, settings.max_page_size)

    with get_session() as session:
        return calendar_projector_for(session).project(
            user_id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            page=page,
            size=size,
        )


@router.post(
    "/{time_slot_id}/meetings",
    response_model=CreateMeetingResponse,
    status_code=http_status.HTTP_201_CREATED,
)
def create_meeting(
    time_slot_id: UUID, request: CreateMeetingRequest
) -> CreateMeetingResponse:
    with get_session() as session:
        engine = BookingEngine(session, users=user_directory_for(session))
        response = engine.book(time_slot_id, request)

    invalidate_user_calendar(response.organizer_id)
    return response
