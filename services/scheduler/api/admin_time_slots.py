"""
Admin time-slot CRUD. Every endpoint requires a bearer token carrying the
caller's user id, and operates only on that user's slots.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from services.scheduler.api.auth import get_authenticated_user_id
from services.scheduler.models import get_session
from services.scheduler.schemas.time_slots import (
    BulkCreateTimeSlotsResponse,
    CreateTimeSlotRequest,
    TimeSlotResponse,
    UpdateTimeSlotRequest,
)
from services.scheduler.services.calendar_cache import invalidate_user_calendar
from services.scheduler.services.slot_admin import SlotAdminService

router = APIRouter()


@router.post(
    "",
    response_model=BulkCreateTimeSlotsResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_time_slots(
    request: CreateTimeSlotRequest,
    user_id: UUID = Depends(get_authenticated_user_id),
) -> BulkCreateTimeSlotsResponse:
    with get_session() as session:
        response = SlotAdminService(session, user_id).create_time_slots(request)

    invalidate_user_calendar(user_id)
    return response


@router.get("/{time_slot_id}", response_model=TimeSlotResponse)
def get_time_slot(
    time_slot_id: UUID,
    user_id: UUID = Depends(get_authenticated_user_id),
) -> TimeSlotResponse:
    with get_session() as session:
        return SlotAdminService(session, user_id).get_time_slot(time_slot_id)


@router.put("/{time_slot_id}", response_model=TimeSlotResponse)
def update_time_slot(
    time_slot_id: UUID,
    request: UpdateTimeSlotRequest,
    user_id: UUID = Depends(get_authenticated_user_id),
) -> TimeSlotResponse:
    with get_session() as session:
        response = SlotAdminService(session, user_id).update_time_slot(
            time_slot_id, request
        )

    invalidate_user_calendar(user_id)
    return response


@router.delete("/{time_slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_time_slot(
    time_slot_id: UUID,
    user_id: UUID = Depends(get_authenticated_user_id),
) -> Response:
    with get_session() as session:
        SlotAdminService(session, user_id).delete_time_slot(time_slot_id)

    invalidate_user_calendar(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
