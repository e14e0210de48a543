from datetime import date as LocalDate
from datetime import datetime, time, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.scheduler.models import SlotStatus, TimeSlot


def as_utc(value: datetime) -> datetime:
    """Naive instants are read as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimeSlotData(BaseModel):
    start_time: datetime
    end_time: datetime
    status: Optional[SlotStatus] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, v: datetime) -> datetime:
        return as_utc(v)


class CreateTimeSlotRequest(BaseModel):
    slots: List[TimeSlotData] = Field(..., min_length=1)


class UpdateTimeSlotRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    status: Optional[SlotStatus] = Field(
        default=None, description="Left unchanged when omitted"
    )

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, v: datetime) -> datetime:
        return as_utc(v)


class TimeSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    user_email: str
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, slot: TimeSlot) -> "TimeSlotResponse":
        return cls(
            id=slot.id,
            user_id=slot.user_id,
            user_email=slot.user.email,
            start_time=slot.start_time,
            end_time=slot.end_time,
            status=slot.status,
            created_at=slot.created_at,
            updated_at=slot.updated_at,
        )


class BulkCreateTimeSlotsResponse(BaseModel):
    created_slots: List[TimeSlotResponse]
    created_count: int


# Calendar view


class TimeSlotSummary(BaseModel):
    id: UUID
    start_time: time = Field(..., description="Local start time (HH:MM:SS)")
    end_time: time = Field(..., description="Local end time (HH:MM:SS)")
    status: SlotStatus


class DateSlots(BaseModel):
    date: LocalDate
    slots: List[TimeSlotSummary]


class UserInfo(BaseModel):
    id: UUID
    name: str
    email: str
    timezone: str


class PageInfo(BaseModel):
    page: int
    size: int
    total_pages: int
    total_elements: int
    has_next: bool
    has_previous: bool


class PageableUserTimeSlotsResponse(BaseModel):
    user: UserInfo
    time_slots: List[DateSlots]
    page_info: PageInfo
