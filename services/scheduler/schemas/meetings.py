from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from services.scheduler.models import ParticipantStatus, ParticipantType


class ParticipantRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Participant name is required")
        return v.strip()


class CreateMeetingRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    participants: List[ParticipantRequest] = Field(..., min_length=1)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Meeting title is required")
        return v


class ParticipantInfo(BaseModel):
    participant_id: UUID
    name: Optional[str]
    email: str
    type: ParticipantType
    status: ParticipantStatus


class CreateMeetingResponse(BaseModel):
    meeting_id: UUID
    time_slot_id: UUID
    title: str
    description: Optional[str]
    organizer_id: UUID
    organizer_email: str
    start_time: datetime
    end_time: datetime
    participants: List[ParticipantInfo]
    created_at: datetime
