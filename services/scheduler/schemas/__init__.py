"""
Scheduler service request and response schemas.
"""

from services.scheduler.schemas.meetings import (
    CreateMeetingRequest,
    CreateMeetingResponse,
    ParticipantInfo,
    ParticipantRequest,
)
from services.scheduler.schemas.time_slots import (
    BulkCreateTimeSlotsResponse,
    CreateTimeSlotRequest,
    DateSlots,
    PageableUserTimeSlotsResponse,
    PageInfo,
    TimeSlotData,
    TimeSlotResponse,
    TimeSlotSummary,
    UpdateTimeSlotRequest,
    UserInfo,
)
from services.scheduler.schemas.users import (
    CreateUserRequest,
    UserRecord,
    UserResponse,
)

__all__ = [
    "BulkCreateTimeSlotsResponse",
    "CreateMeetingRequest",
    "CreateMeetingResponse",
    "CreateTimeSlotRequest",
    "CreateUserRequest",
    "DateSlots",
    "PageInfo",
    "PageableUserTimeSlotsResponse",
    "ParticipantInfo",
    "ParticipantRequest",
    "TimeSlotData",
    "TimeSlotResponse",
    "TimeSlotSummary",
    "UpdateTimeSlotRequest",
    "UserInfo",
    "UserRecord",
    "UserResponse",
]
