"""
Domain errors raised by the scheduling core.

Every error is an APIException from services.common.http_errors, so routers
let them propagate and the shared handlers render them. Each carries the ids,
instants and statuses needed to explain the rejection.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from services.common.http_errors import (
    AuthError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: UUID | str):
        super().__init__("User", str(user_id))


class TimeSlotNotFoundError(NotFoundError):
    def __init__(self, time_slot_id: UUID | str):
        super().__init__("Time slot", str(time_slot_id))


class InvalidTimeRangeError(ValidationError):
    def __init__(self, start_time: datetime, end_time: datetime):
        super().__init__(
            f"End time must be after start time for slot starting at {_iso(start_time)}",
            field="end_time",
            value=_iso(end_time),
            details={"start_time": _iso(start_time)},
            code=ErrorCode.INVALID_TIME_RANGE,
        )


class TimeSlotOverlapError(ConflictError):
    """A candidate interval conflicts with another slot of the same user."""

    def __init__(
        self,
        user_id: UUID,
        user_email: str,
        start_time: datetime,
        end_time: datetime,
        conflicting_slot_id: Optional[UUID] = None,
        conflicting_start: Optional[datetime] = None,
        conflicting_end: Optional[datetime] = None,
    ):
        details: Dict[str, Any] = {
            "user_id": str(user_id),
            "start_time": _iso(start_time),
            "end_time": _iso(end_time),
        }
        message = (
            f"Time slot overlaps with existing slot for user {user_email} "
            f"from {_iso(start_time)} to {_iso(end_time)}"
        )
        if conflicting_start is not None and conflicting_end is not None:
            details["conflicting_start_time"] = _iso(conflicting_start)
            details["conflicting_end_time"] = _iso(conflicting_end)
            message += (
                f" (conflicts with {_iso(conflicting_start)} to {_iso(conflicting_end)})"
            )
        if conflicting_slot_id is not None:
            details["conflicting_slot_id"] = str(conflicting_slot_id)
        super().__init__(message, details=details, code=ErrorCode.SLOT_OVERLAP)


class TimeSlotNotAvailableError(ConflictError):
    def __init__(self, time_slot_id: UUID, status: str):
        super().__init__(
            f"Time slot {time_slot_id} is not available for booking (status: {status})",
            details={"time_slot_id": str(time_slot_id), "status": status},
            code=ErrorCode.SLOT_NOT_AVAILABLE,
        )


class InvalidSlotStateError(ValidationError):
    def __init__(self, time_slot_id: UUID, status: str, operation: str):
        super().__init__(
            f"Cannot {operation} time slot {time_slot_id} with status {status}",
            field="status",
            value=status,
            details={"time_slot_id": str(time_slot_id), "operation": operation},
            code=ErrorCode.INVALID_STATE,
        )


class DuplicateEmailError(ConflictError):
    def __init__(self, email: str):
        super().__init__(
            f"Email already exists: {email}",
            details={"email": email},
            code=ErrorCode.ALREADY_EXISTS,
        )


class InvalidTimezoneError(ValidationError):
    def __init__(self, timezone_name: str):
        super().__init__(
            f"Invalid timezone: {timezone_name}",
            field="timezone",
            value=timezone_name,
        )


class SlotAccessDeniedError(AuthError):
    def __init__(self, time_slot_id: UUID, user_id: UUID):
        super().__init__(
            f"User {user_id} is not allowed to access time slot {time_slot_id}",
            details={"time_slot_id": str(time_slot_id), "user_id": str(user_id)},
            code=ErrorCode.ACCESS_DENIED,
            status_code=403,
        )
