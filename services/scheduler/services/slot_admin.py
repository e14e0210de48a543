"""
Admin CRUD over a user's time slots.

The authenticated user id is passed in explicitly and every single-slot
operation checks that the slot belongs to that user. Create and update lock
the owner's row before the overlap check so the check and the write are
serialized per user. A bulk create is one unit of work: any failing slot rolls
back the whole batch.
"""

from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from services.common.logging_config import get_logger
from services.scheduler.exceptions import (
    InvalidSlotStateError,
    InvalidTimeRangeError,
    SlotAccessDeniedError,
    TimeSlotOverlapError,
)
from services.scheduler.models import SlotStatus, TimeSlot, User
from services.scheduler.schemas.time_slots import (
    BulkCreateTimeSlotsResponse,
    CreateTimeSlotRequest,
    TimeSlotResponse,
    UpdateTimeSlotRequest,
)
from services.scheduler.services.overlap import Interval, find_overlapping
from services.scheduler.services.slot_store import SlotStore
from services.scheduler.services.user_directory import UserDirectory

logger = get_logger(__name__)


class SlotAdminService:
    def __init__(self, session: Session, authenticated_user_id: UUID):
        self.session = session
        self.authenticated_user_id = authenticated_user_id
        self.slots = SlotStore(session)
        self.users = UserDirectory(session)

    def create_time_slots(
        self, request: CreateTimeSlotRequest
    ) -> BulkCreateTimeSlotsResponse:
        user = self.users.get_user(self.authenticated_user_id)
        self.slots.lock_user(user.id)

        logger.info(
            "Creating time slots",
            user_id=str(user.id),
            slot_count=len(request.slots),
        )

        accepted: List[Interval] = []
        created: List[TimeSlot] = []
        for data in request.slots:
            if data.end_time <= data.start_time:
                raise InvalidTimeRangeError(data.start_time, data.end_time)

            candidate = Interval(data.start_time, data.end_time)
            self._check_stored_overlap(user, candidate)

            earlier = find_overlapping(accepted, candidate)
            if earlier is not None:
                raise TimeSlotOverlapError(
                    user.id,
                    user.email,
                    data.start_time,
                    data.end_time,
                    conflicting_start=earlier.start,
                    conflicting_end=earlier.end,
                )

            accepted.append(candidate)
            created.append(
                TimeSlot(
                    user_id=user.id,
                    start_time=data.start_time,
                    end_time=data.end_time,
                    status=data.status or SlotStatus.AVAILABLE,
                )
            )

        self.slots.create_all(created)

        logger.info("Time slots created", user_id=str(user.id), count=len(created))
        return BulkCreateTimeSlotsResponse(
            created_slots=[TimeSlotResponse.from_entity(slot) for slot in created],
            created_count=len(created),
        )

    def get_time_slot(self, time_slot_id: UUID) -> TimeSlotResponse:
        slot = self._load_owned(time_slot_id)
        return TimeSlotResponse.from_entity(slot)

    def update_time_slot(
        self, time_slot_id: UUID, request: UpdateTimeSlotRequest
    ) -> TimeSlotResponse:
        slot = self._load_owned(time_slot_id)
        if request.end_time <= request.start_time:
            raise InvalidTimeRangeError(request.start_time, request.end_time)
        self._check_status_change(slot, request.status)

        user = slot.user
        self.slots.lock_user(user.id)
        self._check_stored_overlap(
            user, Interval(request.start_time, request.end_time), exclude_id=slot.id
        )

        slot.start_time = request.start_time
        slot.end_time = request.end_time
        if request.status is not None:
            slot.status = request.status
        self.slots.update(slot)

        logger.info(
            "Time slot updated",
            time_slot_id=str(slot.id),
            user_id=str(user.id),
            status=slot.status.value,
        )
        return TimeSlotResponse.from_entity(slot)

    def delete_time_slot(self, time_slot_id: UUID) -> None:
        slot = self._load_owned(time_slot_id)
        self.slots.delete(slot)
        logger.info(
            "Time slot deleted",
            time_slot_id=str(time_slot_id),
            user_id=str(slot.user_id),
        )

    def _load_owned(self, time_slot_id: UUID) -> TimeSlot:
        slot = self.slots.find_by_id(time_slot_id)
        if slot.user_id != self.authenticated_user_id:
            logger.warning(
                "Time slot access denied",
                time_slot_id=str(time_slot_id),
                user_id=str(self.authenticated_user_id),
            )
            raise SlotAccessDeniedError(time_slot_id, self.authenticated_user_id)
        return slot

    def _check_status_change(
        self, slot: TimeSlot, new_status: SlotStatus | None
    ) -> None:
        """BOOKED is entered only by booking and never left through an update."""
        if new_status is None or new_status == slot.status:
            return
        if new_status == SlotStatus.BOOKED or slot.status == SlotStatus.BOOKED:
            raise InvalidSlotStateError(
                slot.id, slot.status.value, f"set status {new_status.value} on"
            )

    def _check_stored_overlap(
        self, user: User, candidate: Interval, exclude_id: UUID | None = None
    ) -> None:
        conflict = self.slots.find_overlapping(
            user.id, candidate.start, candidate.end, exclude_id=exclude_id
        )
        if conflict is not None:
            raise TimeSlotOverlapError(
                user.id,
                user.email,
                candidate.start,
                candidate.end,
                conflicting_slot_id=conflict.id,
                conflicting_start=conflict.start_time,
                conflicting_end=conflict.end_time,
            )
