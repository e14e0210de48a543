"""
Booking engine: turns an AVAILABLE time slot into a BOOKED slot plus a meeting.

Everything runs inside the caller's unit of work (models.get_session), so the
meeting, its participants and the slot transition commit or roll back
together. Two guards stop a slot from being booked twice under concurrency:
the conditional AVAILABLE->BOOKED update in SlotStore.mark_booked, and the
unique constraint on meetings.time_slot_id.
"""

from typing import List, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from services.common.logging_config import get_logger
from services.scheduler.exceptions import TimeSlotNotAvailableError
from services.scheduler.models import (
    Meeting,
    MeetingParticipant,
    ParticipantStatus,
    ParticipantType,
    SlotStatus,
)
from services.scheduler.schemas.meetings import (
    CreateMeetingRequest,
    CreateMeetingResponse,
    ParticipantInfo,
    ParticipantRequest,
)
from services.scheduler.services.slot_store import SlotStore
from services.scheduler.services.user_directory import UserDirectory, normalize_email

logger = get_logger(__name__)


class BookingEngine:
    def __init__(self, session: Session, users=None):
        self.session = session
        self.slots = SlotStore(session)
        self.users = users if users is not None else UserDirectory(session)

    def book(
        self, time_slot_id: UUID, request: CreateMeetingRequest
    ) -> CreateMeetingResponse:
        logger.info(
            "Creating meeting",
            time_slot_id=str(time_slot_id),
            participant_count=len(request.participants),
        )

        slot = self.slots.find_by_id(time_slot_id)
        # The instance is expired after a failed flush; errors use this id
        slot_id = slot.id
        if slot.status != SlotStatus.AVAILABLE:
            raise TimeSlotNotAvailableError(slot_id, slot.status.value)

        organizer = slot.user
        meeting = Meeting(
            time_slot=slot,
            title=request.title,
            description=request.description,
            organizer=organizer,
        )
        self.session.add(meeting)
        self._flush(slot_id)

        resolved: List[Tuple[MeetingParticipant, str, str]] = []
        for position, participant_request in enumerate(request.participants):
            resolved.append(
                self._resolve_participant(meeting, position, participant_request)
            )
        meeting.participants.extend(participant for participant, _, _ in resolved)
        self._flush(slot_id)

        if not self.slots.mark_booked(slot):
            self.session.refresh(slot)
            raise TimeSlotNotAvailableError(slot_id, slot.status.value)

        logger.info(
            "Meeting created",
            meeting_id=str(meeting.id),
            time_slot_id=str(slot_id),
            organizer_id=str(organizer.id),
            participant_count=len(resolved),
        )
        return CreateMeetingResponse(
            meeting_id=meeting.id,
            time_slot_id=slot_id,
            title=meeting.title,
            description=meeting.description,
            organizer_id=organizer.id,
            organizer_email=organizer.email,
            start_time=slot.start_time,
            end_time=slot.end_time,
            participants=[
                ParticipantInfo(
                    participant_id=participant.id,
                    name=name,
                    email=email,
                    type=participant.participant_type,
                    status=participant.status,
                )
                for participant, name, email in resolved
            ],
            created_at=meeting.created_at,
        )

    def _resolve_participant(
        self, meeting: Meeting, position: int, request: ParticipantRequest
    ) -> Tuple[MeetingParticipant, str, str]:
        """Known email -> INTERNAL participant; anything else -> EXTERNAL."""
        user = self.users.find_by_email(request.email)
        if user is not None:
            logger.debug("Adding internal participant", user_id=str(user.id))
            participant = MeetingParticipant(
                meeting_id=meeting.id,
                position=position,
                participant_type=ParticipantType.INTERNAL,
                status=ParticipantStatus.INVITED,
                user_id=user.id,
            )
            name, email = user.name, user.email
        else:
            email = normalize_email(request.email)
            logger.debug("Adding external participant", email=email)
            participant = MeetingParticipant(
                meeting_id=meeting.id,
                position=position,
                participant_type=ParticipantType.EXTERNAL,
                status=ParticipantStatus.INVITED,
                external_name=request.name,
                external_email=email,
            )
            name = request.name

        return participant, name, email

    def _flush(self, time_slot_id: UUID) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            # Another meeting already holds this slot
            raise TimeSlotNotAvailableError(
                time_slot_id, SlotStatus.BOOKED.value
            ) from e
