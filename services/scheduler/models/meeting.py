import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from services.scheduler.models.base import Base, UTCDateTime, utc_now
from services.scheduler.models.time_slot import TimeSlot
from services.scheduler.models.user import User


class ParticipantType(str, enum.Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"


class ParticipantStatus(str, enum.Enum):
    INVITED = "INVITED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class Meeting(Base):
    __tablename__ = "meetings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # unique: one meeting per booked slot, also the backstop for double booking
    time_slot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("time_slots.id"), unique=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    organizer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    time_slot: Mapped[TimeSlot] = relationship(TimeSlot)
    organizer: Mapped[User] = relationship(User)
    participants: Mapped[List["MeetingParticipant"]] = relationship(
        "MeetingParticipant",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="MeetingParticipant.position",
    )


class MeetingParticipant(Base):
    """An attendee: either a known user (INTERNAL) or a name/email pair (EXTERNAL)."""

    __tablename__ = "meeting_participants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    meeting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    participant_type: Mapped[ParticipantType] = mapped_column(
        Enum(ParticipantType, name="participant_type"), nullable=False
    )
    status: Mapped[ParticipantStatus] = mapped_column(
        Enum(ParticipantStatus, name="participant_status"),
        default=ParticipantStatus.INVITED,
        nullable=False,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id")
    )
    external_name: Mapped[Optional[str]] = mapped_column(String(255))
    external_email: Mapped[Optional[str]] = mapped_column(String(255))

    meeting: Mapped[Meeting] = relationship(Meeting, back_populates="participants")
    user: Mapped[Optional[User]] = relationship(User)
