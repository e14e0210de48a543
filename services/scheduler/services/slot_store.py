"""
Session-bound repository for time slots.

The store never validates ranges or overlaps on create/update; callers do that
first (see slot_admin). It only enforces the rules that belong to storage:
BOOKED slots cannot be deleted and AVAILABLE->BOOKED is a conditional write.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID

import pytz
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from services.common.logging_config import get_logger
from services.scheduler.exceptions import InvalidSlotStateError, TimeSlotNotFoundError
from services.scheduler.models import SlotStatus, TimeSlot, User
from services.scheduler.models.base import utc_now

logger = get_logger(__name__)


def local_day_start(day: date, tz_name: str) -> datetime:
    """Midnight of ``day`` in ``tz_name``, as a UTC instant."""
    local_midnight = pytz.timezone(tz_name).localize(datetime.combine(day, time.min))
    return local_midnight.astimezone(timezone.utc)


class SlotStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, slot: TimeSlot) -> TimeSlot:
        self.session.add(slot)
        self.session.flush()
        logger.debug(
            "Time slot stored",
            time_slot_id=str(slot.id),
            user_id=str(slot.user_id),
        )
        return slot

    def create_all(self, slots: List[TimeSlot]) -> List[TimeSlot]:
        self.session.add_all(slots)
        self.session.flush()
        logger.debug("Time slots stored", count=len(slots))
        return slots

    def update(self, slot: TimeSlot) -> TimeSlot:
        self.session.flush()
        return slot

    def delete(self, slot: TimeSlot) -> None:
        if slot.status == SlotStatus.BOOKED:
            raise InvalidSlotStateError(slot.id, slot.status.value, "delete")
        self.session.delete(slot)
        self.session.flush()

    def find_by_id(self, time_slot_id: UUID) -> TimeSlot:
        slot = self.session.get(TimeSlot, time_slot_id)
        if slot is None:
            raise TimeSlotNotFoundError(time_slot_id)
        return slot

    def fetch_filtered(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[SlotStatus] = None,
        tz_name: str = "UTC",
    ) -> List[TimeSlot]:
        """Fetch a user's slots ordered by start time.

        Date bounds are whole local days in ``tz_name``: ``start_date`` maps to
        its local midnight and ``end_date`` to the local midnight of the next
        day, so the end date is inclusive. A slot is kept only when it lies
        entirely inside the resulting range. Any combination of the filters
        may be omitted.
        """
        stmt = select(TimeSlot).where(TimeSlot.user_id == user_id)
        if status is not None:
            stmt = stmt.where(TimeSlot.status == status)
        if start_date is not None:
            range_start = local_day_start(start_date, tz_name)
            stmt = stmt.where(TimeSlot.start_time >= range_start)
        if end_date is not None:
            range_end = local_day_start(end_date + timedelta(days=1), tz_name)
            stmt = stmt.where(TimeSlot.end_time <= range_end)
        stmt = stmt.order_by(TimeSlot.start_time, TimeSlot.id)
        return list(self.session.scalars(stmt).unique())

    def find_overlapping(
        self,
        user_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[TimeSlot]:
        stmt = select(TimeSlot).where(
            TimeSlot.user_id == user_id,
            TimeSlot.start_time < end_time,
            TimeSlot.end_time > start_time,
        )
        if exclude_id is not None:
            stmt = stmt.where(TimeSlot.id != exclude_id)
        stmt = stmt.order_by(TimeSlot.start_time).limit(1)
        return self.session.scalars(stmt).unique().first()

    def exists_overlapping(
        self,
        user_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        return (
            self.find_overlapping(user_id, start_time, end_time, exclude_id)
            is not None
        )

    def lock_user(self, user_id: UUID) -> Optional[User]:
        """Take a row lock on the user so overlap check and write are serialized.

        SQLite ignores FOR UPDATE; its writers are already serialized.
        """
        stmt = select(User).where(User.id == user_id).with_for_update()
        return self.session.scalars(stmt).first()

    def mark_booked(self, slot: TimeSlot) -> bool:
        """Move ``slot`` from AVAILABLE to BOOKED. False if another writer won."""
        result = self.session.execute(
            update(TimeSlot)
            .where(TimeSlot.id == slot.id, TimeSlot.status == SlotStatus.AVAILABLE)
            .values(status=SlotStatus.BOOKED, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        set_committed_value(slot, "status", SlotStatus.BOOKED)
        return True
