"""
Date-grouped, paginated calendar view of a user's time slots.

Slots are grouped by the local calendar date of their start instant in the
owner's timezone, and pages are cut over those date groups rather than over
individual slots, so one date's slots never straddle a page boundary.
"""

import math
from collections import defaultdict
from datetime import date, datetime, time, tzinfo
from typing import Dict, List, Optional, Tuple
from uuid import UUID

import pytz
from sqlalchemy.orm import Session

from services.common.logging_config import get_logger
from services.scheduler.models import SlotStatus, TimeSlot
from services.scheduler.schemas.time_slots import (
    DateSlots,
    PageableUserTimeSlotsResponse,
    PageInfo,
    TimeSlotSummary,
    UserInfo,
)
from services.scheduler.services.slot_store import SlotStore
from services.scheduler.services.user_directory import UserDirectory

logger = get_logger(__name__)


def _local_time(value: datetime, zone: tzinfo) -> time:
    return value.astimezone(zone).time().replace(microsecond=0, tzinfo=None)


def group_by_local_date(slots: List[TimeSlot], zone: tzinfo) -> List[DateSlots]:
    """Group slots (already in start order) by local start date, dates ascending."""
    grouped: Dict[date, List[TimeSlotSummary]] = defaultdict(list)
    for slot in slots:
        local_date = slot.start_time.astimezone(zone).date()
        grouped[local_date].append(
            TimeSlotSummary(
                id=slot.id,
                start_time=_local_time(slot.start_time, zone),
                end_time=_local_time(slot.end_time, zone),
                status=slot.status,
            )
        )
    return [DateSlots(date=day, slots=grouped[day]) for day in sorted(grouped)]


def paginate_groups(
    groups: List[DateSlots], page: int, size: int
) -> Tuple[List[DateSlots], PageInfo]:
    total = len(groups)
    total_pages = math.ceil(total / size)
    start = page * size
    end = min(start + size, total)
    page_groups = groups[start:end] if start < total else []
    page_info = PageInfo(
        page=page,
        size=size,
        total_pages=total_pages,
        total_elements=total,
        has_next=page < total_pages - 1,
        has_previous=page > 0,
    )
    return page_groups, page_info


class CalendarProjector:
    def __init__(self, session: Session, users=None):
        self.slots = SlotStore(session)
        self.users = users if users is not None else UserDirectory(session)

    def project(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[SlotStatus] = None,
        page: int = 0,
        size: int = 10,
    ) -> PageableUserTimeSlotsResponse:
        if page < 0:
            raise ValueError("page must be >= 0")
        if size < 1:
            raise ValueError("size must be >= 1")

        user = self.users.find_by_id(user_id)
        zone = pytz.timezone(user.timezone)

        slots = self.slots.fetch_filtered(
            user_id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            tz_name=user.timezone,
        )
        groups = group_by_local_date(slots, zone)
        page_groups, page_info = paginate_groups(groups, page, size)

        logger.debug(
            "Calendar projected",
            user_id=str(user_id),
            slot_count=len(slots),
            date_groups=len(groups),
            page=page,
            size=size,
        )
        return PageableUserTimeSlotsResponse(
            user=UserInfo(
                id=user.id,
                name=user.name,
                email=user.email,
                timezone=user.timezone,
            ),
            time_slots=page_groups,
            page_info=page_info,
        )
