"""
Tests for SlotStore against a real SQLite database.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from services.scheduler.exceptions import InvalidSlotStateError, TimeSlotNotFoundError
from services.scheduler.models import SlotStatus, TimeSlot, get_session
from services.scheduler.services.slot_store import SlotStore, local_day_start
from services.scheduler.tests.scheduler_test_base import BaseSchedulerTest, utc


class TestLocalDayStart:
    def test_utc(self):
        assert local_day_start(date(2025, 1, 15), "UTC") == utc(2025, 1, 15)

    def test_negative_offset(self):
        # New York is UTC-5 in January
        assert local_day_start(date(2025, 1, 15), "America/New_York") == utc(
            2025, 1, 15, 5
        )

    def test_positive_offset_across_dst(self):
        # Berlin is UTC+2 in July
        assert local_day_start(date(2025, 7, 1), "Europe/Berlin") == datetime(
            2025, 6, 30, 22, tzinfo=timezone.utc
        )

    def test_half_hour_offset(self):
        # Kolkata is UTC+5:30 all year
        assert local_day_start(date(2025, 1, 15), "Asia/Kolkata") == utc(
            2025, 1, 14, 18, 30
        )


class TestSlotStoreCrud(BaseSchedulerTest):
    def setup_method(self, method):
        super().setup_method(method)
        self.user_id = self.create_user()

    def test_create_assigns_id_and_timestamps(self):
        with get_session() as session:
            slot = SlotStore(session).create(
                TimeSlot(
                    user_id=self.user_id,
                    start_time=utc(2025, 1, 1, 9),
                    end_time=utc(2025, 1, 1, 10),
                )
            )
            slot_id = slot.id
            assert slot.status == SlotStatus.AVAILABLE
            assert slot.created_at is not None

        stored = self.get_slot(slot_id)
        assert stored.start_time == utc(2025, 1, 1, 9)
        assert stored.start_time.tzinfo is not None

    def test_create_all_flushes_batch(self):
        with get_session() as session:
            slots = SlotStore(session).create_all(
                [
                    TimeSlot(
                        user_id=self.user_id,
                        start_time=utc(2025, 1, 1, hour),
                        end_time=utc(2025, 1, 1, hour + 1),
                    )
                    for hour in (9, 11)
                ]
            )
            assert all(slot.created_at is not None for slot in slots)

        assert self.count_slots(self.user_id) == 2

    def test_find_by_id_missing(self):
        missing = uuid4()
        with get_session() as session:
            with pytest.raises(TimeSlotNotFoundError) as exc_info:
                SlotStore(session).find_by_id(missing)

        assert exc_info.value.status_code == 404
        assert str(missing) in exc_info.value.message

    def test_update_persists_fields(self):
        slot_id = self.create_slot(
            self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 10)
        )

        with get_session() as session:
            store = SlotStore(session)
            slot = store.find_by_id(slot_id)
            slot.end_time = utc(2025, 1, 1, 11)
            slot.status = SlotStatus.BUSY
            store.update(slot)

        stored = self.get_slot(slot_id)
        assert stored.end_time == utc(2025, 1, 1, 11)
        assert stored.status == SlotStatus.BUSY

    def test_delete(self):
        slot_id = self.create_slot(
            self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 10)
        )

        with get_session() as session:
            store = SlotStore(session)
            store.delete(store.find_by_id(slot_id))

        assert self.get_slot(slot_id) is None

    def test_delete_booked_slot_is_rejected(self):
        slot_id = self.create_slot(
            self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 10), "BOOKED"
        )

        with pytest.raises(InvalidSlotStateError) as exc_info:
            with get_session() as session:
                store = SlotStore(session)
                store.delete(store.find_by_id(slot_id))

        assert exc_info.value.details["time_slot_id"] == str(slot_id)
        assert "BOOKED" in exc_info.value.message
        assert self.get_slot(slot_id) is not None

    def test_mark_booked_transitions_once(self):
        slot_id = self.create_slot(
            self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 10)
        )

        with get_session() as session:
            store = SlotStore(session)
            slot = store.find_by_id(slot_id)
            assert store.mark_booked(slot) is True
            assert slot.status == SlotStatus.BOOKED
            assert store.mark_booked(slot) is False

        assert self.get_slot(slot_id).status == SlotStatus.BOOKED

    def test_mark_booked_refuses_busy_slot(self):
        slot_id = self.create_slot(
            self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 10), "BUSY"
        )

        with get_session() as session:
            store = SlotStore(session)
            assert store.mark_booked(store.find_by_id(slot_id)) is False

        assert self.get_slot(slot_id).status == SlotStatus.BUSY

    def test_lock_user_returns_row(self):
        with get_session() as session:
            user = SlotStore(session).lock_user(self.user_id)

        assert user.id == self.user_id


class TestSlotStoreOverlapQuery(BaseSchedulerTest):
    def setup_method(self, method):
        super().setup_method(method)
        self.user_id = self.create_user()
        self.other_user_id = self.create_user(name="Bob", email="bob@example.com")
        self.slot_id = self.create_slot(
            self.user_id, utc(2025, 1, 1, 10), utc(2025, 1, 1, 11)
        )

    def _exists(self, start, end, user_id=None, exclude_id=None):
        with get_session() as session:
            return SlotStore(session).exists_overlapping(
                user_id or self.user_id, start, end, exclude_id=exclude_id
            )

    def test_overlapping_interval(self):
        assert self._exists(utc(2025, 1, 1, 10, 30), utc(2025, 1, 1, 11, 30))

    def test_touching_intervals_do_not_overlap(self):
        assert not self._exists(utc(2025, 1, 1, 11), utc(2025, 1, 1, 12))
        assert not self._exists(utc(2025, 1, 1, 9), utc(2025, 1, 1, 10))

    def test_other_users_slots_are_ignored(self):
        assert not self._exists(
            utc(2025, 1, 1, 10), utc(2025, 1, 1, 11), user_id=self.other_user_id
        )

    def test_excluded_id(self):
        assert not self._exists(
            utc(2025, 1, 1, 10), utc(2025, 1, 1, 11), exclude_id=self.slot_id
        )

    def test_find_overlapping_returns_conflicting_slot(self):
        with get_session() as session:
            conflict = SlotStore(session).find_overlapping(
                self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 12)
            )
            assert conflict.id == self.slot_id
            assert conflict.start_time == utc(2025, 1, 1, 10)


class TestSlotStoreFetchFiltered(BaseSchedulerTest):
    def setup_method(self, method):
        super().setup_method(method)
        self.user_id = self.create_user()
        self.other_user_id = self.create_user(name="Bob", email="bob@example.com")
        # Inserted out of order on purpose
        self.jan3 = self.create_slot(
            self.user_id, utc(2025, 1, 3, 9), utc(2025, 1, 3, 10), "BUSY"
        )
        self.jan1 = self.create_slot(
            self.user_id, utc(2025, 1, 1, 9), utc(2025, 1, 1, 10)
        )
        self.jan2 = self.create_slot(
            self.user_id, utc(2025, 1, 2, 9), utc(2025, 1, 2, 10)
        )
        self.create_slot(self.other_user_id, utc(2025, 1, 2, 9), utc(2025, 1, 2, 10))

    def _fetch(self, **kwargs):
        with get_session() as session:
            return [
                slot.id
                for slot in SlotStore(session).fetch_filtered(self.user_id, **kwargs)
            ]

    def test_no_filters_returns_all_in_start_order(self):
        assert self._fetch() == [self.jan1, self.jan2, self.jan3]

    def test_status_only(self):
        assert self._fetch(status=SlotStatus.AVAILABLE) == [self.jan1, self.jan2]

    def test_range_only_end_date_is_inclusive(self):
        assert self._fetch(start_date=date(2025, 1, 2), end_date=date(2025, 1, 3)) == [
            self.jan2,
            self.jan3,
        ]

    def test_start_date_alone(self):
        assert self._fetch(start_date=date(2025, 1, 2)) == [self.jan2, self.jan3]

    def test_end_date_alone(self):
        assert self._fetch(end_date=date(2025, 1, 1)) == [self.jan1]

    def test_status_and_range(self):
        assert self._fetch(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 3),
            status=SlotStatus.BUSY,
        ) == [self.jan3]

    def test_range_uses_timezone_day_bounds(self):
        # In New York (UTC-5) 2025-01-02 runs from 05:00Z Jan 2 to 05:00Z Jan 3
        assert self._fetch(
            start_date=date(2025, 1, 2),
            end_date=date(2025, 1, 2),
            tz_name="America/New_York",
        ) == [self.jan2]

    def test_slot_crossing_range_end_is_excluded(self):
        late = self.create_slot(
            self.user_id, utc(2025, 1, 4, 23), utc(2025, 1, 5, 1)
        )

        assert late not in self._fetch(end_date=date(2025, 1, 4))
        assert late in self._fetch(end_date=date(2025, 1, 5))
