"""
Tests for the public calendar and booking endpoints.
"""

from uuid import uuid4

from services.scheduler.models import Meeting, SlotStatus, get_session
from services.scheduler.tests.scheduler_test_base import BaseSchedulerTest, utc


class TestCalendarEndpoint(BaseSchedulerTest):
    def setup_method(self, method):
        super().setup_method(method)
        self.user_id = self.create_user(timezone_name="America/New_York")
        # Local dates in New York: Jan 1, Jan 2 (twice), Jan 3
        self.create_slot(self.user_id, utc(2025, 1, 1, 14), utc(2025, 1, 1, 15))
        self.create_slot(self.user_id, utc(2025, 1, 2, 14), utc(2025, 1, 2, 15))
        self.create_slot(
            self.user_id, utc(2025, 1, 3, 2), utc(2025, 1, 3, 3), "BUSY"
        )
        self.create_slot(self.user_id, utc(2025, 1, 3, 14), utc(2025, 1, 3, 15))

    def _get(self, user_id=None, **params):
        return self.client.get(
            f"/api/time-slots/user/{user_id or self.user_id}", params=params
        )

    def test_default_page(self):
        response = self._get()

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["name"] == "Alice"
        assert [group["date"] for group in body["time_slots"]] == [
            "2025-01-01",
            "2025-01-02",
            "2025-01-03",
        ]
        jan2 = body["time_slots"][1]["slots"]
        assert [(s["start_time"], s["end_time"]) for s in jan2] == [
            ("09:00:00", "10:00:00"),
            ("21:00:00", "22:00:00"),
        ]
        assert body["page_info"] == {
            "page": 0,
            "size": 10,
            "total_pages": 1,
            "total_elements": 3,
            "has_next": False,
            "has_previous": False,
        }

    def test_paging(self):
        body = self._get(page=1, size=2).json()

        assert [group["date"] for group in body["time_slots"]] == ["2025-01-03"]
        assert body["page_info"]["has_previous"] is True
        assert body["page_info"]["has_next"] is False

    def test_out_of_range_page_is_empty(self):
        response = self._get(page=7, size=2)

        assert response.status_code == 200
        assert response.json()["time_slots"] == []

    def test_status_and_range_filters(self):
        body = self._get(
            start_date="2025-01-02", end_date="2025-01-02", status="BUSY"
        ).json()

        assert len(body["time_slots"]) == 1
        assert body["time_slots"][0]["slots"][0]["status"] == "BUSY"

    def test_negative_page_rejected(self):
        assert self._get(page=-1).status_code == 422

    def test_zero_size_rejected(self):
        assert self._get(size=0).status_code == 422

    def test_size_is_capped(self):
        body = self._get(size=1000).json()

        assert body["page_info"]["size"] == 100

    def test_unknown_status_rejected(self):
        assert self._get(status="TENTATIVE").status_code == 422

    def test_unknown_user(self):
        response = self._get(user_id=uuid4())

        assert response.status_code == 404
        assert response.json()["type"] == "not_found"


class TestBookingEndpoint(BaseSchedulerTest):
    def setup_method(self, method):
        super().setup_method(method)
        self.organizer_id = self.create_user(name="Olivia", email="olivia@example.com")
        self.create_user(name="Carl", email="carl@example.com")
        self.slot_id = self.create_slot(
            self.organizer_id, utc(2025, 3, 1, 9), utc(2025, 3, 1, 10)
        )

    def _book(self, payload, slot_id=None):
        return self.client.post(
            f"/api/time-slots/{slot_id or self.slot_id}/meetings", json=payload
        )

    def _payload(self, **overrides):
        payload = {
            "title": "Planning",
            "description": "Quarterly planning",
            "participants": [
                {"name": "Carl", "email": "carl@example.com"},
                {"name": "Erin", "email": "Erin@Outside.org"},
            ],
        }
        payload.update(overrides)
        return payload

    def test_book_slot(self):
        response = self._book(self._payload())

        assert response.status_code == 201
        body = response.json()
        assert body["time_slot_id"] == str(self.slot_id)
        assert body["organizer_email"] == "olivia@example.com"
        assert body["start_time"] == "2025-03-01T09:00:00Z"
        assert [(p["type"], p["status"], p["email"]) for p in body["participants"]] == [
            ("INTERNAL", "INVITED", "carl@example.com"),
            ("EXTERNAL", "INVITED", "erin@outside.org"),
        ]
        assert self.get_slot(self.slot_id).status == SlotStatus.BOOKED

    def test_book_twice_conflicts(self):
        assert self._book(self._payload()).status_code == 201

        response = self._book(self._payload())

        assert response.status_code == 409
        body = response.json()
        assert body["details"]["code"] == "SLOT_NOT_AVAILABLE"
        assert body["details"]["status"] == "BOOKED"

    def test_existing_meeting_row_conflicts(self):
        with get_session() as session:
            session.add(
                Meeting(
                    time_slot_id=self.slot_id,
                    title="Held",
                    organizer_id=self.organizer_id,
                )
            )

        response = self._book(self._payload())

        assert response.status_code == 409
        body = response.json()
        assert body["details"]["code"] == "SLOT_NOT_AVAILABLE"
        assert body["details"]["time_slot_id"] == str(self.slot_id)

    def test_unknown_slot(self):
        assert self._book(self._payload(), slot_id=uuid4()).status_code == 404

    def test_requires_participants(self):
        assert self._book(self._payload(participants=[])).status_code == 422

    def test_requires_title(self):
        assert self._book(self._payload(title="  ")).status_code == 422

    def test_rejects_invalid_participant_email(self):
        payload = self._payload(participants=[{"name": "X", "email": "nope"}])

        assert self._book(payload).status_code == 422
        assert self.get_slot(self.slot_id).status == SlotStatus.AVAILABLE


class TestBookingInvalidatesCalendar(BaseSchedulerTest):
    cache_enabled = True

    def test_calendar_reflects_booking(self):
        organizer_id = self.create_user()
        slot_id = self.create_slot(
            organizer_id, utc(2025, 3, 1, 9), utc(2025, 3, 1, 10)
        )
        url = f"/api/time-slots/user/{organizer_id}"

        before = self.client.get(url).json()
        assert before["time_slots"][0]["slots"][0]["status"] == "AVAILABLE"

        response = self.client.post(
            f"/api/time-slots/{slot_id}/meetings",
            json={"title": "T", "participants": [{"name": "A", "email": "a@b.org"}]},
        )
        assert response.status_code == 201

        after = self.client.get(url).json()
        assert after["time_slots"][0]["slots"][0]["status"] == "BOOKED"
