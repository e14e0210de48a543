from uuid import uuid4

import pytest

from services.scheduler.exceptions import (
    DuplicateEmailError,
    InvalidTimezoneError,
    UserNotFoundError,
)
from services.scheduler.models import get_session
from services.scheduler.schemas.users import CreateUserRequest
from services.scheduler.services.user_directory import UserDirectory, validate_timezone
from services.scheduler.tests.scheduler_test_base import BaseSchedulerTest


class TestValidateTimezone:
    @pytest.mark.parametrize("name", ["UTC", "Europe/Berlin", "America/New_York"])
    def test_known_zones(self, name):
        assert validate_timezone(name) == name

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "Europe/berlin", "GMT+25"])
    def test_unknown_zones(self, name):
        with pytest.raises(InvalidTimezoneError) as exc_info:
            validate_timezone(name)

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["field"] == "timezone"


class TestUserDirectory(BaseSchedulerTest):
    def _create(self, **overrides):
        payload = {
            "name": "Alice",
            "email": "Alice@Example.com",
            "timezone": "Europe/Berlin",
        }
        payload.update(overrides)
        with get_session() as session:
            return UserDirectory(session).create_user(CreateUserRequest(**payload))

    def test_create_user_stores_lowercase_email(self):
        user = self._create()

        assert user.email == "alice@example.com"
        assert user.timezone == "Europe/Berlin"
        assert user.created_at is not None

    def test_create_user_duplicate_email_is_case_insensitive(self):
        self._create()

        with pytest.raises(DuplicateEmailError) as exc_info:
            self._create(name="Other Alice", email="ALICE@example.com")

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["email"] == "alice@example.com"

    def test_create_user_invalid_timezone(self):
        with pytest.raises(InvalidTimezoneError):
            self._create(timezone="Nowhere/Atlantis")

        with get_session() as session:
            assert UserDirectory(session).find_by_email("alice@example.com") is None

    def test_find_by_id(self):
        created = self._create()

        with get_session() as session:
            found = UserDirectory(session).find_by_id(created.id)

        assert found == created

    def test_find_by_id_missing(self):
        with get_session() as session:
            with pytest.raises(UserNotFoundError):
                UserDirectory(session).find_by_id(uuid4())

    def test_find_by_email_lowercases_lookup(self):
        created = self._create()

        with get_session() as session:
            directory = UserDirectory(session)
            assert directory.find_by_email("ALICE@EXAMPLE.COM").id == created.id
            assert directory.find_by_email("nobody@example.com") is None
