"""
User lookup and signup.

Lookups return UserRecord snapshots rather than ORM rows so the cached
wrapper in calendar_cache can store them.
"""

from typing import Optional, Set
from uuid import UUID

import pytz
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from services.common.logging_config import get_logger
from services.scheduler.exceptions import (
    DuplicateEmailError,
    InvalidTimezoneError,
    UserNotFoundError,
)
from services.scheduler.models import User
from services.scheduler.schemas.users import CreateUserRequest, UserRecord

logger = get_logger(__name__)

VALID_TIMEZONES: Set[str] = set(pytz.all_timezones)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_timezone(timezone_name: str) -> str:
    if timezone_name not in VALID_TIMEZONES:
        raise InvalidTimezoneError(timezone_name)
    return timezone_name


class UserDirectory:
    def __init__(self, session: Session):
        self.session = session

    def get_user(self, user_id: UUID) -> User:
        """Load the ORM row; used where the caller needs to write references."""
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def find_by_id(self, user_id: UUID) -> UserRecord:
        return UserRecord.model_validate(self.get_user(user_id))

    def find_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == normalize_email(email))
        return self.session.scalars(stmt).first()

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        user = self.find_user_by_email(email)
        if user is None:
            return None
        return UserRecord.model_validate(user)

    def create_user(self, request: CreateUserRequest) -> UserRecord:
        email = normalize_email(request.email)
        if self.find_user_by_email(email) is not None:
            raise DuplicateEmailError(email)
        timezone_name = validate_timezone(request.timezone)

        user = User(name=request.name, email=email, timezone=timezone_name)
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same address
            raise DuplicateEmailError(email) from e

        logger.info("User created", user_id=str(user.id), email=email)
        return UserRecord.model_validate(user)
