from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    timezone: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="IANA timezone name, e.g. Europe/Berlin",
    )

    @field_validator("name", "timezone")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class UserRecord(BaseModel):
    """Immutable snapshot of a user row, safe to cache."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    name: str
    email: str
    timezone: str
    created_at: datetime
    updated_at: datetime


UserResponse = UserRecord
