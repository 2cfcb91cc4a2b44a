import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.core.validation import is_valid_mobile

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin"]


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: EmailStr
    name: str
    mobile_number: str | None
    role: Role
    created_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Editable fields: `name`, `mobile_number`.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=50)
    mobile_number: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("mobile_number")
    @classmethod
    def check_mobile(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not is_valid_mobile(v):
            raise ValueError(
                "Invalid Indian mobile number. Enter a 10-digit number "
                "starting with 6, 7, 8, or 9."
            )
        return v


class UserRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role


class UserPage(SQLModel):
    users: list[UserRead]
    total: int
    skip: int
    limit: int
