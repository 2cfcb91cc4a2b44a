import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user profile.

    Identity:
      - id: MUST match the identity provider's user id (UUID from JWT "sub")

    Role:
      - "user" | "admin"
      - "guest" is represented by the absence of a row / missing token.

    This table is *not* responsible for password hashes. The identity
    provider stores credentials in its own schema. We only mirror identity,
    name, contact number and application role.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches the identity provider's user id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from the identity provider",
    )

    name: str = Field(
        max_length=50,
        description="Customer display name; first part of email by default",
    )

    mobile_number: str | None = Field(
        default=None,
        unique=True,
        description="10-digit Indian mobile number",
    )

    # Application role
    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
