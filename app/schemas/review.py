import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.product import ReviewStats

ReviewStatus = Literal["pending", "approved", "rejected"]


class ReviewCreate(SQLModel):
    """
    Payload for submitting a review.

    `invitation_token` comes from the link emailed on delivery; when
    present and valid the review is marked verified.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=2000)
    invitation_token: str | None = None

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v: str) -> str:
        return v.strip()


class ReviewRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    rating: int
    comment: str
    helpful: int
    verified: bool
    status: ReviewStatus
    created_at: datetime


class ReviewPage(SQLModel):
    reviews: list[ReviewRead]
    total: int
    skip: int
    limit: int
    stats: ReviewStats


class ReviewStatusUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    status: ReviewStatus
