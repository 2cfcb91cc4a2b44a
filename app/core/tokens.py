# app/core/tokens.py
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from app.core.config import get_settings

REVIEW_PURPOSE = "review"
ALGORITHM = "HS256"


@dataclass(frozen=True)
class ReviewClaims:
    jti: str
    user_id: uuid.UUID
    order_id: uuid.UUID
    expires_at: datetime


def create_review_token(
    user_id: uuid.UUID,
    order_id: uuid.UUID,
    now: datetime | None = None,
) -> tuple[str, ReviewClaims]:
    """
    Sign a review invitation scoped to (user, order).

    Returns (token, claims). The caller persists `claims.jti` so the token
    can be redeemed only once.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(days=settings.REVIEW_TOKEN_TTL_DAYS)
    claims = ReviewClaims(
        jti=uuid.uuid4().hex,
        user_id=user_id,
        order_id=order_id,
        expires_at=expires_at,
    )
    token = jwt.encode(
        {
            "sub": str(user_id),
            "order_id": str(order_id),
            "purpose": REVIEW_PURPOSE,
            "jti": claims.jti,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        },
        settings.REVIEW_TOKEN_SECRET,
        algorithm=ALGORITHM,
    )
    return token, claims


def decode_review_token(token: str) -> ReviewClaims | None:
    """
    Verify signature, expiry and purpose. Returns None when invalid.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.REVIEW_TOKEN_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("purpose") != REVIEW_PURPOSE:
        return None

    try:
        return ReviewClaims(
            jti=payload["jti"],
            user_id=uuid.UUID(payload["sub"]),
            order_id=uuid.UUID(payload["order_id"]),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, ValueError, TypeError):
        return None
