# app/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.database import get_session
from app.models.user import User

settings = get_settings()

CUSTOMER_ROLE = "user"
ADMIN_ROLE = "admin"

# auto_error=False: no header means guest, not an immediate 403
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify an access token issued by the identity provider.

    Signature and `exp` are checked; `aud` is not, the provider sets it
    per client.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def identity_from_claims(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    """
    (provider user id, email) from verified claims; 401 when either is unusable.
    """
    sub = claims.get("sub")
    email = claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(sub), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def _display_name(email: str) -> str:
    local, _, _ = email.partition("@")
    return (local or email)[:50]


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Guest (None) without a bearer token, otherwise the mirrored profile.

    Accounts live with the identity provider; the first authenticated
    request creates the local row as a customer. Admins are promoted
    through the role endpoint.
    """
    if credentials is None:
        return None

    user_id, email = identity_from_claims(decode_access_token(credentials.credentials))

    user = session.get(User, user_id)
    if user is None:
        user = User(id=user_id, email=email, name=_display_name(email), role=CUSTOMER_ROLE)
        session.add(user)
        session.commit()
        session.refresh(user)
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    if user.role != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def require_user(user: User = Depends(require_auth)) -> User:
    """
    Buyer-only routes (cart, wishlist, checkout, own orders). Admins are
    refused so staff accounts never hold carts or orders.
    """
    if user.role != CUSTOMER_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Customer access required")
    return user
