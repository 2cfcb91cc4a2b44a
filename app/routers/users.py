# app/routers/users.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_admin, require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import Role, UserPage, UserRead, UserRoleUpdate, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

service = UserService(UserRepository())

admin_only = [Depends(require_admin)]


@router.get("/me", response_model=UserRead)
def my_profile(me: User = Depends(require_auth)):
    return me


@router.patch("/me", response_model=UserRead)
def edit_my_profile(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    me: User = Depends(require_auth),
):
    """
    Change display name or mobile number. A mobile number registered to
    another account is refused with 409.
    """
    return service.update_me(session, me, payload)


@router.get("", response_model=UserPage, dependencies=admin_only)
def search_accounts(
    session: Session = Depends(get_session),
    role: Role | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
):
    """
    Accounts, newest sign-ups first, optionally narrowed to one role.
    """
    return service.list_users(session, skip, limit, role)


@router.get("/{user_id}", response_model=UserRead, dependencies=admin_only)
def account_detail(user_id: uuid.UUID, session: Session = Depends(get_session)):
    return service.get_user(session, user_id)


@router.patch("/{user_id}/role", response_model=UserRead, dependencies=admin_only)
def assign_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
):
    """
    Promote a customer to staff or back.
    """
    return service.update_role(session, user_id, payload)
