# app/services/user_service.py
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import ConflictError, NotFoundError
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import UserPage, UserRead, UserRoleUpdate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Profile and role management.

    Identity (id, email) comes from the provider's token and is never
    edited here.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Self profile -----

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update of name and mobile number.

        A mobile number already on another account is rejected with 409.
        """
        data = payload.model_dump(exclude_unset=True)

        mobile = data.get("mobile_number")
        if mobile and mobile != current_user.mobile_number:
            owner = self.repo.get_by_mobile(session, mobile)
            if owner is not None and owner.id != current_user.id:
                raise ConflictError("Mobile number is already in use")

        for field, value in data.items():
            setattr(current_user, field, value)

        try:
            return self.repo.update(session, current_user)
        except IntegrityError:
            session.rollback()
            raise ConflictError("Mobile number is already in use")

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
    ) -> UserPage:
        users, total = self.repo.list(session, skip=skip, limit=limit, role=role)
        return UserPage(
            users=[UserRead.model_validate(u) for u in users],
            total=total,
            skip=skip,
            limit=limit,
        )

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_role(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        user = self.get_user(session, user_id)
        if user.role != payload.role:
            logger.info("User %s role %s -> %s", user.id, user.role, payload.role)
        user.role = payload.role
        return self.repo.update(session, user)
