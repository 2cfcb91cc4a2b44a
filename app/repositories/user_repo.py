# app/repositories/user_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.user import User


class UserRepository:
    """
    Data access layer for User profiles mirrored from the identity provider.
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        return session.get(User, user_id)

    def get_by_mobile(self, session: Session, mobile_number: str) -> User | None:
        stmt = select(User).where(User.mobile_number == mobile_number)
        return session.exec(stmt).first()

    def list(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        role: str | None = None,
    ) -> tuple[list[User], int]:
        """
        Newest first, optionally filtered by role.

        Returns (page, total_matching).
        """
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        total = session.exec(select(func.count()).select_from(stmt.subquery())).one()
        page = session.exec(stmt.order_by(User.created_at.desc()).offset(skip).limit(limit)).all()
        return list(page), int(total or 0)

    def update(self, session: Session, user: User) -> User:
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
