import uuid
from datetime import datetime

from sqlalchemy import func, update
from sqlmodel import Session, select

from app.models.review import Review, ReviewInvitation


class ReviewRepository:
    """
    Data access layer for reviews and review invitations.

    No commits here; ReviewService commits the review together with the
    product aggregate change.
    """

    # ---- Reviews ----

    def get_by_id(self, session: Session, review_id: uuid.UUID) -> Review | None:
        return session.get(Review, review_id)

    def get_for_user_product(
        self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> Review | None:
        stmt = select(Review).where(Review.user_id == user_id, Review.product_id == product_id)
        return session.exec(stmt).first()

    def list_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        statuses: tuple[str, ...],
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Review], int]:
        stmt = select(Review).where(
            Review.product_id == product_id,
            Review.status.in_(statuses),
        )
        total = session.exec(select(func.count()).select_from(stmt.subquery())).one()
        page = session.exec(
            stmt.order_by(Review.created_at.desc()).offset(skip).limit(limit)
        ).all()
        return list(page), int(total or 0)

    def add(self, session: Session, review: Review) -> Review:
        session.add(review)
        session.flush()
        return review

    def increment_helpful(self, session: Session, review_id: uuid.UUID) -> int:
        stmt = (
            update(Review)
            .where(Review.id == review_id)
            .values(helpful=Review.helpful + 1)
            .execution_options(synchronize_session=False)
        )
        return session.exec(stmt).rowcount

    # ---- Invitations ----

    def add_invitation(self, session: Session, invitation: ReviewInvitation) -> ReviewInvitation:
        session.add(invitation)
        session.flush()
        return invitation

    def consume_invitation(self, session: Session, jti: str, now: datetime) -> bool:
        """
        Mark the invitation used if it is still unused and unexpired.
        Conditional UPDATE, so two concurrent redemptions cannot both win.
        """
        stmt = (
            update(ReviewInvitation)
            .where(
                ReviewInvitation.jti == jti,
                ReviewInvitation.used_at.is_(None),
                ReviewInvitation.expires_at > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        return session.exec(stmt).rowcount == 1
