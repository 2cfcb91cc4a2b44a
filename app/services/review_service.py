import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.tokens import create_review_token, decode_review_token
from app.models.review import Review, ReviewInvitation
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.product import ReviewStats
from app.schemas.review import ReviewCreate, ReviewPage, ReviewRead, ReviewStatusUpdate

logger = logging.getLogger(__name__)

# Reviews that count towards the product aggregate and are publicly listed
COUNTED_STATUSES = ("pending", "approved")


class ReviewInvitations:
    """
    Time-boxed, single-use review links issued on delivery.
    """

    def __init__(self, repo: ReviewRepository):
        self.repo = repo

    def issue(self, session: Session, user_id: uuid.UUID, order_id: uuid.UUID) -> str:
        """
        Persist the invitation (no commit) and return the signed token.
        """
        token, claims = create_review_token(user_id, order_id)
        self.repo.add_invitation(
            session,
            ReviewInvitation(
                jti=claims.jti,
                user_id=user_id,
                order_id=order_id,
                expires_at=claims.expires_at,
            ),
        )
        return token


class ReviewService:
    """
    Business logic for reviews.

    Responsibilities:
      - one review per (user, product)
      - keep the product review aggregate in step with review status
      - redeem delivery invitations for verified reviews
    """

    def __init__(
        self,
        repo: ReviewRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.order_repo = order_repo

    def _redeem_invitation(self, session: Session, user: User, token: str, product_id: uuid.UUID) -> None:
        claims = decode_review_token(token)
        if claims is None:
            raise ValidationError("Review link is invalid or has expired")
        if claims.user_id != user.id:
            logger.warning("User %s presented a review token issued to %s", user.id, claims.user_id)
            raise ForbiddenError("Review link belongs to another account")
        if not self.order_repo.order_contains_product(session, claims.order_id, product_id):
            raise ValidationError("This product is not part of the reviewed order")
        if not self.repo.consume_invitation(session, claims.jti, datetime.now(timezone.utc)):
            logger.warning("Rejected reuse of review token %s by user %s", claims.jti, user.id)
            raise ConflictError("Review link has already been used")

    def submit_review(self, session: Session, user: User, payload: ReviewCreate) -> Review:
        product = self.product_repo.get_by_id(session, payload.product_id)
        if not product:
            raise NotFoundError("Product not found")

        if self.repo.get_for_user_product(session, user.id, product.id):
            raise ConflictError("You have already reviewed this product")

        verified = False
        if payload.invitation_token:
            self._redeem_invitation(session, user, payload.invitation_token, product.id)
            verified = True

        review = Review(
            user_id=user.id,
            product_id=product.id,
            rating=payload.rating,
            comment=payload.comment,
            verified=verified,
        )
        try:
            self.repo.add(session, review)
        except IntegrityError:
            session.rollback()
            raise ConflictError("You have already reviewed this product")

        product.apply_rating(payload.rating)
        session.add(product)
        session.commit()
        session.refresh(review)
        return review

    def list_product_reviews(
        self,
        session: Session,
        product_id: uuid.UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> ReviewPage:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")

        reviews, total = self.repo.list_for_product(
            session, product_id, COUNTED_STATUSES, skip=skip, limit=limit
        )
        return ReviewPage(
            reviews=[ReviewRead.model_validate(r) for r in reviews],
            total=total,
            skip=skip,
            limit=limit,
            stats=ReviewStats(
                review_count=product.review_count,
                average_rating=product.average_rating,
                rating_distribution=product.rating_distribution(),
            ),
        )

    def mark_helpful(self, session: Session, review_id: uuid.UUID) -> Review:
        if not self.repo.increment_helpful(session, review_id):
            raise NotFoundError("Review not found")
        session.commit()
        review = self.repo.get_by_id(session, review_id)
        session.refresh(review)
        return review

    def set_status(
        self,
        session: Session,
        review_id: uuid.UUID,
        payload: ReviewStatusUpdate,
    ) -> Review:
        """
        Admin moderation.

        Moving out of a counted status withdraws the rating from the
        product aggregate; moving back in re-adds it.
        """
        review = self.repo.get_by_id(session, review_id)
        if not review:
            raise NotFoundError("Review not found")

        was_counted = review.status in COUNTED_STATUSES
        now_counted = payload.status in COUNTED_STATUSES
        review.status = payload.status

        if was_counted != now_counted:
            product = self.product_repo.get_by_id(session, review.product_id)
            if product is not None:
                if now_counted:
                    product.apply_rating(review.rating)
                else:
                    product.apply_rating(None, old_rating=review.rating)
                session.add(product)

        session.add(review)
        session.commit()
        session.refresh(review)
        return review
