# app/routers/reviews.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin, require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.review import ReviewCreate, ReviewPage, ReviewRead, ReviewStatusUpdate
from app.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])

service = ReviewService(ReviewRepository(), ProductRepository(), OrderRepository())


@router.post("", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Review a product. With an invitation token from the delivery email,
    the review is marked verified.
    """
    return service.submit_review(session, current_user, payload)


@router.get("/product/{product_id}", response_model=ReviewPage)
def list_product_reviews(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=10, ge=1, le=100),
):
    """
    Public reviews of a product with its rating summary.
    """
    return service.list_product_reviews(session, product_id, skip, limit)


@router.post("/{review_id}/helpful", response_model=ReviewRead)
def mark_helpful(
    review_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.mark_helpful(session, review_id)


@router.patch(
    "/{review_id}/status",
    response_model=ReviewRead,
    dependencies=[Depends(require_admin)],
)
def set_review_status(
    review_id: uuid.UUID,
    payload: ReviewStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Moderate a review (admin only).
    """
    return service.set_status(session, review_id, payload)
