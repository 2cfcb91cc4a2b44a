"""Tests for reviews, delivery invitations and the rating aggregate."""

import uuid

import pytest

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.tokens import create_review_token
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.order import OrderStatusUpdate
from app.schemas.review import ReviewCreate, ReviewStatusUpdate
from app.services.review_service import ReviewService
from conftest import auth_headers


@pytest.fixture
def review_service():
    return ReviewService(ReviewRepository(), ProductRepository(), OrderRepository())


@pytest.fixture
def delivered(session, customer, filled_cart, place_order, order_service, sink):
    """A delivered order and the invitation token from its notification."""
    order = place_order(customer)
    order_service.update_fulfillment(session, order.id, OrderStatusUpdate(status="Delivered"))
    token = sink.sent[-1]["extra"]["review_url"].split("token=")[1]
    return order, token


class TestAggregate:
    def test_mean_and_distribution(self, session, customer, other_customer, admin, make_product, review_service):
        product = make_product()
        for user, rating in ((customer, 5), (other_customer, 4), (admin, 2)):
            review_service.submit_review(session, user, ReviewCreate(product_id=product.id, rating=rating))

        session.refresh(product)
        assert product.review_count == 3
        assert product.average_rating == 3.67
        assert product.rating_distribution() == {1: 0, 2: 1, 3: 0, 4: 1, 5: 1}

    def test_one_review_per_user_and_product(self, session, customer, make_product, review_service):
        product = make_product()
        review_service.submit_review(session, customer, ReviewCreate(product_id=product.id, rating=4))

        with pytest.raises(ConflictError):
            review_service.submit_review(session, customer, ReviewCreate(product_id=product.id, rating=1))

        session.refresh(product)
        assert product.review_count == 1

    def test_unknown_product(self, session, customer, review_service):
        with pytest.raises(NotFoundError):
            review_service.submit_review(session, customer, ReviewCreate(product_id=uuid.uuid4(), rating=3))

    def test_rejecting_withdraws_and_approving_restores(
        self, session, customer, other_customer, make_product, review_service
    ):
        product = make_product()
        kept = review_service.submit_review(session, customer, ReviewCreate(product_id=product.id, rating=5))
        spam = review_service.submit_review(session, other_customer, ReviewCreate(product_id=product.id, rating=1))

        review_service.set_status(session, spam.id, ReviewStatusUpdate(status="rejected"))
        session.refresh(product)
        assert product.review_count == 1
        assert product.average_rating == 5.0

        review_service.set_status(session, kept.id, ReviewStatusUpdate(status="approved"))
        session.refresh(product)
        assert product.review_count == 1

        review_service.set_status(session, spam.id, ReviewStatusUpdate(status="approved"))
        session.refresh(product)
        assert product.review_count == 2
        assert product.average_rating == 3.0

    def test_rejected_reviews_are_not_listed(self, session, customer, other_customer, make_product, review_service):
        product = make_product()
        review_service.submit_review(session, customer, ReviewCreate(product_id=product.id, rating=5))
        spam = review_service.submit_review(session, other_customer, ReviewCreate(product_id=product.id, rating=1))
        review_service.set_status(session, spam.id, ReviewStatusUpdate(status="rejected"))

        page = review_service.list_product_reviews(session, product.id)
        assert page.total == 1
        assert page.stats.review_count == 1

    def test_helpful_counter(self, session, customer, make_product, review_service):
        product = make_product()
        review = review_service.submit_review(session, customer, ReviewCreate(product_id=product.id, rating=4))

        review_service.mark_helpful(session, review.id)
        assert review_service.mark_helpful(session, review.id).helpful == 2

        with pytest.raises(NotFoundError):
            review_service.mark_helpful(session, uuid.uuid4())


class TestInvitations:
    def test_invitation_marks_review_verified(self, session, customer, delivered, review_service):
        order, token = delivered
        product_id = order.items[0].product_id

        review = review_service.submit_review(
            session, customer, ReviewCreate(product_id=product_id, rating=5, invitation_token=token)
        )
        assert review.verified is True

    def test_token_is_single_use(self, session, customer, delivered, review_service):
        order, token = delivered
        first, second = order.items[0].product_id, order.items[1].product_id

        review_service.submit_review(
            session, customer, ReviewCreate(product_id=first, rating=5, invitation_token=token)
        )
        with pytest.raises(ConflictError):
            review_service.submit_review(
                session, customer, ReviewCreate(product_id=second, rating=4, invitation_token=token)
            )

    def test_token_of_another_user(self, session, other_customer, delivered, review_service):
        order, token = delivered

        with pytest.raises(ForbiddenError):
            review_service.submit_review(
                session,
                other_customer,
                ReviewCreate(product_id=order.items[0].product_id, rating=1, invitation_token=token),
            )

    def test_product_outside_the_order(self, session, customer, make_product, delivered, review_service):
        _, token = delivered
        elsewhere = make_product()

        with pytest.raises(ValidationError):
            review_service.submit_review(
                session, customer, ReviewCreate(product_id=elsewhere.id, rating=5, invitation_token=token)
            )

    def test_garbage_token(self, session, customer, make_product, review_service):
        product = make_product()
        with pytest.raises(ValidationError):
            review_service.submit_review(
                session, customer, ReviewCreate(product_id=product.id, rating=5, invitation_token="not-a-token")
            )

    def test_token_without_stored_invitation(self, session, customer, delivered, review_service):
        order, _ = delivered
        forged, _ = create_review_token(customer.id, order.id)

        with pytest.raises(ConflictError):
            review_service.submit_review(
                session,
                customer,
                ReviewCreate(product_id=order.items[0].product_id, rating=5, invitation_token=forged),
            )


class TestReviewsApi:
    def test_submit_and_list(self, client, customer, make_product):
        product = make_product()

        resp = client.post(
            "/api/v1/reviews",
            json={"product_id": str(product.id), "rating": 4, "comment": "  Sturdy and well finished "},
            headers=auth_headers(customer),
        )
        assert resp.status_code == 201
        assert resp.json()["comment"] == "Sturdy and well finished"

        page = client.get(f"/api/v1/reviews/product/{product.id}").json()
        assert page["total"] == 1
        assert page["stats"]["average_rating"] == 4.0

    def test_rating_out_of_range_is_422(self, client, customer, make_product):
        product = make_product()
        resp = client.post(
            "/api/v1/reviews",
            json={"product_id": str(product.id), "rating": 6},
            headers=auth_headers(customer),
        )
        assert resp.status_code == 422

    def test_guest_cannot_review(self, client, make_product):
        product = make_product()
        resp = client.post("/api/v1/reviews", json={"product_id": str(product.id), "rating": 5})
        assert resp.status_code == 401

    def test_moderation_is_admin_only(self, client, customer, admin, make_product):
        product = make_product()
        review_id = client.post(
            "/api/v1/reviews",
            json={"product_id": str(product.id), "rating": 2},
            headers=auth_headers(customer),
        ).json()["id"]

        forbidden = client.patch(
            f"/api/v1/reviews/{review_id}/status", json={"status": "rejected"}, headers=auth_headers(customer)
        )
        assert forbidden.status_code == 403

        ok = client.patch(
            f"/api/v1/reviews/{review_id}/status", json={"status": "rejected"}, headers=auth_headers(admin)
        )
        assert ok.status_code == 200
        assert ok.json()["status"] == "rejected"
