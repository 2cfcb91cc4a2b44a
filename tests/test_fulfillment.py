"""Tests for admin fulfillment transitions and cancellation."""

import uuid

import pytest
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError
from app.core.tokens import decode_review_token
from app.models.review import ReviewInvitation
from app.repositories.slot_repo import SlotRepository
from app.schemas.order import OrderStatusUpdate
from conftest import auth_headers, checkout_payload


def to(status: str) -> OrderStatusUpdate:
    return OrderStatusUpdate(status=status)


@pytest.fixture
def paid(session, customer, filled_cart, place_order):
    return place_order(customer)


class TestForwardTrack:
    def test_processing_shipped_delivered(self, session, paid, order_service, sink):
        shipped = order_service.update_fulfillment(session, paid.id, to("Shipped"))
        delivered = order_service.update_fulfillment(session, paid.id, to("Delivered"))

        assert shipped.status == "Shipped"
        assert delivered.status == "Delivered"
        assert delivered.payment_status == "Paid"
        assert sink.kinds() == ["order_confirmed", "status_updated", "status_updated"]

    def test_skipping_a_step_is_allowed(self, session, paid, order_service):
        assert order_service.update_fulfillment(session, paid.id, to("Delivered")).status == "Delivered"

    def test_backwards_is_rejected(self, session, paid, order_service):
        order_service.update_fulfillment(session, paid.id, to("Shipped"))

        with pytest.raises(ConflictError):
            order_service.update_fulfillment(session, paid.id, to("Processing"))

    def test_back_to_pending_is_rejected(self, session, paid, order_service):
        with pytest.raises(ConflictError):
            order_service.update_fulfillment(session, paid.id, to("Pending"))

    def test_same_status_is_a_noop(self, session, paid, order_service, sink):
        before = len(sink.sent)
        again = order_service.update_fulfillment(session, paid.id, to("Processing"))

        assert again.status == "Processing"
        assert len(sink.sent) == before

    def test_unpaid_order_cannot_ship(self, session, customer, filled_cart, order_service):
        pending = order_service.initiate_checkout(session, customer, checkout_payload())

        with pytest.raises(ConflictError):
            order_service.update_fulfillment(session, pending.order.id, to("Shipped"))

    def test_terminal_orders_do_not_move(self, session, paid, order_service):
        order_service.update_fulfillment(session, paid.id, to("Delivered"))

        with pytest.raises(ConflictError):
            order_service.update_fulfillment(session, paid.id, to("Shipped"))
        with pytest.raises(ConflictError):
            order_service.update_fulfillment(session, paid.id, to("Cancelled"))

    def test_unknown_order(self, session, order_service):
        with pytest.raises(NotFoundError):
            order_service.update_fulfillment(session, uuid.uuid4(), to("Shipped"))


class TestDeliveryInvitation:
    def test_delivered_notification_carries_review_link(self, session, customer, paid, order_service, sink):
        order_service.update_fulfillment(session, paid.id, to("Delivered"))

        extra = sink.sent[-1]["extra"]
        assert "review_url" in extra
        token = extra["review_url"].split("token=")[1]
        claims = decode_review_token(token)
        assert claims.user_id == customer.id
        assert claims.order_id == paid.id

        invitation = session.exec(select(ReviewInvitation)).one()
        assert invitation.jti == claims.jti
        assert invitation.used_at is None

    def test_shipped_has_no_review_link(self, session, paid, order_service, sink):
        order_service.update_fulfillment(session, paid.id, to("Shipped"))

        assert sink.sent[-1]["extra"] == {}
        assert session.exec(select(ReviewInvitation)).all() == []


class TestCancel:
    def test_admin_cancel_releases_slot(self, session, paid, order_service, slot_registry):
        cancelled = order_service.update_fulfillment(session, paid.id, to("Cancelled"))

        assert cancelled.status == "Cancelled"
        assert slot_registry.taken_ranges(session, paid.slot_date) == []

        slot_registry.reserve(session, paid.slot_date, paid.slot_time_range, uuid.uuid4())
        session.commit()
        assert slot_registry.taken_ranges(session, paid.slot_date) == [paid.slot_time_range]

    def test_buyer_cancels_own_order(self, session, customer, paid, order_service, sink):
        slots = SlotRepository()
        assert slots.active_for_order(session, paid.id).time_range == paid.slot_time_range

        cancelled = order_service.cancel(session, paid.id, user=customer)

        assert cancelled.status == "Cancelled"
        assert slots.active_for_order(session, paid.id) is None
        assert sink.kinds()[-1] == "order_cancelled"

    def test_cancel_twice_conflicts(self, session, customer, paid, order_service):
        order_service.cancel(session, paid.id, user=customer)

        with pytest.raises(ConflictError):
            order_service.cancel(session, paid.id, user=customer)

    def test_non_owner_sees_not_found(self, session, other_customer, paid, order_service):
        with pytest.raises(NotFoundError):
            order_service.cancel(session, paid.id, user=other_customer)
        with pytest.raises(NotFoundError):
            order_service.get_user_order(session, other_customer, paid.id)


class TestOrdersApi:
    def test_admin_updates_status(self, client, admin, paid):
        resp = client.patch(
            f"/api/v1/orders/{paid.id}/status", json={"status": "Shipped"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "Shipped"

    def test_backward_transition_is_409(self, client, admin, paid):
        headers = auth_headers(admin)
        client.patch(f"/api/v1/orders/{paid.id}/status", json={"status": "Delivered"}, headers=headers)

        resp = client.patch(f"/api/v1/orders/{paid.id}/status", json={"status": "Shipped"}, headers=headers)
        assert resp.status_code == 409

    def test_customer_cannot_update_status(self, client, customer, paid):
        resp = client.patch(
            f"/api/v1/orders/{paid.id}/status", json={"status": "Shipped"}, headers=auth_headers(customer)
        )
        assert resp.status_code == 403

    def test_buyer_order_views(self, client, customer, other_customer, paid):
        mine = client.get("/api/v1/orders/me", headers=auth_headers(customer))
        assert [o["id"] for o in mine.json()] == [str(paid.id)]

        assert client.get(f"/api/v1/orders/me/{paid.id}", headers=auth_headers(customer)).status_code == 200
        assert client.get(f"/api/v1/orders/me/{paid.id}", headers=auth_headers(other_customer)).status_code == 404
        assert client.get("/api/v1/orders/me", headers=auth_headers(other_customer)).json() == []

    def test_buyer_cancel_endpoint(self, client, customer, paid):
        resp = client.post(f"/api/v1/orders/me/{paid.id}/cancel", headers=auth_headers(customer))
        assert resp.status_code == 200
        assert resp.json()["status"] == "Cancelled"

    def test_admin_listing_filters(self, client, admin, paid):
        headers = auth_headers(admin)

        resp = client.get("/api/v1/orders?status=Processing", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == 1

        resp = client.get("/api/v1/orders?status=Shipped", headers=headers)
        assert resp.json()["total"] == 0

        resp = client.get("/api/v1/orders?min_total=70000", headers=headers)
        assert resp.json()["orders"] == []
