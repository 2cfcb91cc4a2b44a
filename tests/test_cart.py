"""Tests for the cart aggregate."""

import uuid

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.schemas.cart import CartItemCreate, CartItemUpdate, DiscountApply
from conftest import auth_headers


def assert_totals(summary):
    subtotal = round(sum(it.unit_price * it.quantity for it in summary.items), 2)
    assert summary.subtotal == subtotal
    assert summary.total == max(0.0, round(subtotal - summary.discount, 2))
    assert summary.total >= 0


class TestAddToCart:
    def test_new_line_uses_current_price(self, session, customer, make_product, cart_service):
        product = make_product(price=18000.0)
        summary = cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id))

        assert len(summary.items) == 1
        assert summary.items[0].unit_price == 18000.0
        assert summary.items[0].product_name == product.name
        assert_totals(summary)

    def test_existing_line_increments_quantity(self, session, customer, make_product, cart_service):
        product = make_product(price=1000.0)
        cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id, quantity=2))
        summary = cart_service.add_to_cart(
            session, customer.id, CartItemCreate(product_id=product.id, quantity=3)
        )

        assert len(summary.items) == 1
        assert summary.items[0].quantity == 5
        assert summary.total_quantity == 5
        assert summary.subtotal == 5000.0

    def test_price_is_frozen_at_add_time(self, session, customer, make_product, cart_service):
        product = make_product(price=1000.0)
        cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id))

        product.price_amount = 1500.0
        session.add(product)
        session.commit()

        summary = cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id))
        assert summary.items[0].unit_price == 1000.0
        assert summary.subtotal == 2000.0

    def test_unknown_product(self, session, customer, cart_service):
        with pytest.raises(NotFoundError):
            cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=uuid.uuid4()))

    def test_inactive_product(self, session, customer, make_product, cart_service):
        product = make_product(is_active=False)
        with pytest.raises(ValidationError):
            cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id))

    def test_non_positive_quantity_rejected_by_service(self, session, customer, make_product, cart_service):
        product = make_product()
        payload = CartItemCreate.model_construct(product_id=product.id, quantity=0)
        with pytest.raises(ValidationError):
            cart_service.add_to_cart(session, customer.id, payload)


class TestMutations:
    def test_totals_hold_after_every_mutation(self, session, customer, make_product, cart_service):
        a = make_product(price=999.99)
        b = make_product(price=250.5)

        steps = [
            lambda: cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=a.id, quantity=3)),
            lambda: cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=b.id)),
            lambda: cart_service.apply_discount(session, customer.id, DiscountApply(amount=100.0)),
            lambda: cart_service.update_quantity(session, customer.id, a.id, CartItemUpdate(quantity=1)),
            lambda: cart_service.remove_item(session, customer.id, b.id),
            lambda: cart_service.apply_discount(session, customer.id, DiscountApply(amount=5000.0)),
            lambda: cart_service.clear_cart(session, customer.id),
        ]
        for step in steps:
            assert_totals(step())

    def test_discount_larger_than_subtotal_clamps_total(self, session, customer, make_product, cart_service):
        product = make_product(price=500.0)
        cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id))
        summary = cart_service.apply_discount(session, customer.id, DiscountApply(amount=800.0))

        assert summary.discount == 800.0
        assert summary.total == 0.0

    def test_negative_discount_rejected(self, session, customer, cart_service):
        with pytest.raises(ValidationError):
            cart_service.apply_discount(session, customer.id, DiscountApply.model_construct(amount=-1.0))

    def test_update_missing_line(self, session, customer, make_product, cart_service):
        product = make_product()
        with pytest.raises(NotFoundError):
            cart_service.update_quantity(session, customer.id, product.id, CartItemUpdate(quantity=2))

    def test_remove_missing_line(self, session, customer, make_product, cart_service):
        product = make_product()
        with pytest.raises(NotFoundError):
            cart_service.remove_item(session, customer.id, product.id)

    def test_clear_resets_discount_and_keeps_cart(self, session, customer, make_product, cart_service):
        product = make_product(price=700.0)
        first = cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=product.id))
        cart_service.apply_discount(session, customer.id, DiscountApply(amount=50.0))

        cleared = cart_service.clear_cart(session, customer.id)

        assert cleared.id == first.id
        assert cleared.items == []
        assert cleared.discount == 0.0
        assert cleared.total == 0.0


class TestCartApi:
    def test_add_and_read(self, client, session, customer, make_product):
        product = make_product(price=3000.0)
        headers = auth_headers(customer)

        resp = client.post("/api/v1/cart", json={"product_id": str(product.id), "quantity": 2}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == 6000.0

        resp = client.get("/api/v1/cart", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total_quantity"] == 2

    def test_zero_quantity_is_422(self, client, customer, make_product):
        product = make_product()
        resp = client.post(
            "/api/v1/cart",
            json={"product_id": str(product.id), "quantity": 0},
            headers=auth_headers(customer),
        )
        assert resp.status_code == 422

    def test_discount_endpoint(self, client, customer, make_product):
        product = make_product(price=3000.0)
        headers = auth_headers(customer)
        client.post("/api/v1/cart", json={"product_id": str(product.id)}, headers=headers)

        resp = client.post("/api/v1/cart/discount", json={"amount": 500}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == 2500.0

    def test_guest_rejected(self, client):
        assert client.get("/api/v1/cart").status_code == 401

    def test_admin_rejected(self, client, admin):
        assert client.get("/api/v1/cart", headers=auth_headers(admin)).status_code == 403
