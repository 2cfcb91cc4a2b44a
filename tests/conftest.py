"""Pytest fixtures for the storefront tests."""

import os

# Settings are read at import time; configure before importing the app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-identity-secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test-gateway-secret"
os.environ["REVIEW_TOKEN_SECRET"] = "test-review-secret"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ["SMTP_HOST"] = ""

import fnmatch
import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.cache import CatalogCache
from app.core.deps import get_catalog_cache, get_notifier, get_payment_gateway
from app.core.errors import UpstreamError
from app.core.payment_gateway import GatewayIntent, PaymentVerifier
from app.database import get_session
from app.main import app
from app.models.product import Product
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.repositories.slot_repo import SlotRepository
from app.schemas.cart import CartItemCreate
from app.schemas.order import Address, CheckoutCreate, MeasurementSlot, PaymentCallback
from app.services.cart_service import CartService
from app.services.order_service import OrderService
from app.services.review_service import ReviewInvitations
from app.services.slot_service import SlotRegistry


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeGateway:
    """In-memory payment gateway; set `fail = True` to simulate an outage."""

    key_id = "rzp_test_key"

    def __init__(self):
        self.calls: list[dict] = []
        self.fail = False

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> GatewayIntent:
        if self.fail:
            raise UpstreamError("Payment gateway is unavailable, please retry")
        self.calls.append({"amount": amount_minor, "currency": currency, "receipt": receipt})
        return GatewayIntent(id=f"order_{uuid.uuid4().hex[:14]}", amount=amount_minor, currency=currency)


class RecordingSink:
    """Notification sink that only remembers what it was asked to send."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def notify(self, kind, order, user, extra=None):
        if self.fail:
            raise RuntimeError("broker down")
        self.sent.append(
            {"kind": kind.value, "order_id": order.id, "user_id": user.id, "extra": extra or {}}
        )

    def kinds(self) -> list[str]:
        return [n["kind"] for n in self.sent]


class FakeRedis:
    """Dict-backed stand-in for the few redis.Redis calls CatalogCache makes."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.down = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("redis unavailable")

    def get(self, key):
        self._check()
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value

    def scan_iter(self, match="*"):
        self._check()
        return [k for k in list(self.store) if fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        self._check()
        for k in keys:
            self.store.pop(k, None)
        return len(keys)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def bookable_date(offset: int = 0) -> date:
    """A date that passes the slot rules: after tomorrow and not a Sunday."""
    day = datetime.now(timezone.utc).date() + timedelta(days=3)
    found = 0
    while True:
        if day.weekday() != 6:
            if found == offset:
                return day
            found += 1
        day += timedelta(days=1)


def address(**overrides) -> Address:
    data = {
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "country": "India",
        "zip_code": "560001",
    }
    data.update(overrides)
    return Address(**data)


def checkout_payload(
    slot_date: date | None = None,
    time_range: str = "morning",
    mobile_number: str = "9876543210",
    delivery_option: str = "standard",
) -> CheckoutCreate:
    return CheckoutCreate(
        mobile_number=mobile_number,
        shipping_address=address(),
        delivery_option=delivery_option,
        measurement_slot=MeasurementSlot(
            date=slot_date or bookable_date(),
            time_range=time_range,
        ),
    )


def auth_headers(user: User) -> dict[str, str]:
    token = jwt.encode(
        {
            "sub": str(user.id),
            "email": user.email,
            "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp()),
        },
        os.environ["SUPABASE_JWT_SECRET"],
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def _make_user(session: Session, email: str, role: str = "user", name: str = "Asha") -> User:
    user = User(id=uuid.uuid4(), email=email, name=name, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def customer(session):
    return _make_user(session, "asha@example.com")


@pytest.fixture
def other_customer(session):
    return _make_user(session, "ravi@example.com", name="Ravi")


@pytest.fixture
def admin(session):
    return _make_user(session, "admin@example.com", role="admin", name="Admin")


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(price: float = 25000.0, name: str | None = None, **fields) -> Product:
        counter["n"] += 1
        product = Product(
            sku=fields.pop("sku", f"SKU-{counter['n']:04d}"),
            name=name or f"Sliding Wardrobe {counter['n']}",
            product_type=fields.pop("product_type", "Wardrobe"),
            collection=fields.pop("collection", "Urban"),
            price_amount=price,
            inventory_quantity=fields.pop("inventory_quantity", 20),
            **fields,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def verifier():
    return PaymentVerifier(os.environ["RAZORPAY_KEY_SECRET"])


@pytest.fixture
def cart_service():
    return CartService(CartRepository(), ProductRepository())


@pytest.fixture
def slot_registry():
    return SlotRegistry(SlotRepository())


@pytest.fixture
def order_service(gateway, verifier, sink, cart_service, slot_registry):
    return OrderService(
        order_repo=OrderRepository(),
        cart_repo=CartRepository(),
        cart_service=cart_service,
        slots=slot_registry,
        gateway=gateway,
        verifier=verifier,
        notifier=sink,
        invitations=ReviewInvitations(ReviewRepository()),
    )


@pytest.fixture
def filled_cart(session, customer, make_product, cart_service):
    """Customer cart with two lines: 2 x 25000 and 1 x 12000."""
    wardrobe = make_product(price=25000.0)
    shelf = make_product(price=12000.0, name="Wall Shelf", product_type="Storage")
    cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=wardrobe.id, quantity=2))
    cart_service.add_to_cart(session, customer.id, CartItemCreate(product_id=shelf.id, quantity=1))
    return cart_service.get_cart_summary(session, customer.id)


@pytest.fixture
def place_order(session, order_service, verifier):
    """Checkout and confirm payment; returns the paid OrderRead."""

    def _place(user: User, slot_date: date | None = None, time_range: str = "morning"):
        checkout = order_service.initiate_checkout(
            session, user, checkout_payload(slot_date, time_range)
        )
        gateway_order_id = checkout.payment.gateway_order_id
        payment_id = f"pay_{uuid.uuid4().hex[:14]}"
        return order_service.finalize_payment(
            session,
            PaymentCallback(
                razorpay_order_id=gateway_order_id,
                razorpay_payment_id=payment_id,
                razorpay_signature=verifier.sign(gateway_order_id, payment_id),
            ),
        )

    return _place


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def catalog_cache(fake_redis):
    return CatalogCache(fake_redis, ttl_seconds=60)


@pytest.fixture
def client(engine, gateway, sink, catalog_cache):
    """TestClient wired to the in-memory DB and the test doubles."""

    def _get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: sink
    app.dependency_overrides[get_catalog_cache] = lambda: catalog_cache

    # Not used as a context manager: the lifespan would touch the real DB and Redis
    yield TestClient(app)

    app.dependency_overrides.clear()
