# app/core/deps.py
"""
FastAPI dependencies for collaborators that tests replace through
`app.dependency_overrides`: payment gateway, signature verifier,
notification sink and the catalog cache.
"""

from functools import lru_cache

from fastapi import Depends, Request

from app.core.cache import CatalogCache
from app.core.config import get_settings
from app.core.payment_gateway import PaymentGateway, PaymentVerifier, RazorpayGateway
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.repositories.slot_repo import SlotRepository
from app.services.cart_service import CartService
from app.services.notification_service import CeleryNotificationSink, NotificationSink
from app.services.order_service import OrderService
from app.services.review_service import ReviewInvitations
from app.services.slot_service import SlotRegistry


@lru_cache
def _razorpay_gateway() -> RazorpayGateway:
    settings = get_settings()
    return RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_URL,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )


def get_payment_gateway() -> PaymentGateway:
    return _razorpay_gateway()


def get_payment_verifier() -> PaymentVerifier:
    return PaymentVerifier(get_settings().RAZORPAY_KEY_SECRET)


def get_notifier() -> NotificationSink:
    return CeleryNotificationSink()


def get_catalog_cache(request: Request) -> CatalogCache | None:
    """
    The cache built in the app lifespan, or None when it was not set up.
    """
    return getattr(request.app.state, "catalog_cache", None)


def get_order_service(
    gateway: PaymentGateway = Depends(get_payment_gateway),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
    notifier: NotificationSink = Depends(get_notifier),
) -> OrderService:
    cart_repo = CartRepository()
    return OrderService(
        order_repo=OrderRepository(),
        cart_repo=cart_repo,
        cart_service=CartService(cart_repo, ProductRepository()),
        slots=SlotRegistry(SlotRepository()),
        gateway=gateway,
        verifier=verifier,
        notifier=notifier,
        invitations=ReviewInvitations(ReviewRepository()),
    )
