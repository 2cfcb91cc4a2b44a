# app/services/order_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import (
    AuthenticityError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.core.payment_gateway import PaymentGateway, PaymentVerifier
from app.core.validation import is_valid_mobile
from app.models.order import (
    FULFILLMENT_TRACK,
    TERMINAL_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.order import (
    CheckoutCreate,
    CheckoutRead,
    GatewayIntentRead,
    OrderItemRead,
    OrderPage,
    OrderRead,
    OrderStatusUpdate,
    PaymentCallback,
)
from app.services.cart_service import CartService
from app.services.notification_service import (
    NotificationKind,
    NotificationSink,
    review_url_for,
)
from app.services.review_service import ReviewInvitations
from app.services.slot_service import SlotRegistry, validate_measurement_slot

logger = logging.getLogger(__name__)

PENDING = OrderStatus.PENDING.value
PROCESSING = OrderStatus.PROCESSING.value
DELIVERED = OrderStatus.DELIVERED.value
CANCELLED = OrderStatus.CANCELLED.value
PAID = PaymentStatus.PAID.value
FAILED = PaymentStatus.FAILED.value


def delivery_fee_for(option: str) -> float:
    """
    Fixed lookup: express carries a surcharge, standard is free.
    """
    if option == "express":
        return get_settings().EXPRESS_DELIVERY_FEE
    return 0.0


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class OrderService:
    """
    Checkout orchestrator and order state machine.

    Responsibilities:
      - Build an order from a cart snapshot inside one transaction:
        reserve slot -> create gateway intent -> insert order + items
      - Reconcile the signed payment callback exactly once
      - Admin fulfillment transitions and cancellation
      - Fire notifications only after the transition is committed

    The cart is cleared on confirmed payment, never at checkout, so an
    abandoned checkout can be retried from the same cart.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        cart_service: CartService,
        slots: SlotRegistry,
        gateway: PaymentGateway,
        verifier: PaymentVerifier,
        notifier: NotificationSink,
        invitations: ReviewInvitations,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.cart_service = cart_service
        self.slots = slots
        self.gateway = gateway
        self.verifier = verifier
        self.notifier = notifier
        self.invitations = invitations

    # -------- Checkout --------

    def initiate_checkout(
        self,
        session: Session,
        user: User,
        payload: CheckoutCreate,
    ) -> CheckoutRead:
        """
        Create a Pending order and its gateway intent from the user's cart.

        Steps:
          1. Pre-checks (no writes): mobile number, slot rules, non-empty cart.
          2. Reserve the measurement slot (first write of the transaction).
          3. Ask the gateway for an intent of total in minor units.
          4. Insert the order and its items, then commit.

        Any failure after step 2 rolls the whole transaction back, so no
        order is stored and the slot stays free.
        """
        # 1) Pre-checks
        if not is_valid_mobile(payload.mobile_number):
            raise ValidationError("Invalid mobile number")

        slot = payload.measurement_slot
        if not validate_measurement_slot(slot.date, slot.time_range, datetime.now(timezone.utc)):
            raise ValidationError(
                "Measurement slot must be after tomorrow, not on a Sunday, "
                "and in the morning, afternoon or evening"
            )

        cart = self.cart_repo.get_for_user(session, user.id)
        cart_items = self.cart_repo.list_items(session, cart.id) if cart else []
        if not cart_items:
            raise ValidationError("Cart is empty")

        order_id = uuid.uuid4()

        # 2) Reserve; rolls back and raises SlotUnavailable on conflict
        self.slots.reserve(session, slot.date, slot.time_range, order_id)

        try:
            # 3) Gateway intent
            delivery_fee = delivery_fee_for(payload.delivery_option)
            total = round(cart.total + delivery_fee, 2)
            settings = get_settings()
            intent = self.gateway.create_intent(
                to_minor_units(total),
                settings.CURRENCY,
                f"order_rcpt_{uuid.uuid4().hex}",
            )

            # 4) Order + items
            billing = payload.billing_address or payload.shipping_address
            order = Order(
                id=order_id,
                user_id=user.id,
                subtotal=cart.subtotal,
                discount=cart.discount,
                delivery_fee=delivery_fee,
                total=total,
                delivery_option=payload.delivery_option,
                shipping_address=payload.shipping_address.model_dump(),
                billing_address=billing.model_dump(),
                mobile_number=payload.mobile_number,
                slot_date=slot.date,
                slot_time_range=slot.time_range,
                gateway_order_id=intent.id,
            )
            self.order_repo.create_order(session, order)
            items = self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order_id,
                        product_id=ci.product_id,
                        product_name=ci.product_name,
                        quantity=ci.quantity,
                        unit_price=ci.unit_price,
                    )
                    for ci in cart_items
                ],
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(order)
        logger.info(
            "Checkout started: order %s user %s gateway order %s amount %s",
            order.id, user.id, intent.id, intent.amount,
        )
        return CheckoutRead(
            order=self._to_read(order, items),
            payment=GatewayIntentRead(
                gateway_order_id=intent.id,
                amount=intent.amount,
                currency=intent.currency,
                key_id=self.gateway.key_id,
            ),
        )

    # -------- Payment reconciliation --------

    def finalize_payment(self, session: Session, callback: PaymentCallback) -> OrderRead:
        """
        Apply a signed gateway callback.

        The signature check comes before any lookup or write. The transition
        Pending/Pending -> Processing/Paid is a conditional update, so
        duplicate or concurrent callbacks collapse into one: the loser
        returns the already-paid order unchanged when the payment id
        matches and raises ConflictError otherwise.
        """
        if not self.verifier.verify(
            callback.razorpay_order_id,
            callback.razorpay_payment_id,
            callback.razorpay_signature,
        ):
            logger.warning(
                "Rejected payment callback with invalid signature: gateway order %s payment %s",
                callback.razorpay_order_id,
                callback.razorpay_payment_id,
            )
            raise AuthenticityError()

        order = self.order_repo.get_by_gateway_order_id(session, callback.razorpay_order_id)
        if not order:
            raise NotFoundError("Order not found")

        won = self.order_repo.transition(
            session,
            order.id,
            expected={"status": PENDING, "payment_status": PENDING},
            values={
                "status": PROCESSING,
                "payment_status": PAID,
                "gateway_payment_id": callback.razorpay_payment_id,
                "gateway_signature": callback.razorpay_signature,
            },
        )

        if not won:
            session.rollback()
            session.refresh(order)
            if (
                order.payment_status == PAID
                and order.gateway_payment_id == callback.razorpay_payment_id
            ):
                logger.info("Duplicate payment callback for order %s ignored", order.id)
                return self._read_with_items(session, order)
            # Money may have been captured for an order we will not fulfil
            logger.warning(
                "Unapplied payment %s for order %s (status %s, payment %s, recorded payment %s); refund needed",
                callback.razorpay_payment_id,
                order.id,
                order.status,
                order.payment_status,
                order.gateway_payment_id,
            )
            raise ConflictError("Order is no longer awaiting payment")

        cart = self.cart_repo.get_for_user(session, order.user_id)
        if cart is not None:
            self.cart_service.empty(session, cart)

        session.commit()
        session.refresh(order)
        logger.info("Payment %s confirmed for order %s", order.gateway_payment_id, order.id)

        self._notify(session, NotificationKind.ORDER_CONFIRMED, order)
        return self._read_with_items(session, order)

    def mark_payment_failed(
        self,
        session: Session,
        user: User,
        order_id: uuid.UUID,
    ) -> OrderRead:
        """
        Buyer-reported gateway failure: Pending/Pending -> Cancelled/Failed.

        The measurement slot is released; the cart is left as it was so the
        buyer can check out again.
        """
        order = self._get_owned(session, user, order_id)

        won = self.order_repo.transition(
            session,
            order.id,
            expected={"status": PENDING, "payment_status": PENDING},
            values={"status": CANCELLED, "payment_status": FAILED},
        )
        if not won:
            session.rollback()
            session.refresh(order)
            if order.status == CANCELLED and order.payment_status == FAILED:
                return self._read_with_items(session, order)
            raise ConflictError("Order is no longer awaiting payment")

        self.slots.release(session, order.id)
        session.commit()
        session.refresh(order)
        logger.info("Payment failed for order %s, slot released", order.id)

        self._notify(session, NotificationKind.PAYMENT_FAILED, order)
        return self._read_with_items(session, order)

    # -------- Fulfillment --------

    def update_fulfillment(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderRead:
        """
        Admin status change.

          Processing -> Shipped -> Delivered   forward only, skipping allowed,
                                               paid orders only
          any non-terminal -> Cancelled        via cancel()
          Delivered, Cancelled                 terminal

        Setting the current status again is a no-op. Reaching Delivered
        issues a single-use review invitation linked from the email.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")

        current = order.status
        new = payload.status

        if new == current:
            return self._read_with_items(session, order)

        if new == CANCELLED:
            return self.cancel(session, order_id)

        if current in TERMINAL_STATUSES:
            raise ConflictError(f"Order is already {current}")

        if new not in FULFILLMENT_TRACK:
            raise ConflictError(f"Invalid status transition: {current} -> {new}")

        if order.payment_status != PAID:
            raise ConflictError("Order has not been paid")

        if current in FULFILLMENT_TRACK and FULFILLMENT_TRACK.index(new) < FULFILLMENT_TRACK.index(current):
            raise ConflictError(f"Invalid status transition: {current} -> {new}")

        won = self.order_repo.transition(
            session,
            order.id,
            expected={"status": current, "payment_status": PAID},
            values={"status": new},
        )
        if not won:
            session.rollback()
            raise ConflictError("Order was modified concurrently, please reload")

        extra: dict[str, Any] = {}
        if new == DELIVERED:
            token = self.invitations.issue(session, order.user_id, order.id)
            extra["review_url"] = review_url_for(token, order.id)

        session.commit()
        session.refresh(order)
        logger.info("Order %s moved %s -> %s", order.id, current, new)

        self._notify(session, NotificationKind.STATUS_UPDATED, order, extra)
        return self._read_with_items(session, order)

    def cancel(
        self,
        session: Session,
        order_id: uuid.UUID,
        user: User | None = None,
    ) -> OrderRead:
        """
        Cancel a non-terminal order and release its measurement slot.

        With `user`, the order must belong to that user (buyer cancel);
        without it the caller is an admin.
        """
        if user is not None:
            order = self._get_owned(session, user, order_id)
        else:
            order = self.order_repo.get_by_id(session, order_id)
            if not order:
                raise NotFoundError("Order not found")

        current = order.status
        if current in TERMINAL_STATUSES:
            raise ConflictError(f"Order is already {current}")

        won = self.order_repo.transition(
            session,
            order.id,
            expected={"status": current},
            values={"status": CANCELLED},
        )
        if not won:
            session.rollback()
            raise ConflictError("Order was modified concurrently, please reload")

        self.slots.release(session, order.id)
        session.commit()
        session.refresh(order)
        logger.info("Order %s cancelled from %s", order.id, current)

        self._notify(session, NotificationKind.ORDER_CANCELLED, order)
        return self._read_with_items(session, order)

    # -------- Queries --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_for_user(session, user_id, skip, limit)
        return [self._read_with_items(session, o) for o in orders]

    def get_user_order(
        self,
        session: Session,
        user: User,
        order_id: uuid.UUID,
    ) -> OrderRead:
        """
        404 if the order is missing or belongs to someone else.
        """
        return self._read_with_items(session, self._get_owned(session, user, order_id))

    def list_orders(
        self,
        session: Session,
        *,
        status: str | None = None,
        payment_status: str | None = None,
        min_total: float | None = None,
        max_total: float | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> OrderPage:
        orders, total = self.order_repo.search(
            session,
            status=status,
            payment_status=payment_status,
            min_total=min_total,
            max_total=max_total,
            skip=skip,
            limit=limit,
        )
        return OrderPage(
            orders=[self._read_with_items(session, o) for o in orders],
            total=total,
            skip=skip,
            limit=limit,
        )

    def get_order_admin(self, session: Session, order_id: uuid.UUID) -> OrderRead:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return self._read_with_items(session, order)

    # -------- Helpers --------

    def _get_owned(self, session: Session, user: User, order_id: uuid.UUID) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.user_id != user.id:
            raise NotFoundError("Order not found")
        return order

    def _notify(
        self,
        session: Session,
        kind: NotificationKind,
        order: Order,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """
        Fire-and-forget. The transition is already committed; nothing here
        may undo or fail it.
        """
        try:
            user = session.get(User, order.user_id)
            if user is None:
                logger.warning("No user %s for %s notification", order.user_id, kind.value)
                return
            self.notifier.notify(kind, order, user, extra)
        except Exception:
            logger.exception("Notification %s for order %s failed", kind.value, order.id)

    def _read_with_items(self, session: Session, order: Order) -> OrderRead:
        return self._to_read(order, self.order_repo.list_items_for_order(session, order.id))

    @staticmethod
    def _to_read(order: Order, items: list[OrderItem]) -> OrderRead:
        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            items=[
                OrderItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    product_name=it.product_name,
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    line_total=round(it.unit_price * it.quantity, 2),
                )
                for it in items
            ],
            subtotal=order.subtotal,
            discount=order.discount,
            delivery_fee=order.delivery_fee,
            total=order.total,
            delivery_option=order.delivery_option,
            shipping_address=order.shipping_address,
            billing_address=order.billing_address,
            mobile_number=order.mobile_number,
            slot_date=order.slot_date,
            slot_time_range=order.slot_time_range,
            status=order.status,
            payment_status=order.payment_status,
            gateway_order_id=order.gateway_order_id,
            gateway_payment_id=order.gateway_payment_id,
            invoice_url=order.invoice_url,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
