# app/services/notification_service.py
"""
Notification sink: best-effort, asynchronous email about order events.

The order state machine calls `notify()` after a transition has been
committed. Delivery happens in a Celery task; neither a broker outage nor
an SMTP failure is ever propagated back to the caller.
"""

import logging
import uuid
from enum import Enum
from typing import Any, Protocol

from sqlmodel import Session

from app.core.config import get_settings
from app.core.email_client import Attachment, send_email
from app.core.invoice import render_invoice_pdf
from app.core.storage_utils import invoice_path, upload_to_storage
from app.core.supabase_client import storage_configured
from app.database import engine
from app.models.order import Order, OrderItem
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.worker import celery_app

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    ORDER_CONFIRMED = "order_confirmed"
    STATUS_UPDATED = "status_updated"
    ORDER_CANCELLED = "order_cancelled"
    PAYMENT_FAILED = "payment_failed"


class NotificationSink(Protocol):
    def notify(
        self,
        kind: NotificationKind,
        order: Order,
        user: User,
        extra: dict[str, Any] | None = None,
    ) -> None:
        ...


class CeleryNotificationSink:
    """
    Enqueues `send_order_notification` with ids only; the worker reloads
    the order so the email reflects committed state.
    """

    def notify(
        self,
        kind: NotificationKind,
        order: Order,
        user: User,
        extra: dict[str, Any] | None = None,
    ) -> None:
        try:
            send_order_notification.delay(
                kind.value,
                str(order.id),
                str(user.id),
                extra or {},
            )
        except Exception:
            logger.exception("Could not enqueue %s notification for order %s", kind.value, order.id)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _items_text(items: list[OrderItem]) -> str:
    return "\n".join(
        f"- {it.product_name} - Quantity: {it.quantity} - "
        f"Price: INR {it.unit_price * it.quantity:.2f}"
        for it in items
    )


def _items_html(items: list[OrderItem]) -> str:
    rows = "".join(
        f"<li>{it.product_name} - Quantity: {it.quantity} - "
        f"Price: INR {it.unit_price * it.quantity:.2f}</li>"
        for it in items
    )
    return f"<ul>{rows}</ul>"


def render_notification(
    kind: NotificationKind,
    order: Order,
    items: list[OrderItem],
    user: User,
    extra: dict[str, Any],
) -> tuple[str, str, str]:
    """
    Returns (subject, text_body, html_body).
    """
    slot = f"{order.slot_date:%d %b %Y} - {order.slot_time_range}"
    summary_text = f"{_items_text(items)}\nTotal: INR {order.total:.2f}"
    summary_html = f"{_items_html(items)}<p><strong>Total: INR {order.total:.2f}</strong></p>"

    if kind is NotificationKind.ORDER_CONFIRMED:
        subject = "Thank you for your order!"
        lead = (
            "We're pleased to confirm that we've received your payment. "
            f"Your measurement appointment is booked for {slot}. "
            "Your invoice is attached to this email."
        )
    elif kind is NotificationKind.STATUS_UPDATED:
        subject = f"Order Status Update - {order.status}"
        lead = f"Your order status has been updated to {order.status}."
    elif kind is NotificationKind.ORDER_CANCELLED:
        subject = "Your order has been cancelled"
        lead = f"Your order has been cancelled and the measurement slot {slot} released."
    else:
        subject = "Payment failed for your order"
        lead = (
            "We could not complete your payment. Your cart is unchanged, "
            "so you can place the order again at any time."
        )

    review_url = extra.get("review_url")
    text_body = f"Dear {user.name},\n\n{lead}\n\nOrder Number: {order.id}\n{summary_text}\n"
    html_body = (
        f"<html><body><p>Dear {user.name},</p><p>{lead}</p>"
        f"<p><strong>Order Number:</strong> {order.id}</p>{summary_html}"
    )
    if review_url:
        text_body += f"\nTell us what you think: {review_url}\n"
        html_body += f'<p><a href="{review_url}">Review Your Order</a></p>'
    html_body += "</body></html>"

    return subject, text_body, html_body


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


def _archive_invoice(session: Session, order: Order, pdf: bytes) -> None:
    if not storage_configured():
        return
    try:
        order.invoice_url = upload_to_storage(invoice_path(order.id), pdf, "application/pdf")
        session.add(order)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Invoice archival failed for order %s", order.id)


def deliver_notification(
    session: Session,
    kind: str,
    order_id: str,
    user_id: str,
    extra: dict[str, Any] | None = None,
) -> bool:
    """
    Render and send one notification. Returns True when the email went out.

    Never raises: every failure is logged and swallowed.
    """
    try:
        notification_kind = NotificationKind(kind)
        order = OrderRepository().get_by_id(session, uuid.UUID(order_id))
        user = session.get(User, uuid.UUID(user_id))
        if order is None or user is None:
            logger.warning("Skipping %s notification: order %s / user %s not found", kind, order_id, user_id)
            return False
        if not user.email:
            return False

        items = OrderRepository().list_items_for_order(session, order.id)
        subject, text_body, html_body = render_notification(
            notification_kind, order, items, user, extra or {}
        )

        attachments: list[Attachment] = []
        if notification_kind is NotificationKind.ORDER_CONFIRMED:
            pdf = render_invoice_pdf(order, items, user)
            attachments.append(Attachment("invoice.pdf", pdf))
            _archive_invoice(session, order, pdf)

        send_email(
            to_email=user.email,
            subject=subject,
            text_body=text_body,
            html_body=html_body,
            attachments=attachments,
        )
        logger.info("Sent %s email for order %s", kind, order_id)
        return True
    except Exception:
        logger.exception("Failed to deliver %s notification for order %s", kind, order_id)
        return False


@celery_app.task(name="app.services.notification_service.send_order_notification")
def send_order_notification(kind: str, order_id: str, user_id: str, extra: dict | None = None) -> bool:
    with Session(engine) as session:
        return deliver_notification(session, kind, order_id, user_id, extra)


def review_url_for(token: str, order_id: uuid.UUID) -> str:
    return f"{get_settings().FRONTEND_URL}/order-review?orderId={order_id}&token={token}"
