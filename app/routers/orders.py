# app/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin, require_user
from app.core.deps import get_order_service
from app.database import get_session
from app.models.user import User
from app.schemas.order import (
    CheckoutCreate,
    CheckoutRead,
    OrderPage,
    OrderRead,
    OrderStatusLiteral,
    OrderStatusUpdate,
    PaymentCallback,
    PaymentStatusLiteral,
)
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


# -------- Checkout & payment --------


@router.post(
    "/checkout",
    response_model=CheckoutRead,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
    service: OrderService = Depends(get_order_service),
):
    """
    Start checkout from the current user's cart.

    Reserves the measurement slot and creates a gateway order. The cart
    is kept until the payment is confirmed.

    Auth:
      - Only role='user' (customer) can checkout.
    """
    return service.initiate_checkout(session, current_user, payload)


@router.post("/verify-payment", response_model=OrderRead)
def verify_payment(
    payload: PaymentCallback,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Gateway callback. Unauthenticated: the HMAC signature is the only
    proof of payment.
    """
    return service.finalize_payment(session, payload)


@router.post("/{order_id}/payment-failed", response_model=OrderRead)
def payment_failed(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
    service: OrderService = Depends(get_order_service),
):
    """
    Report a failed or abandoned payment for one of the user's orders.
    """
    return service.mark_payment_failed(session, current_user, order_id)


# -------- User-facing endpoints --------


@router.get("/me", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
    service: OrderService = Depends(get_order_service),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
):
    """
    List the authenticated user's orders, newest first.
    """
    return service.list_user_orders(session, current_user.id, skip, limit)


@router.get("/me/{order_id}", response_model=OrderRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
    service: OrderService = Depends(get_order_service),
):
    """
    Get a single order belonging to the current user.
    """
    return service.get_user_order(session, current_user, order_id)


@router.post("/me/{order_id}/cancel", response_model=OrderRead)
def cancel_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
    service: OrderService = Depends(get_order_service),
):
    """
    Cancel one of the user's orders and free its measurement slot.
    """
    return service.cancel(session, order_id, user=current_user)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=OrderPage,
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
    order_status: OrderStatusLiteral | None = Query(default=None, alias="status"),
    payment_status: PaymentStatusLiteral | None = None,
    min_total: float | None = Query(default=None, ge=0),
    max_total: float | None = Query(default=None, ge=0),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=10, ge=1, le=100),
):
    """
    Search all orders (admin only).
    """
    return service.list_orders(
        session,
        status=order_status,
        payment_status=payment_status,
        min_total=min_total,
        max_total=max_total,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{order_id}",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def get_order_admin(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Get any order with items (admin only).
    """
    return service.get_order_admin(session, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Update fulfillment status (admin only).

      Processing -> Shipped -> Delivered   (forward only, paid orders)

      any non-terminal -> Cancelled        (releases the slot)

      Delivered, Cancelled                 (terminal)
    """
    return service.update_fulfillment(session, order_id, payload)
