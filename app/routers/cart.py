# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_user
from app.database import get_session
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartItemCreate, CartItemUpdate, CartSummary, DiscountApply
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

service = CartService(CartRepository(), ProductRepository())

# Every cart route is for customers only; admins get 403 from require_user.


@router.get("", response_model=CartSummary)
def read_cart(
    session: Session = Depends(get_session),
    buyer: User = Depends(require_user),
):
    """
    The buyer's cart, created empty on first access.
    """
    return service.get_cart_summary(session, buyer.id)


@router.post("", response_model=CartSummary)
def add_line(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    buyer: User = Depends(require_user),
):
    """
    Add a product at its current price, or raise the quantity of its line.
    """
    return service.add_to_cart(session, buyer.id, payload)


@router.patch("/{product_id}", response_model=CartSummary)
def set_line_quantity(
    product_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    buyer: User = Depends(require_user),
):
    return service.update_quantity(session, buyer.id, product_id, payload)


@router.delete("/{product_id}", response_model=CartSummary)
def remove_line(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    buyer: User = Depends(require_user),
):
    return service.remove_item(session, buyer.id, product_id)


@router.post("/discount", response_model=CartSummary)
def apply_discount(
    payload: DiscountApply,
    session: Session = Depends(get_session),
    buyer: User = Depends(require_user),
):
    """
    Set an absolute discount in INR. A discount above the subtotal
    brings the total to zero, never below.
    """
    return service.apply_discount(session, buyer.id, payload)


@router.delete("", response_model=CartSummary)
def empty_cart(
    session: Session = Depends(get_session),
    buyer: User = Depends(require_user),
):
    """
    Drop every line and the discount; the cart itself is kept.
    """
    return service.clear_cart(session, buyer.id)
