# app/routers/wishlist.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_user
from app.database import get_session
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.repositories.wishlist_repo import WishlistRepository
from app.schemas.wishlist import WishlistAdd, WishlistRead
from app.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])

service = WishlistService(WishlistRepository(), ProductRepository())


@router.get("", response_model=WishlistRead)
def get_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return service.get(session, current_user.id)


@router.post("", response_model=WishlistRead)
def add_to_wishlist(
    payload: WishlistAdd,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Save a product. Saving it twice keeps a single entry.
    """
    return service.add(session, current_user.id, payload.product_id)


@router.delete("/{product_id}", response_model=WishlistRead)
def remove_from_wishlist(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return service.remove(session, current_user.id, product_id)


@router.delete("", response_model=WishlistRead)
def clear_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return service.clear(session, current_user.id)
