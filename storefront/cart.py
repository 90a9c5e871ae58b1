# storefront/cart.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from .auth import get_current_user
from .cart_engine import CartEngine, get_cart_engine, owner_key
from .errors import NotFoundError
from .models import User
from .schemas import (
    CartAddRequest, CartItemRequest, CartMergeRequest, CartOut, CartRemoveRequest
)

router = APIRouter(prefix="/api/cart", tags=["cart"])


# 📦 Add to cart (guest or logged-in user)
@router.post("", response_model=CartOut, responses={201: {"model": CartOut}})
async def add_to_cart(
    payload: CartAddRequest,
    response: Response,
    engine: CartEngine = Depends(get_cart_engine),
):
    owner = owner_key(payload.user_id, payload.guest_id)
    cart, created = await engine.add_item(
        owner, payload.product_id, payload.quantity, payload.size, payload.color
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return cart


# ✏️ Set absolute quantity; zero or less removes the line
@router.put("", response_model=CartOut)
async def update_cart_item(
    payload: CartItemRequest,
    engine: CartEngine = Depends(get_cart_engine),
):
    owner = owner_key(payload.user_id, payload.guest_id)
    return await engine.set_item_quantity(
        owner, payload.product_id, payload.quantity, payload.size, payload.color
    )


@router.delete("", response_model=CartOut)
async def remove_cart_item(
    payload: CartRemoveRequest,
    engine: CartEngine = Depends(get_cart_engine),
):
    owner = owner_key(payload.user_id, payload.guest_id)
    return await engine.remove_item(owner, payload.product_id, payload.size, payload.color)


@router.get("", response_model=CartOut)
async def get_cart(
    user_id: Optional[int] = Query(None, alias="userId"),
    guest_id: Optional[str] = Query(None, alias="guestId"),
    engine: CartEngine = Depends(get_cart_engine),
):
    cart = await engine.resolve(owner_key(user_id, guest_id))
    if cart is None:
        raise NotFoundError("Cart not found")
    return cart


# 🔀 Merge guest cart into the logged-in user's cart
@router.post("/merge", response_model=CartOut)
async def merge_cart(
    payload: CartMergeRequest,
    current_user: User = Depends(get_current_user),
    engine: CartEngine = Depends(get_cart_engine),
):
    return await engine.merge_guest_into_user(current_user.id, payload.guest_id)
