# storefront/cart_engine.py
"""Cart line reconciliation, totals and guest -> user merge.

A cart is owned either by a registered user or by a guest session, never both.
Every mutation reads the cart with its lines, changes them in memory, recomputes
``total_price`` and commits once, so a failed write leaves nothing behind.
Concurrent writers are detected through the cart's version column and surface
as ``ConflictError``.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple, Union

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import commit_or_raise, get_session
from .errors import NotFoundError, ValidationError
from .models import MAX_CART_TOTAL, MAX_LINE_QUANTITY, Cart, CartLine, Product, User

logger = logging.getLogger("storefront.cart")

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Authenticated:
    user_id: int


@dataclass(frozen=True)
class Guest:
    guest_id: str


OwnerKey = Union[Authenticated, Guest]


def owner_key(user_id: Optional[int] = None, guest_id: Optional[str] = None) -> Optional[OwnerKey]:
    """Build the owner key once at the boundary. A user id wins over a guest id."""
    if user_id is not None:
        return Authenticated(user_id)
    if guest_id:
        return Guest(guest_id)
    return None


def new_guest_id() -> str:
    return f"guest_{uuid.uuid4().hex}"


def coerce_quantity(value) -> int:
    """Turn request input into an int; fractional or non-numeric input is rejected, not rounded."""
    if isinstance(value, bool):
        raise ValidationError("Invalid product or quantity")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid product or quantity")
    if isinstance(value, float) and value != quantity:
        raise ValidationError("Invalid product or quantity")
    if quantity > MAX_LINE_QUANTITY:
        raise ValidationError("Invalid product or quantity")
    return quantity


def compute_total(lines: Iterable[CartLine]) -> Decimal:
    total = sum((Decimal(line.price) * line.quantity for line in lines), Decimal("0"))
    return total.quantize(CENTS)


def find_line(cart: Cart, product_id: int, size: Optional[str], color: Optional[str]) -> Optional[CartLine]:
    """Exact match on (product, size, color)."""
    for line in cart.lines:
        if line.product_id == product_id and line.size == size and line.color == color:
            return line
    return None


def find_line_loose(cart: Cart, product_id: int, size: Optional[str] = None, color: Optional[str] = None) -> Optional[CartLine]:
    # size / color only filter when given
    for line in cart.lines:
        if line.product_id != product_id:
            continue
        if size is not None and line.size != size:
            continue
        if color is not None and line.color != color:
            continue
        return line
    return None


def snapshot_line(product: Product, quantity: int, size: Optional[str], color: Optional[str]) -> CartLine:
    return CartLine(
        product_id=product.id,
        name=product.name,
        image=product.first_image_url,
        price=product.price,
        size=size,
        color=color,
        quantity=quantity,
    )


class CartEngine:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, owner: Optional[OwnerKey]) -> Optional[Cart]:
        """Return the cart for ``owner`` or ``None`` when there is none (absence is not an error)."""
        if owner is None:
            return None
        if isinstance(owner, Authenticated):
            stmt = select(Cart).where(Cart.user_id == owner.user_id)
        else:
            stmt = select(Cart).where(Cart.guest_id == owner.guest_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _require_cart(self, owner: Optional[OwnerKey]) -> Cart:
        cart = await self.resolve(owner)
        if cart is None:
            raise NotFoundError("Cart not found")
        return cart

    async def _save(self, cart: Cart) -> Cart:
        total = compute_total(cart.lines)
        # additive adds and merges can grow past what the columns hold
        if total > MAX_CART_TOTAL or any(line.quantity > MAX_LINE_QUANTITY for line in cart.lines):
            await self.session.rollback()
            raise ValidationError("Cart quantity or total exceeds the allowed limit")
        cart.total_price = total
        await commit_or_raise(self.session)
        await self.session.refresh(cart)
        return cart

    async def add_item(
        self,
        owner: Optional[OwnerKey],
        product_id: int,
        quantity,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Tuple[Cart, bool]:
        """Add ``quantity`` units; returns ``(cart, created)``.

        Quantities are additive: an existing (product, size, color) line is
        incremented, never overwritten. A cart is created lazily; a guest
        without an id gets a fresh one.
        """
        quantity = coerce_quantity(quantity)
        if quantity <= 0:
            raise ValidationError("Invalid product or quantity")

        product = await self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        cart = await self.resolve(owner)
        if cart is not None:
            line = find_line(cart, product_id, size, color)
            if line is not None:
                line.quantity += quantity
            else:
                cart.lines.append(snapshot_line(product, quantity, size, color))
            return await self._save(cart), False

        if isinstance(owner, Authenticated):
            if await self.session.get(User, owner.user_id) is None:
                raise NotFoundError("User not found")
            cart = Cart(user_id=owner.user_id)
        else:
            guest_id = owner.guest_id if owner is not None else new_guest_id()
            cart = Cart(guest_id=guest_id)
        cart.lines = [snapshot_line(product, quantity, size, color)]
        self.session.add(cart)
        cart = await self._save(cart)
        logger.info("Created cart %s for %s", cart.id, owner or Guest(cart.guest_id))
        return cart, True

    async def set_item_quantity(
        self,
        owner: Optional[OwnerKey],
        product_id: int,
        quantity,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Cart:
        """Set an absolute quantity. A quantity of zero or less deletes the line."""
        quantity = coerce_quantity(quantity)
        cart = await self._require_cart(owner)
        line = find_line(cart, product_id, size, color)
        if line is None:
            raise NotFoundError("Product not found in cart")

        if quantity > 0:
            line.quantity = quantity
        else:
            cart.lines.remove(line)
        return await self._save(cart)

    async def remove_item(
        self,
        owner: Optional[OwnerKey],
        product_id: int,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Cart:
        cart = await self._require_cart(owner)
        line = find_line_loose(cart, product_id, size, color)
        if line is None:
            raise NotFoundError("Product not found in cart")
        cart.lines.remove(line)
        return await self._save(cart)

    async def merge_guest_into_user(self, user_id: int, guest_id: Optional[str]) -> Cart:
        """Fold the guest cart into the user's cart at login.

        Matching lines have their quantities summed, the rest are appended and the
        guest cart is deleted. Without a user cart the guest cart is re-owned
        instead. Calling again after a successful merge returns the user cart.
        """
        if user_id is None:
            raise ValidationError("Authenticated user required")
        if not guest_id or not guest_id.strip():
            raise ValidationError("Guest ID is required")

        guest_cart = await self.resolve(Guest(guest_id))
        user_cart = await self.resolve(Authenticated(user_id))

        if guest_cart is None:
            if user_cart is not None:
                return user_cart
            raise NotFoundError("Guest cart not found")

        if not guest_cart.lines:
            raise ValidationError("Guest cart is empty")

        if user_cart is None:
            guest_cart.user_id = user_id
            guest_cart.guest_id = None
            cart = await self._save(guest_cart)
            logger.info("Assigned guest cart %s to user %s", cart.id, user_id)
            return cart

        for guest_line in guest_cart.lines:
            line = find_line(user_cart, guest_line.product_id, guest_line.size, guest_line.color)
            if line is not None:
                line.quantity += guest_line.quantity
            else:
                user_cart.lines.append(CartLine(
                    product_id=guest_line.product_id,
                    name=guest_line.name,
                    image=guest_line.image,
                    price=guest_line.price,
                    size=guest_line.size,
                    color=guest_line.color,
                    quantity=guest_line.quantity,
                ))
        await self.session.delete(guest_cart)
        cart = await self._save(user_cart)
        logger.info("Merged guest cart %s into cart %s of user %s", guest_id, cart.id, user_id)
        return cart


def get_cart_engine(session: AsyncSession = Depends(get_session)) -> CartEngine:
    return CartEngine(session)
