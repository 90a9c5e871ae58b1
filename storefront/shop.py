# storefront/shop.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import get_current_admin
from .database import commit_or_raise, get_session
from .errors import NotFoundError, ValidationError
from .models import Product, User
from .schemas import Message, ProductCreate, ProductOut, ProductUpdate

router = APIRouter(prefix="/api/products", tags=["products"])


async def _get_product_or_404(session: AsyncSession, product_id: int) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


async def _ensure_unique_sku(session: AsyncSession, sku: str, exclude_id: int = None) -> None:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if (await session.execute(stmt)).first() is not None:
        raise ValidationError("Product with this SKU already exists")


@router.get("", response_model=List[ProductOut])
async def list_products(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(Product).order_by(Product.id.desc()))
    return result.scalars().all()


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: int, session: AsyncSession = Depends(get_session)):
    return await _get_product_or_404(session, product_id)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_admin),
):
    await _ensure_unique_sku(session, payload.sku)
    product = Product(**payload.model_dump(), user_id=current_user.id)
    session.add(product)
    await commit_or_raise(session)
    await session.refresh(product)
    return product


@router.put("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_admin),
):
    product = await _get_product_or_404(session, product_id)

    # only fields present in the request change; cart lines keep their snapshot
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "sku" in changes and changes["sku"] != product.sku:
        await _ensure_unique_sku(session, changes["sku"], exclude_id=product.id)
    for field, value in changes.items():
        setattr(product, field, value)

    await commit_or_raise(session)
    await session.refresh(product)
    return product


@router.delete("/{product_id}", response_model=Message)
async def delete_product(
    product_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_admin),
):
    product = await _get_product_or_404(session, product_id)
    await session.delete(product)
    await commit_or_raise(session)
    return {"message": "Product removed"}
