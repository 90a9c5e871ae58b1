# storefront/admin.py
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import get_current_admin, get_password_hash, get_user_by_email
from .database import commit_or_raise, get_session
from .errors import NotFoundError, ValidationError
from .models import Cart, User
from .schemas import AdminUserCreate, AdminUserUpdate, Message, UserMessage, UserOut

logger = logging.getLogger("storefront.admin")

# every route here is admin only
router = APIRouter(
    prefix="/api/admin/users",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=List[UserOut])
async def list_users(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(User).order_by(User.id))
    return result.scalars().all()


@router.post("", response_model=UserMessage, status_code=status.HTTP_201_CREATED)
async def create_user(payload: AdminUserCreate, session: AsyncSession = Depends(get_session)):
    if await get_user_by_email(session, payload.email):
        raise ValidationError("User already exists")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        role=payload.role,
    )
    session.add(user)
    await commit_or_raise(session)
    await session.refresh(user)
    return {"message": "User created successfully", "user": user}


@router.put("/{user_id}", response_model=UserMessage)
async def update_user(user_id: int, payload: AdminUserUpdate, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, user_id)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in changes and changes["email"] != user.email:
        if await get_user_by_email(session, changes["email"]):
            raise ValidationError("Email already in use")
    for field, value in changes.items():
        setattr(user, field, value)

    await commit_or_raise(session)
    await session.refresh(user)
    return {"message": "User updated successfully", "user": user}


@router.delete("/{user_id}", response_model=Message)
async def delete_user(user_id: int, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, user_id)
    # the cart goes with its owner even where the backend does not cascade
    result = await session.execute(select(Cart).where(Cart.user_id == user.id))
    cart = result.scalar_one_or_none()
    if cart is not None:
        await session.delete(cart)
        await session.flush()
    await session.delete(user)
    await commit_or_raise(session)
    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted successfully"}
