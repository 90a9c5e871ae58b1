# storefront/auth.py
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from passlib.exc import UnknownHashError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET
from .database import commit_or_raise, get_session
from .errors import AuthorizationError, ForbiddenError, ValidationError
from .models import User
from .schemas import AuthResponse, UserCreate, UserLogin, UserOut

logger = logging.getLogger("storefront.auth")

router = APIRouter(prefix="/api/users", tags=["users"])

# Use Argon2 for new password hashes but keep bcrypt in the context so existing
# bcrypt hashes still verify.
pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login", auto_error=False)


# 🔐 Utilities
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except UnknownHashError:
        # Unrecognised hash format -> treat as authentication failure
        return False
    except ValueError:
        return False


def create_access_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(user.id), "role": user.role, "exp": expire}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthorizationError("Not authorized, token failed", error=str(exc))


async def get_user_by_email(session: AsyncSession, email: str):
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def auth_response(user: User) -> AuthResponse:
    return AuthResponse(user=UserOut.model_validate(user), token=create_access_token(user))


# ✅ Token check
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    if not token:
        raise AuthorizationError("Not authorized, no token")
    payload = decode_access_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthorizationError("Not authorized, token failed")

    user = await session.get(User, user_id)
    if user is None:
        raise AuthorizationError("Not authorized, user not found")
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise ForbiddenError("Not authorized as an admin")
    return current_user


# ✅ Registration
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(payload: UserCreate, session: AsyncSession = Depends(get_session)):
    if await get_user_by_email(session, payload.email):
        raise ValidationError("User already exists")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        role="customer",
    )
    session.add(user)
    await commit_or_raise(session)
    await session.refresh(user)
    logger.info("Registered user %s", user.id)
    return auth_response(user)


# ✅ Login (JSON)
@router.post("/login", response_model=AuthResponse)
async def login_user(payload: UserLogin, session: AsyncSession = Depends(get_session)):
    user = await get_user_by_email(session, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise ValidationError("Invalid Credentials")
    return auth_response(user)


@router.get("/profile", response_model=UserOut)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user
