import asyncio
import os
import tempfile
from decimal import Decimal

# point the app at a throwaway database before it is imported
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.mkdtemp(), 'storefront.db')}",
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from storefront.auth import create_access_token, get_password_hash
from storefront.database import Base, get_session
from storefront.main import app
from storefront.models import Product, User


async def _create_schema(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(_create_schema(engine))
    # NullPool: each session opens its own connection on the loop that uses it
    return sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def client(session_maker):
    async def override_get_session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def db(session_maker):
    """Run a coroutine ``fn(session)`` against the test database from sync tests."""

    def run(fn):
        async def _run():
            async with session_maker() as s:
                return await fn(s)

        return asyncio.run(_run())

    return run


def make_product(**overrides) -> Product:
    data = {
        "name": "Linen Shirt",
        "description": "Light summer shirt",
        "price": Decimal("25.00"),
        "category": "Top Wear",
        "sizes": ["S", "M", "L"],
        "colors": ["White", "Blue"],
        "collections": "Summer",
        "images": [{"url": "https://img.example.com/linen.jpg", "alt_text": "Linen"}],
        "sku": "LIN-001",
    }
    data.update(overrides)
    return Product(**data)


def make_user(email="shopper@example.com", role="customer", password="secret123") -> User:
    return User(name="Shopper", email=email, password_hash=get_password_hash(password), role=role)


@pytest.fixture
def product_factory(db):
    """Insert a product and return its id."""

    def create(**overrides):
        async def _add(s):
            product = make_product(**overrides)
            s.add(product)
            await s.commit()
            return product.id

        return db(_add)

    return create


@pytest.fixture
def user_factory(db):
    """Insert a user and return ``(user_id, auth_headers)``."""

    def create(email="shopper@example.com", role="customer", password="secret123"):
        async def _add(s):
            user = make_user(email=email, role=role, password=password)
            s.add(user)
            await s.commit()
            return user.id, {"Authorization": f"Bearer {create_access_token(user)}"}

        return db(_add)

    return create


@pytest.fixture
def admin_headers(user_factory):
    _, headers = user_factory(email="admin@example.com", role="admin")
    return headers
