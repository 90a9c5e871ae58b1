"""Seed the database with an admin user and demo products.

Idempotent: existing rows (matched by email / SKU) are left alone, so it is
safe to run against a database that already has data.

Usage:
    python -m storefront.seed

Reads DATABASE_URL, SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD from the environment.
"""
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import get_password_hash, get_user_by_email
from .config import SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD, configure_logging
from .database import async_session_maker, commit_or_raise, create_tables
from .models import Product, User

logger = logging.getLogger("storefront.seed")

DEMO_PRODUCTS = [
    {
        "name": "Classic Oxford Shirt",
        "description": "Button-down oxford shirt in breathable cotton.",
        "price": Decimal("39.99"),
        "count_in_stock": 20,
        "category": "Top Wear",
        "brand": "Urban Threads",
        "sizes": ["S", "M", "L", "XL"],
        "colors": ["White", "Blue"],
        "collections": "Business Casual",
        "material": "Cotton",
        "gender": "Men",
        "images": [{"url": "https://picsum.photos/seed/oxford/500/500", "alt_text": "Oxford shirt"}],
        "sku": "OX-SH-001",
    },
    {
        "name": "Slim Fit Chinos",
        "description": "Stretch chinos with a tapered leg.",
        "price": Decimal("49.50"),
        "count_in_stock": 15,
        "category": "Bottom Wear",
        "brand": "ChinoCo",
        "sizes": ["30", "32", "34"],
        "colors": ["Khaki", "Navy"],
        "collections": "Everyday",
        "material": "Cotton Blend",
        "gender": "Men",
        "images": [{"url": "https://picsum.photos/seed/chinos/500/500", "alt_text": "Chinos"}],
        "sku": "CH-PT-002",
    },
    {
        "name": "Knit Cardigan",
        "description": "Soft knit cardigan with pearl buttons.",
        "price": Decimal("59.00"),
        "count_in_stock": 10,
        "category": "Top Wear",
        "brand": "Cozy Co",
        "sizes": ["XS", "S", "M"],
        "colors": ["Beige", "Black"],
        "collections": "Winter Essentials",
        "material": "Wool Blend",
        "gender": "Women",
        "images": [{"url": "https://picsum.photos/seed/cardigan/500/500", "alt_text": "Cardigan"}],
        "sku": "KN-CD-003",
    },
]


async def seed_admin(session: AsyncSession) -> User:
    admin = await get_user_by_email(session, SEED_ADMIN_EMAIL)
    if admin is None:
        admin = User(
            name="Admin",
            email=SEED_ADMIN_EMAIL,
            password_hash=get_password_hash(SEED_ADMIN_PASSWORD),
            role="admin",
        )
        session.add(admin)
        await session.flush()
        logger.info("Seeded admin %s", SEED_ADMIN_EMAIL)
    return admin


async def seed_products(session: AsyncSession, admin: User) -> int:
    result = await session.execute(select(Product.sku))
    existing = set(result.scalars().all())
    created = 0
    for data in DEMO_PRODUCTS:
        if data["sku"] in existing:
            continue
        session.add(Product(**data, user_id=admin.id))
        created += 1
    return created


async def seed_demo_data(session: AsyncSession) -> int:
    """Create the admin and any missing demo products; returns how many products were added."""
    admin = await seed_admin(session)
    created = await seed_products(session, admin)
    await commit_or_raise(session)
    logger.info("Seeded %d products", created)
    return created


async def main():
    await create_tables()
    async with async_session_maker() as session:
        await seed_demo_data(session)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
