from decimal import Decimal

from sqlalchemy import (
    Boolean, Column, Integer, String, Text, ForeignKey, DateTime, func,
    Numeric, JSON, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from .database import Base

# 👤 User
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="customer")  # customer/admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role in ('customer', 'admin')", name="ck_users_role"),
    )


# 🛍️ Product
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)         # 💰 exact money
    discount_price = Column(Numeric(10, 2), nullable=True)
    count_in_stock = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=True)
    sizes = Column(JSON, nullable=False, default=list)
    colors = Column(JSON, nullable=False, default=list)
    collections = Column(String(100), nullable=False)
    material = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=True)
    images = Column(JSON, nullable=False, default=list)    # [{"url": ..., "alt_text": ...}]
    is_featured = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    dimensions = Column(JSON, nullable=True)
    weight = Column(Numeric(10, 3), nullable=True)
    sku = Column(String(64), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        CheckConstraint("count_in_stock >= 0", name="ck_products_stock_nonneg"),
        Index("ix_products_category_name", "category", "name"),
    )

    @property
    def first_image_url(self) -> str:
        if self.images:
            return (self.images[0] or {}).get("url") or ""
        return ""


# cart limits; the total must fit Numeric(12, 2)
MAX_LINE_QUANTITY = 10_000
MAX_CART_TOTAL = Decimal("9999999999.99")


# 🛒 Cart: one row per owner, lines are written together with it
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=True)
    guest_id = Column(String(64), unique=True, nullable=True)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lines = relationship(
        "CartLine",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CartLine.id",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        # exactly one owner
        CheckConstraint(
            "(user_id IS NULL) <> (guest_id IS NULL)",
            name="ck_carts_single_owner",
        ),
        CheckConstraint("total_price >= 0", name="ck_carts_total_nonneg"),
    )


class CartLine(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, nullable=False, index=True)  # snapshot reference, no FK
    name = Column(String(255), nullable=False)
    image = Column(String(1024), nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)  # 💰 price at the moment of adding
    size = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    cart = relationship("Cart", back_populates="lines")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_cart_lines_quantity_pos"),
        CheckConstraint("price >= 0", name="ck_cart_lines_price_nonneg"),
        Index("ix_cart_lines_cart", "cart_id"),
    )
