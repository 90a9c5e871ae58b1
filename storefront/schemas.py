# storefront/schemas.py
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import MAX_LINE_QUANTITY


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both spellings are accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# 👤 User
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: str


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class AdminUserCreate(UserCreate):
    role: Literal["customer", "admin"] = "customer"


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Literal["customer", "admin"]] = None


class UserMessage(BaseModel):
    message: str
    user: UserOut


class Message(BaseModel):
    message: str


# 🛍️ Product
class ProductImage(CamelModel):
    url: str
    alt_text: Optional[str] = None


class Dimensions(CamelModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class ProductBase(CamelModel):
    discount_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    count_in_stock: int = Field(0, ge=0)
    brand: Optional[str] = None
    material: Optional[str] = None
    gender: Optional[str] = None
    images: List[ProductImage] = Field(default_factory=list)
    is_featured: bool = False
    is_published: bool = False
    tags: List[str] = Field(default_factory=list)
    dimensions: Optional[Dimensions] = None
    weight: Optional[Decimal] = Field(None, ge=0, decimal_places=3)


class ProductCreate(ProductBase):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1)
    sizes: List[str] = Field(..., min_length=1)
    colors: List[str] = Field(..., min_length=1)
    collections: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)


class ProductUpdate(CamelModel):
    # only the supplied fields are applied
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    discount_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    count_in_stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    brand: Optional[str] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    collections: Optional[str] = None
    material: Optional[str] = None
    gender: Optional[str] = None
    images: Optional[List[ProductImage]] = None
    is_featured: Optional[bool] = None
    is_published: Optional[bool] = None
    tags: Optional[List[str]] = None
    dimensions: Optional[Dimensions] = None
    weight: Optional[Decimal] = Field(None, ge=0, decimal_places=3)
    sku: Optional[str] = Field(None, min_length=1)


class ProductOut(ProductBase):
    id: int
    name: str
    description: str
    price: float
    discount_price: Optional[float] = None
    weight: Optional[float] = None
    category: str
    sizes: List[str]
    colors: List[str]
    collections: str
    sku: str
    user_id: Optional[int] = None


# 🛒 Cart
class CartItemRequest(CamelModel):
    product_id: int
    quantity: int = Field(..., le=MAX_LINE_QUANTITY)
    size: Optional[str] = None
    color: Optional[str] = None
    guest_id: Optional[str] = None
    user_id: Optional[int] = None

    @field_validator("size", "color", "guest_id")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def _no_bool_quantity(cls, v):
        # JSON true/false is not a quantity
        if isinstance(v, bool):
            raise ValueError("quantity must be a number")
        return v


class CartAddRequest(CartItemRequest):
    quantity: int = Field(..., gt=0, le=MAX_LINE_QUANTITY)


class CartRemoveRequest(CamelModel):
    product_id: int
    size: Optional[str] = None
    color: Optional[str] = None
    guest_id: Optional[str] = None
    user_id: Optional[int] = None

    @field_validator("size", "color", "guest_id")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class CartMergeRequest(CamelModel):
    guest_id: str = Field(..., min_length=1)

    @field_validator("guest_id")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("guestId cannot be empty")
        return v


class CartLineOut(CamelModel):
    product_id: int
    name: str
    image: str
    price: float
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int


class CartOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    guest_id: Optional[str] = None
    products: List[CartLineOut] = Field(default_factory=list, validation_alias="lines")
    total_price: float
