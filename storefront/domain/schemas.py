# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from storefront.domain.enums import (
    Gender,
    OrderStatus,
    PaymentType,
    TryOnCategory,
    UserRole,
)


# ---------------------------------------------------------------- users
class UserCreate(BaseModel):
    """Self registration."""

    name: str = Field(..., min_length=1, max_length=120)
    phone_number: str = Field(..., min_length=6, max_length=20)
    email: Optional[str] = Field(None, max_length=255)


class StaffCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
    role: UserRole


class UserRead(BaseModel):
    id: int
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    role: str
    is_verified: bool

    model_config = ConfigDict(from_attributes=True)


class OtpSendIn(BaseModel):
    phone_number: str = Field(..., min_length=6, max_length=20)


class OtpSentOut(BaseModel):
    expires_at: datetime


class OtpVerifyIn(BaseModel):
    phone_number: str = Field(..., min_length=6, max_length=20)
    code: str = Field(..., min_length=6, max_length=6)


class OtpVerifiedOut(BaseModel):
    verified: bool
    user: Optional[UserRead] = None


# ---------------------------------------------------------------- addresses
class AddressCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=50)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1, max_length=20)
    phone_number: str = Field(..., min_length=6, max_length=20)
    is_default: bool = False


class AddressOut(BaseModel):
    id: int
    label: str
    street: str
    city: str
    state: str
    country: str
    zip_code: str
    phone_number: str
    is_default: bool

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- catalog
class VariantIn(BaseModel):
    size: str = Field(..., min_length=1, max_length=20)
    color: str = Field(..., min_length=1, max_length=50)
    stock: int = Field(..., ge=0)
    sku: str = Field(..., min_length=1, max_length=100)
    price_override: Optional[Decimal] = Field(None, gt=0)


class VariantUpdate(BaseModel):
    size: Optional[str] = Field(None, min_length=1, max_length=20)
    color: Optional[str] = Field(None, min_length=1, max_length=50)
    stock: Optional[int] = Field(None, ge=0)
    price_override: Optional[Decimal] = Field(None, gt=0)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: Decimal = Field(..., gt=0)
    gender: Gender = Gender.UNISEX
    category: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1, max_length=100)
    images: List[str] = []
    is_trending: bool = False
    variants: List[VariantIn] = []


class ProductUpdate(BaseModel):
    """Variants are managed through their own endpoints."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0)
    gender: Optional[Gender] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = Field(None, min_length=1, max_length=100)
    images: Optional[List[str]] = None
    is_trending: Optional[bool] = None


class VariantOut(BaseModel):
    id: int
    size: str
    color: str
    sku: str
    stock: int
    price_override: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    gender: str
    category: str
    brand: str
    stock: int
    colors: List[str]
    images: List[str]
    is_trending: bool
    is_archived: bool
    variants: List[VariantOut] = []

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    data: List[ProductOut]
    total: int
    page: int
    limit: int


# ---------------------------------------------------------------- cart
class CartAddIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    size: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)


class CartQuantityIn(BaseModel):
    quantity: int


class CartLineOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    size: str
    color: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    is_archived: bool


class CartSummaryOut(BaseModel):
    items: List[CartLineOut]
    total_amount: Decimal
    total_items: int


class CartQuantityOut(BaseModel):
    """`removed` tells a deleted line apart from an updated one."""

    removed: bool
    item: Optional[CartLineOut] = None


# ---------------------------------------------------------------- favorites
class FavoriteToggleOut(BaseModel):
    status: str


class FavoriteStatusOut(BaseModel):
    product_id: int
    is_favored: bool


class FavoriteOut(BaseModel):
    id: int
    product: ProductOut
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FavoritePage(BaseModel):
    data: List[FavoriteOut]
    total: int
    page: int
    limit: int


# ---------------------------------------------------------------- orders
class OrderCreate(BaseModel):
    address_id: int = Field(..., gt=0)
    payment_type: PaymentType = PaymentType.ONLINE


class OrderItemOut(BaseModel):
    id: int
    variant_id: Optional[int] = None
    product_name: str
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    price: Decimal
    product_image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TimelineEntryOut(BaseModel):
    status: str
    description: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int
    shipping_address: dict
    items: List[OrderItemOut]
    items_total: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    payment_type: str
    status: str
    payment_id: Optional[str] = None
    merchant_transaction_id: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    timeline: List[TimelineEntryOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderInitiateOut(BaseModel):
    order_id: int
    order_number: str
    status: str
    total_amount: Decimal
    payment_url: Optional[str] = None
    merchant_transaction_id: Optional[str] = None


class OrderStatusOut(BaseModel):
    status: str
    message: str


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    description: Optional[str] = Field(None, max_length=255)


class TrackingOut(BaseModel):
    order_id: int
    order_number: str
    current_status: str
    estimated_delivery: Optional[datetime] = None
    timeline: List[TimelineEntryOut]


# ---------------------------------------------------------------- try-on
class TryOnUploadIn(BaseModel):
    image_urls: List[str] = Field(..., min_length=1, max_length=5)


class TryOnGenerateIn(BaseModel):
    user_image_urls: List[str] = Field(..., min_length=1)
    garment_image_urls: List[str] = Field(..., min_length=1)
    category: TryOnCategory
    description: Optional[str] = None
    product_id: Optional[int] = Field(None, gt=0)


class TryOnOut(BaseModel):
    id: int
    user_id: int
    product_id: Optional[int] = None
    type: str
    status: str
    request_id: Optional[str] = None
    source_urls: List[str]
    garment_urls: Optional[List[str]] = None
    result_urls: List[str]
    category: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeletedOut(BaseModel):
    success: bool = True
