from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from models.order import OrderStatus


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=1, max_length=150)
    line1: str = Field(min_length=1, max_length=255)
    line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=3, max_length=12)
    country: str = Field("India", max_length=60)
    phone: str = Field(min_length=6, max_length=20)


class OrderItemIn(BaseModel):
    product_id: int
    size: str
    color: str
    quantity: int = Field(ge=1)


class CheckoutRequest(BaseModel):
    items: List[OrderItemIn] = Field(min_length=1)
    payment_method: str = Field(min_length=1, max_length=50)
    shipping_address: Optional[ShippingAddress] = None


class StatusChangeRequest(BaseModel):
    status: str


class OrderItemOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_image: Optional[str] = None
    size: str
    color: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    order_number: str
    customer_id: int
    seller_id: int
    status: OrderStatus
    total_price: Decimal
    payment_method: str
    shipping_address: dict
    is_read: bool
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]

    class Config:
        from_attributes = True


class OrderPage(BaseModel):
    items: List[OrderOut]
    page: int
    page_size: int
    total: int


class SellerStatistics(BaseModel):
    status_counts: Dict[str, int]
    today_orders_count: int
    unread_count: int
    total_revenue: Decimal
