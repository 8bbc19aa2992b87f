from decimal import Decimal
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, PaymentMethod

# Per cart line; keeps quantities far inside the integer column
MAX_LINE_QUANTITY = 1000


# Shipping address captured at checkout
class OrderAddress(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postcode: str = Field(min_length=1)


# One cart line as sent by the checkout page.
# product_name, product_price and delivery_charge are display hints only.
class OrderLineIn(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    product_price: Optional[Decimal] = None
    quantity: int = Field(gt=0, le=MAX_LINE_QUANTITY)
    delivery_charge: Optional[Decimal] = None


# Input schema for creating an order, totals are re-checked server side
class OrderCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(min_length=1)
    address: OrderAddress
    subtotal: Decimal = Field(ge=0)
    delivery_total: Decimal = Field(ge=0)
    total: Decimal = Field(ge=0)
    payment_method: PaymentMethod
    line_items: List[OrderLineIn] = Field(min_length=1)


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    product_id: Optional[str] = None
    product_name: str
    product_price: Decimal
    quantity: int
    delivery_charge: Decimal
    created_at: Optional[datetime] = None


# Output schema representing an order header
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[int] = None
    email: str
    full_name: str
    address: dict
    subtotal: Decimal
    delivery_total: Decimal
    total: Decimal
    status: str
    payment_method: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Order header together with its line items
class OrderDetailResponse(OrderResponse):
    items: List[OrderItemOut] = []


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus
