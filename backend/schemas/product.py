# backend/schemas/product.py
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Full product representation shown in the shop
class ProductOut(ORMBase):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    category: str
    stock_quantity: Optional[int] = None
    delivery_charge: Optional[Decimal] = None
    is_available: bool
    created_at: Optional[datetime] = None


# Compact representation used for cart and order summaries
class ProductSummaryOut(ORMBase):
    id: str
    name: str
    price: Decimal
    image_url: Optional[str] = None
    category: str
    delivery_charge: Optional[Decimal] = None


class ProductIdsRequest(BaseModel):
    product_ids: List[str] = Field(default_factory=list, max_length=200)
