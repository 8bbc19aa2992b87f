from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime

from models.order import PaymentMethod


# Input schema for recording a provider transaction against an order
class PaymentCreate(BaseModel):
    order_id: str
    payment_method: PaymentMethod
    payment_id: Optional[str] = None
    amount: Decimal = Field(ge=0)
    # Left as plain text so an unknown value is reported by the service, not the parser
    status: str = "pending"
    provider_details: Optional[Dict[str, Any]] = None


class PaymentStatusPatch(BaseModel):
    status: str
    provider_details: Optional[Dict[str, Any]] = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    payment_method: str
    payment_id: Optional[str] = None
    status: str
    amount: Decimal
    currency: str
    provider_details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
