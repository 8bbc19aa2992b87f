# backend/routes/admin.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_caller
from services.caller import Caller
from services import orders as order_service
from models.order import OrderStatus, PaymentMethod
from schemas.order import OrderResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


# All orders with optional filters (Admin/service only)
@router.get("/orders", response_model=List[OrderResponse])
def get_all_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    payment_method: Optional[PaymentMethod] = Query(None, description="Filter by payment method"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return order_service.get_all_orders(
        db,
        caller,
        status=status.value if status else None,
        payment_method=payment_method.value if payment_method else None,
        limit=limit,
        offset=offset,
    )
