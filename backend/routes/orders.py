# backend/routes/orders.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_caller
from utils.audit import client_ip
from services.caller import Caller
from services import orders as order_service
from services import payments as payment_service
from schemas.order import (
    OrderCreate, OrderResponse, OrderDetailResponse, OrderItemOut, OrderStatusPatch
)
from schemas.payment import PaymentResponse

router = APIRouter(prefix="/orders", tags=["Orders"])


# Place an order; guests are allowed, totals are re-validated server side
@router.post("", response_model=OrderDetailResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return order_service.create_order(db, caller, payload, ip=client_ip(request))


# Orders of the logged-in user, newest first
@router.get("", response_model=List[OrderResponse])
def list_my_orders(
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return order_service.get_user_orders(db, caller, limit=limit)


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order_detail(
    order_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    order = order_service.get_order_by_id(db, caller, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return order


@router.get("/{order_id}/items", response_model=List[OrderItemOut])
def get_order_items(
    order_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return order_service.get_order_items(db, caller, order_id)


@router.get("/{order_id}/payments", response_model=List[PaymentResponse])
def get_order_payments(
    order_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return payment_service.get_order_payments(db, caller, order_id)


# Manually update order status (Admin/service only)
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return order_service.update_order_status(db, caller, order_id, payload.status.value, ip=client_ip(request))
