# backend/routes/payments.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_caller
from utils.audit import client_ip
from services.caller import Caller
from services import payments as payment_service
from schemas.payment import PaymentCreate, PaymentResponse, PaymentStatusPatch

router = APIRouter(prefix="/payments", tags=["Payments"])


# Record the provider transaction for an order; clients may only create pending payments
@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return payment_service.create_payment(
        db,
        caller,
        order_id=payload.order_id,
        payment_method=payload.payment_method.value,
        payment_id=payload.payment_id,
        amount=payload.amount,
        status=payload.status,
        provider_details=payload.provider_details,
        ip=client_ip(request),
    )


# Settle, fail or refund a payment (Admin/service only)
@router.patch("/{payment_id}/status", response_model=PaymentResponse)
def update_payment_status(
    payment_id: str,
    payload: PaymentStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return payment_service.update_payment_status(
        db, caller, payment_id, payload.status,
        provider_details=payload.provider_details, ip=client_ip(request),
    )
