# backend/services/payments.py
"""Payment records: creation by the ordering client, settlement by trusted callers."""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from config import settings
from database import atomic
from models.order import Order, OrderStatus, PaymentMethod
from models.payment import Payment, PaymentStatus
from services.caller import Caller
from services.catalog import to_money
from services.errors import (
    AccessDenied, AmountMismatch, Forbidden, InvalidPaymentMethod, InvalidStatus,
    InvalidStatusTransition, OrderNotFound, PaymentNotFound,
)
from services.orders import get_order_by_id
from services.validation import TOTAL_TOLERANCE
from utils.audit import write_log

logger = logging.getLogger(__name__)

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}


def _parse_status(status: str) -> PaymentStatus:
    try:
        return PaymentStatus(status)
    except ValueError:
        raise InvalidStatus("payment", status)


def _parse_method(payment_method: str) -> PaymentMethod:
    try:
        return PaymentMethod(payment_method)
    except ValueError:
        raise InvalidPaymentMethod(payment_method)


def _may_pay_for(caller: Caller, order: Order) -> bool:
    # Owner, any guest order, or an elevated caller
    return order.user_id is None or order.user_id == caller.user_id or caller.is_elevated


def create_payment(
    db: Session,
    caller: Caller,
    order_id: str,
    payment_method: str,
    payment_id: Optional[str],
    amount,
    status: str = PaymentStatus.PENDING.value,
    provider_details: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> Payment:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise OrderNotFound(order_id)

    if not _may_pay_for(caller, order):
        logger.warning("Payment for order %s refused for user_id=%s", order_id, caller.user_id)
        raise AccessDenied("Access denied to order")

    amount = to_money(amount)
    order_total = to_money(order.total)
    if abs(amount - order_total) > TOTAL_TOLERANCE:
        logger.warning("Payment amount %s does not match order %s total %s", amount, order_id, order_total)
        raise AmountMismatch(amount, order_total)

    method = _parse_method(payment_method)

    # Terminal states come from webhooks or admins, never from the browser
    requested = _parse_status(status)
    if requested != PaymentStatus.PENDING and not caller.is_elevated:
        logger.warning("Client tried to create payment for order %s with status %s", order_id, requested.value)
        raise Forbidden("Only admin/service can set payment status")

    with atomic(db, "create payment"):
        payment = Payment(
            order_id=order.id,
            payment_method=method.value,
            payment_id=payment_id,
            status=requested.value,
            amount=order.total,
            currency=settings.CURRENCY,
            provider_details=provider_details,
        )
        db.add(payment)
        db.flush()

        write_log(
            db,
            event_type="payment_created",
            table_name="payments",
            record_id=payment.id,
            user_id=caller.user_id,
            ip=ip,
            event_data={
                "order_id": order.id,
                "amount": str(order_total),
                "status": requested.value,
                "payment_method": payment.payment_method,
            },
        )

    logger.info("Payment %s recorded for order %s (%s)", payment.id, order.id, payment.status)
    return payment


def update_payment_status(
    db: Session,
    caller: Caller,
    payment_id: str,
    status: str,
    provider_details: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> Payment:
    """Move a payment along its lifecycle; completing it marks a pending order as paid."""
    if not caller.is_elevated:
        logger.warning("Payment status change refused for user_id=%s", caller.user_id)
        raise Forbidden("Only admin/service can update payment status")

    new_status = _parse_status(status)

    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise PaymentNotFound(payment_id)

    old_status = PaymentStatus(payment.status)
    if old_status != new_status and new_status not in PAYMENT_TRANSITIONS[old_status]:
        raise InvalidStatusTransition("payment", old_status.value, new_status.value)

    with atomic(db, "update payment status"):
        payment.status = new_status.value
        if provider_details:
            payment.provider_details = {**(payment.provider_details or {}), **provider_details}

        if new_status == PaymentStatus.COMPLETED:
            _mark_order_paid(db, payment, caller, ip)

        if old_status != new_status:
            write_log(
                db,
                event_type="payment_status_changed",
                table_name="payments",
                record_id=payment.id,
                user_id=caller.user_id,
                ip=ip,
                event_data={"old": old_status.value, "new": new_status.value, "order_id": payment.order_id},
            )

    logger.info("Payment %s status %s -> %s", payment.id, old_status.value, new_status.value)
    return payment


def _mark_order_paid(db: Session, payment: Payment, caller: Caller, ip: Optional[str]):
    order = payment.order
    if order.status == OrderStatus.PENDING.value:
        order.status = OrderStatus.PAID.value
        write_log(
            db,
            event_type="order_status_changed",
            table_name="orders",
            record_id=order.id,
            user_id=caller.user_id,
            ip=ip,
            event_data={"old": OrderStatus.PENDING.value, "new": OrderStatus.PAID.value, "payment_id": payment.id},
        )
    elif order.status != OrderStatus.PAID.value:
        logger.warning("Payment completed for order %s in status %s, order left unchanged", order.id, order.status)


def get_order_payments(db: Session, caller: Caller, order_id: str) -> List[Payment]:
    order = get_order_by_id(db, caller, order_id)
    if order is None:
        raise OrderNotFound(order_id)
    return list(order.payments)


def find_payment_by_reference(db: Session, references: Iterable[Optional[str]]) -> Optional[Payment]:
    """Locate a payment by any of the provider references a webhook carries."""
    refs = [r for r in references if r]
    if not refs:
        return None
    return (
        db.query(Payment)
        .filter(Payment.payment_id.in_(refs))
        .order_by(Payment.created_at.desc())
        .first()
    )


def apply_provider_event(
    db: Session,
    references: Iterable[Optional[str]],
    status: str,
    provider_details: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> Optional[Payment]:
    """Settle the payment a verified webhook refers to, as the service caller.

    Returns None when no payment matches the provider references.
    """
    references = [r for r in references if r]
    payment = find_payment_by_reference(db, references)
    if payment is None:
        logger.info("No payment matches provider references %s", references)
        return None
    return update_payment_status(db, Caller.service(), payment.id, status, provider_details=provider_details, ip=ip)
