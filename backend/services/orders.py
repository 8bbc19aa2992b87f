# backend/services/orders.py
"""Order creation, status changes and order read access."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from database import atomic
from models.order import Order, OrderItem, OrderStatus, PaymentMethod
from models.payment import Payment  # noqa: F401  (Order.payments relationship target)
from schemas.order import OrderCreate, OrderLineIn
from services.caller import Caller
from services.catalog import lookup_one
from services.errors import (
    Forbidden, InvalidStatus, InvalidStatusTransition, OrderNotFound, RateLimitExceeded,
)
from services.rate_limit import allow_order_creation
from services.validation import validate_order_totals
from utils.audit import write_log

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def _can_view(caller: Caller, order: Order) -> bool:
    if caller.is_elevated:
        return True
    return order.user_id is not None and order.user_id == caller.user_id


def _snapshot_item(db: Session, line: OrderLineIn, position: int) -> OrderItem:
    # Prices are read again here; the client's price hints never reach the row
    product = lookup_one(db, line.product_id)
    return OrderItem(
        product_id=product.id,
        position=position,
        product_name=product.name,
        product_price=product.price,
        quantity=line.quantity,
        delivery_charge=product.delivery_charge,
    )


def create_order(db: Session, caller: Caller, data: OrderCreate, ip: Optional[str] = None) -> Order:
    """Validate the cart against the catalog and persist order plus items atomically.

    The stored subtotal, delivery and total are the recomputed values.
    Guest orders (no user) count against the shared hourly ceiling.
    """
    with atomic(db, "create order"):
        totals = validate_order_totals(db, data.line_items, data.subtotal, data.delivery_total, data.total)

        if not allow_order_creation(db, caller):
            raise RateLimitExceeded("Rate limit exceeded. Please try again later or sign in.")

        order = Order(
            user_id=caller.user_id,
            email=data.email,
            full_name=data.full_name,
            address=data.address.model_dump(),
            subtotal=totals.subtotal,
            delivery_total=totals.delivery_total,
            total=totals.total,
            status=OrderStatus.PENDING.value,
            payment_method=PaymentMethod(data.payment_method).value,
        )
        db.add(order)

        for position, line in enumerate(data.line_items):
            order.items.append(_snapshot_item(db, line, position))
        db.flush()

        write_log(
            db,
            event_type="order_created",
            table_name="orders",
            record_id=order.id,
            user_id=order.user_id,
            ip=ip,
            event_data={
                "email": order.email,
                "total": str(totals.total),
                "payment_method": order.payment_method,
                "is_anonymous": order.user_id is None,
            },
        )

    logger.info("Order %s created (total=%s, anonymous=%s)", order.id, order.total, order.user_id is None)
    return order


def update_order_status(db: Session, caller: Caller, order_id: str, status: str, ip: Optional[str] = None) -> Order:
    if not caller.is_elevated:
        logger.warning("Order status change refused for user_id=%s", caller.user_id)
        raise Forbidden("Admin access required")

    try:
        new_status = OrderStatus(status)
    except ValueError:
        raise InvalidStatus("order", status)

    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise OrderNotFound(order_id)

    old_status = OrderStatus(order.status)
    if old_status == new_status:
        return order
    if new_status not in ORDER_TRANSITIONS[old_status]:
        raise InvalidStatusTransition("order", old_status.value, new_status.value)

    with atomic(db, "update order status"):
        order.status = new_status.value
        write_log(
            db,
            event_type="order_status_changed",
            table_name="orders",
            record_id=order.id,
            user_id=caller.user_id,
            ip=ip,
            event_data={"old": old_status.value, "new": new_status.value},
        )

    logger.info("Order %s status %s -> %s", order.id, old_status.value, new_status.value)
    return order


def get_user_orders(db: Session, caller: Caller, limit: int = 50) -> List[Order]:
    if caller.user_id is None:
        return []
    return (
        db.query(Order)
        .filter(Order.user_id == caller.user_id)
        .order_by(Order.created_at.desc())
        .limit(limit)
        .all()
    )


def get_order_by_id(db: Session, caller: Caller, order_id: str) -> Optional[Order]:
    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None or not _can_view(caller, order):
        return None
    return order


def get_order_items(db: Session, caller: Caller, order_id: str) -> List[OrderItem]:
    order = get_order_by_id(db, caller, order_id)
    if order is None:
        raise OrderNotFound(order_id)
    return list(order.items)


def get_all_orders(
    db: Session,
    caller: Caller,
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Order]:
    if not caller.is_elevated:
        raise Forbidden("Admin access required")

    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if payment_method:
        query = query.filter(Order.payment_method == payment_method)

    return query.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()
