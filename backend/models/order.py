import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


# Order lifecycle states
class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Payment methods offered at checkout
class PaymentMethod(str, enum.Enum):
    CARD = "card"
    PAYPAL = "paypal"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # NULL user_id marks a guest checkout
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    email = Column(String, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    address = Column(JSON, nullable=False)  # {street, city, postcode}

    subtotal = Column(Numeric(10, 2), CheckConstraint("subtotal >= 0"), nullable=False)
    delivery_total = Column(Numeric(10, 2), CheckConstraint("delivery_total >= 0"), nullable=False)
    total = Column(Numeric(10, 2), CheckConstraint("total >= 0"), nullable=False)

    status = Column(
        String,
        CheckConstraint("status IN ('pending', 'paid', 'shipped', 'delivered', 'cancelled')"),
        nullable=False,
        default=OrderStatus.PENDING.value,
        index=True,
    )
    payment_method = Column(String, CheckConstraint("payment_method IN ('card', 'paypal')"), nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.position")
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan",
                            order_by="Payment.created_at")


# Line item with the product name and prices frozen at the time of ordering
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    position = Column(Integer, nullable=False, default=0)
    product_name = Column(String, nullable=False)
    product_price = Column(Numeric(10, 2), CheckConstraint("product_price >= 0"), nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    delivery_charge = Column(Numeric(10, 2), CheckConstraint("delivery_charge >= 0"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    order = relationship("Order", back_populates="items")
