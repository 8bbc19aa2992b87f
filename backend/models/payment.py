import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


# Settlement states of a provider transaction
class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Records a Stripe or PayPal transaction against an order
class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method = Column(String, CheckConstraint("payment_method IN ('card', 'paypal')"), nullable=False)

    # Provider transaction reference (Stripe PaymentIntent id, PayPal order/capture id)
    payment_id = Column(String, nullable=True, index=True)
    status = Column(
        String,
        CheckConstraint("status IN ('pending', 'completed', 'failed', 'refunded')"),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        index=True,
    )
    amount = Column(Numeric(10, 2), CheckConstraint("amount >= 0"), nullable=False)
    currency = Column(String(3), nullable=False, default="GBP")

    # Raw provider payload kept for reconciliation, never interpreted
    provider_details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    order = relationship("Order", back_populates="payments")
