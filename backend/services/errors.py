# backend/services/errors.py
"""Domain errors raised by the order and payment services.

Every error carries a stable ``code`` and the HTTP status the API answers
with; ``main.py`` renders them through a single exception handler.
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class ShopError(Exception):
    code = "shop_error"
    status_code = 400
    # Message shown to the client instead of str(exc), when set
    public_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.public_message or str(self), "code": self.code}


class ProductNotFound(ShopError):
    code = "product_not_found"
    status_code = 404

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id

    def to_dict(self):
        return {**super().to_dict(), "product_id": self.product_id}


class ProductUnavailable(ShopError):
    code = "product_unavailable"
    status_code = 409

    def __init__(self, product_name: str):
        super().__init__(f"Product {product_name} is not available")
        self.product_name = product_name

    def to_dict(self):
        return {**super().to_dict(), "product_name": self.product_name}


class TotalMismatch(ShopError):
    code = "total_mismatch"
    status_code = 409

    def __init__(self, field: str, claimed: Decimal, calculated: Decimal):
        super().__init__(f"Submitted {field} {claimed} does not match calculated {field} {calculated}")
        self.field = field
        self.claimed = claimed
        self.calculated = calculated

    def to_dict(self):
        return {
            **super().to_dict(),
            "field": self.field,
            "claimed": str(self.claimed),
            "calculated": str(self.calculated),
        }


class AmountMismatch(ShopError):
    code = "amount_mismatch"
    status_code = 409

    def __init__(self, amount: Decimal, order_total: Decimal):
        super().__init__(f"Payment amount {amount} does not match order total {order_total}")
        self.amount = amount
        self.order_total = order_total


class OrderTooLarge(ShopError):
    code = "order_too_large"
    status_code = 422

    def __init__(self, total: Decimal, limit: Decimal):
        super().__init__(f"Order total {total} exceeds the maximum of {limit}")
        self.total = total
        self.limit = limit

    def to_dict(self):
        return {**super().to_dict(), "limit": str(self.limit)}


class RateLimitExceeded(ShopError):
    code = "rate_limited"
    status_code = 429
    public_message = "Too many orders right now. Please try again later or sign in."


class AccessDenied(ShopError):
    code = "access_denied"
    status_code = 403
    public_message = "Not authorized"


class Forbidden(AccessDenied):
    code = "forbidden"


class OrderNotFound(ShopError):
    code = "order_not_found"
    status_code = 404

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class PaymentNotFound(ShopError):
    code = "payment_not_found"
    status_code = 404

    def __init__(self, payment_id: str):
        super().__init__(f"Payment {payment_id} not found")
        self.payment_id = payment_id


class InvalidStatus(ShopError):
    code = "invalid_status"
    status_code = 422

    def __init__(self, kind: str, status: str):
        super().__init__(f"Invalid {kind} status: {status}")
        self.status = status


class InvalidPaymentMethod(ShopError):
    code = "invalid_payment_method"
    status_code = 422

    def __init__(self, method: str):
        super().__init__(f"Invalid payment method: {method}")
        self.method = method


class InvalidStatusTransition(ShopError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, kind: str, current: str, requested: str):
        super().__init__(f"Cannot change {kind} status from {current} to {requested}")
        self.current = current
        self.requested = requested


class StorageError(ShopError):
    code = "storage_error"
    status_code = 503
    public_message = "Could not save your request. Please try again."
