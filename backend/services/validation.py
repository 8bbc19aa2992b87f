# backend/services/validation.py
"""Server-side recomputation of cart totals.

The client sends its own subtotal, delivery and total next to the cart
lines. None of those numbers are trusted: every line is priced again from
the catalog and the submitted figures must agree within one penny. The
caller then persists the recomputed values, never the submitted ones.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Protocol

from sqlalchemy.orm import Session

from services.catalog import ProductSnapshot, lookup_one, to_money
from services.errors import OrderTooLarge, ProductUnavailable, TotalMismatch

logger = logging.getLogger(__name__)

# Absorbs display rounding on the client only
TOTAL_TOLERANCE = Decimal("0.01")

# Largest value the Numeric(10, 2) money columns hold
MAX_ORDER_TOTAL = Decimal("99999999.99")


class CartLine(Protocol):
    product_id: str
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    product: ProductSnapshot
    quantity: int

    @property
    def line_subtotal(self) -> Decimal:
        return self.product.price * self.quantity

    @property
    def line_delivery(self) -> Decimal:
        return self.product.delivery_charge * self.quantity


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    delivery_total: Decimal
    lines: List[PricedLine]

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.delivery_total


def price_cart(db: Session, lines: Iterable[CartLine]) -> OrderTotals:
    """Price each line from the catalog, failing on missing or hidden products."""
    priced: List[PricedLine] = []
    subtotal = Decimal("0.00")
    delivery = Decimal("0.00")

    for line in lines:
        product = lookup_one(db, line.product_id)
        if not product.is_available:
            raise ProductUnavailable(product.name)

        item = PricedLine(product=product, quantity=int(line.quantity))
        priced.append(item)
        subtotal += item.line_subtotal
        delivery += item.line_delivery

    return OrderTotals(subtotal=subtotal, delivery_total=delivery, lines=priced)


def _check(field: str, claimed, calculated: Decimal):
    claimed = to_money(claimed)
    if abs(calculated - claimed) > TOTAL_TOLERANCE:
        logger.warning("Rejected cart: %s claimed=%s calculated=%s", field, claimed, calculated)
        raise TotalMismatch(field, claimed, calculated)


def validate_order_totals(db: Session, lines: Iterable[CartLine], subtotal, delivery_total, total) -> OrderTotals:
    totals = price_cart(db, lines)
    if totals.total > MAX_ORDER_TOTAL:
        logger.warning("Rejected cart: total %s above %s", totals.total, MAX_ORDER_TOTAL)
        raise OrderTooLarge(totals.total, MAX_ORDER_TOTAL)

    _check("subtotal", subtotal, totals.subtotal)
    _check("delivery_total", delivery_total, totals.delivery_total)
    _check("total", total, totals.total)

    return totals
