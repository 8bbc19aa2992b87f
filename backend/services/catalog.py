# backend/services/catalog.py
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.product import Product
from services.caller import Caller
from services.errors import ProductNotFound


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value))


# Authoritative pricing facts for one product
@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    name: str
    price: Decimal
    delivery_charge: Decimal
    is_available: bool


def lookup_one(db: Session, product_id: str) -> ProductSnapshot:
    """Read price, delivery charge and availability straight from the catalog.

    Raises ProductNotFound when the id does not exist. A missing delivery
    charge counts as zero.
    """
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise ProductNotFound(product_id)
    return ProductSnapshot(
        id=product.id,
        name=product.name,
        price=to_money(product.price),
        delivery_charge=to_money(product.delivery_charge),
        is_available=bool(product.is_available),
    )


def get_product(db: Session, caller: Caller, product_id: str) -> Optional[Product]:
    query = db.query(Product).filter(Product.id == product_id)
    if not caller.is_elevated:
        query = query.filter(Product.is_available.is_(True))
    return query.first()


def get_products(
    db: Session,
    caller: Caller,
    category: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Product]:
    query = db.query(Product)
    if not caller.is_elevated:
        query = query.filter(Product.is_available.is_(True))

    if category:
        query = query.filter(Product.category == category)

    # Search in name, description and category
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(
                Product.name.ilike(like),
                Product.description.ilike(like),
                Product.category.ilike(like),
            )
        )

    return query.order_by(Product.created_at.desc()).offset(offset).limit(limit).all()


def get_products_by_ids(db: Session, product_ids: List[str]) -> List[Product]:
    if not product_ids:
        return []
    return db.query(Product).filter(Product.id.in_(product_ids)).all()


def get_categories(db: Session) -> List[str]:
    rows = (
        db.query(Product.category)
        .filter(Product.is_available.is_(True))
        .distinct()
        .order_by(Product.category)
        .all()
    )
    return [c[0] for c in rows]
