# backend/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, CheckConstraint
from database import Base

# Model Product
# Pozycja katalogu sklepu. Cena i koszt dostawy są autorytatywnym źródłem
# przy wyliczaniu sum zamówienia; rdzeń zamówień tylko je czyta.
class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    category = Column(String, nullable=False, index=True)
    image_url = Column(String, nullable=True)

    # Ceny w funtach, dokładność do pensa.
    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    delivery_charge = Column(Numeric(10, 2), CheckConstraint("delivery_charge >= 0"), nullable=True, default=0)

    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), default=0)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
