# backend/services/rate_limit.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from models.order import Order
from services.caller import Caller

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW = timedelta(hours=1)


def anonymous_orders_in_window(db: Session, now: Optional[datetime] = None) -> int:
    # One bucket shared by all guest traffic, not per client
    now = now or datetime.now(timezone.utc)
    return (
        db.query(func.count(Order.id))
        .filter(Order.user_id.is_(None), Order.created_at > now - RATE_LIMIT_WINDOW)
        .scalar()
    )


def allow_order_creation(db: Session, caller: Caller, now: Optional[datetime] = None) -> bool:
    """Logged-in users are never limited; guests share a ceiling per trailing hour."""
    if not caller.is_anonymous:
        return True

    limit = settings.ANON_ORDER_LIMIT_PER_HOUR
    recent = anonymous_orders_in_window(db, now)
    if recent >= limit:
        logger.warning("Anonymous order rate limit reached: %s orders in the last hour (limit %s)", recent, limit)
        return False
    return True
