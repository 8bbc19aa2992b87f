# backend/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from database import get_db
from models.log import AuditLog
from services.caller import Caller
from utils.tokenJWT import role_required

router = APIRouter(prefix="/logs", tags=["Logs"])

# --- SCHEMAS ---
class LogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_type: str
    table_name: str
    record_id: str
    user_id: Optional[int] = None
    ip: Optional[str] = None
    created_at: datetime
    event_data: Optional[Any] = None

class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int

# --- ENDPOINT ---
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    event_type: Optional[str] = Query(None, description="Filter by event type"),
    table_name: Optional[str] = Query(None, description="Filter by table"),
    record_id: Optional[str] = Query(None, description="Filter by record id"),
    user_id: Optional[int] = Query(None, description="Filter by user id"),
    date_from: Optional[str] = Query(None, description="Date from (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Date to (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("admin")),
):
    query = db.query(AuditLog)

    if event_type:
        query = query.filter(AuditLog.event_type == event_type)

    if table_name:
        query = query.filter(AuditLog.table_name == table_name)

    if record_id:
        query = query.filter(AuditLog.record_id == record_id)

    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)

    # Date filters, malformed values are ignored
    if date_from:
        try:
            dt_from = datetime.fromisoformat(date_from)
            query = query.filter(AuditLog.created_at >= dt_from)
        except ValueError:
            pass

    if date_to:
        try:
            # Cover the whole closing day
            dt_to_str = date_to
            if len(dt_to_str) == 10: # YYYY-MM-DD
                dt_to_str += " 23:59:59"

            dt_to = datetime.fromisoformat(dt_to_str)
            query = query.filter(AuditLog.created_at <= dt_to)
        except ValueError:
            pass

    # Newest first
    query = query.order_by(AuditLog.created_at.desc())

    total = query.count()
    logs = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": logs,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
