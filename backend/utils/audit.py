from typing import Optional

from sqlalchemy.orm import Session
from models.log import AuditLog

def write_log(db: Session, *, event_type, table_name, record_id, user_id=None, ip=None, event_data=None) -> AuditLog:
    # Joins the caller's transaction; committed or rolled back together with the change it describes
    entry = AuditLog(
        event_type=event_type,
        table_name=table_name,
        record_id=str(record_id),
        user_id=user_id,
        ip=ip,
        event_data=event_data or {},
    )
    db.add(entry)
    return entry


def client_ip(request) -> Optional[str]:
    return request.client.host if request is not None and request.client else None
