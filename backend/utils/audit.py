# backend/utils/audit.py
from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log

# Record a user action in the audit table (commits its own transaction)
def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    db.commit()

def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host
