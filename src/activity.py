from typing import List, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from src.models import ActivityLog


def record_activity(
    db: Session,
    user_id: Optional[int],
    action: str,
    description: Optional[str] = None,
    request: Optional[Request] = None,
) -> ActivityLog:
    """Add an activity log row to the session; the caller's commit persists it"""
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        description=description,
        ip_address=request.client.host if request is not None and request.client else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
    )
    db.add(entry)
    return entry


def list_activity(
    db: Session,
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[ActivityLog]:
    query = db.query(ActivityLog)
    if user_id is not None:
        query = query.filter(ActivityLog.user_id == user_id)
    if action:
        query = query.filter(ActivityLog.action == action)
    return query.order_by(ActivityLog.id.desc()).offset(offset).limit(limit).all()
