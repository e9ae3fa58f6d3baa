"""
Admin activity logging
Records who did what to which booking or room
"""

import logging
from typing import Optional

from fastapi import Header, Request
from sqlalchemy.orm import Session

from ..models import ActivityLog

logger = logging.getLogger(__name__)


def _client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def log_admin_activity(
    db: Session,
    actor: str,
    action: str,
    description: str,
    reference_id: Optional[object] = None,
    reference_type: Optional[str] = None,
    details: Optional[dict] = None,
    request: Optional[Request] = None,
) -> Optional[ActivityLog]:
    """
    Persist one activity entry.

    Runs after the audited action has committed; a failure here is logged and
    never undoes the action itself.
    """
    try:
        entry = ActivityLog(
            actor=actor,
            action=action,
            description=description,
            reference_id=str(reference_id) if reference_id is not None else None,
            reference_type=reference_type,
            details=details,
            ip_address=_client_ip(request),
        )
        db.add(entry)
        db.commit()
        return entry
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to record activity {action} for {reference_type} {reference_id}: {e}")
        return None


def get_admin_actor(x_admin_user: Optional[str] = Header(None)) -> str:
    """Name recorded on activity entries; supplied by the admin gateway"""
    return (x_admin_user or "").strip() or "admin"
