"""Audit-trail entries attached to every create / update of a disaster record."""

from datetime import datetime, timezone
from typing import Dict, Optional

UNKNOWN_USER = "unknown"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def audit_entry(action: str, user_id: Optional[str], timestamp: Optional[datetime] = None) -> Dict:
    """Build one store-ready audit entry; a missing user is recorded as ``unknown``."""
    return {
        "action": action,
        "user_id": user_id or UNKNOWN_USER,
        "timestamp": timestamp or utcnow(),
    }


def create_entry(user_id: Optional[str], timestamp: Optional[datetime] = None) -> Dict:
    return audit_entry("create", user_id, timestamp)


def update_entry(user_id: Optional[str], timestamp: Optional[datetime] = None) -> Dict:
    return audit_entry("update", user_id, timestamp)
