"""
TaxDesk Server - Activity Log

Append-only audit trail. Services call RecordActivity inside their own
session so the entry commits together with the change it describes.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from models.database import ActivityLog
from models.infrastructure import Principal
from managers.database_manager import DatabaseManager

logger = logging.getLogger(__name__)


def RecordActivity(
    session,
    principal: Principal,
    action: str,
    task_id: Optional[str] = None,
    task_title: Optional[str] = None,
    file_id: Optional[int] = None
) -> ActivityLog:
    """
    Append an activity entry to the session (caller commits)

    Args:
        session: SQLAlchemy session
        principal: Actor
        action: Action kind, e.g. 'create_task'
        task_id: Related task id (or a synthetic id for batch runs)
        task_title: Related task title or run summary
        file_id: Related attachment id

    Returns:
        ActivityLog: The pending entry
    """
    entry = ActivityLog(
        user_id=principal.user_id,
        user_email=principal.email,
        action=action,
        task_id=task_id,
        task_title=task_title,
        file_id=file_id,
        timestamp=datetime.now(timezone.utc)
    )
    session.add(entry)
    return entry


def ListActivity(db_manager: DatabaseManager, user_id: Optional[str] = None) -> List[ActivityLog]:
    """
    List activity entries, newest first

    Args:
        db_manager: DatabaseManager instance
        user_id: Only entries of this actor when given

    Returns:
        List[ActivityLog]: Entries
    """
    session = db_manager.GetSession()
    try:
        query = session.query(ActivityLog)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        return query.order_by(ActivityLog.timestamp.desc(), ActivityLog.log_id.desc()).all()
    finally:
        session.close()


def SerializeActivity(entry: ActivityLog) -> dict:
    """Convert an entry to its JSON form"""
    return {
        "id": entry.log_id,
        "user_id": entry.user_id,
        "user_email": entry.user_email,
        "action": entry.action,
        "task_id": entry.task_id,
        "task_title": entry.task_title,
        "file_id": entry.file_id,
        "timestamp": entry.timestamp
    }
