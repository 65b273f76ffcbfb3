"""
TaxDesk Server - ActivityLog Database Model

Append-only audit trail of every mutating action.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Index

from models.database.base import Base


class ActivityLog(Base):
    """
    Activity_log table - entries are never updated or deleted
    """
    __tablename__ = "activity_log"

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    user_email = Column(String, nullable=False, default="")
    action = Column(String, nullable=False)  # e.g. 'create_task', 'upload', 'download'
    task_id = Column(String, nullable=True)
    task_title = Column(String, nullable=True)
    file_id = Column(Integer, nullable=True)  # set for attachment events
    timestamp = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index('idx_activity_user', 'user_id'),
        {"sqlite_autoincrement": True}
    )
