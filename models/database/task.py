"""
TaxDesk Server - Task Database Model

Task model for obligations assigned to users.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Date, DateTime, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.database.base import Base


# Statuses a task can be moved through
TASK_STATUSES = ["pending", "in_progress", "completed", "overdue"]
DEFAULT_TASK_STATUS = "pending"
DEFAULT_FREQUENCY = "monthly"


class Task(Base):
    """
    Tasks table - one row per obligation instance
    """
    __tablename__ = "tasks"

    task_id = Column(String, primary_key=True)  # uuid4
    title = Column(String, nullable=False)
    assignee_id = Column(String, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    assignee_name = Column(String, nullable=False, default="")  # kept when the user is deleted
    due_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default=DEFAULT_TASK_STATUS)
    recurring = Column(Boolean, nullable=False, default=False)
    frequency = Column(String, nullable=False, default=DEFAULT_FREQUENCY)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    assignee = relationship("User", back_populates="tasks")
    attachments = relationship("FileAttachment", back_populates="task", order_by="FileAttachment.file_id")

    __table_args__ = (
        Index('idx_tasks_assignee', 'assignee_id'),
        Index('idx_tasks_due_date', 'due_date'),
    )
