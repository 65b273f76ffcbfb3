"""
TaxDesk Server - FileAttachment Database Model

Metadata for proof-of-completion files uploaded against a task.
The binary content lives on disk under the uploads directory.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.database.base import Base


class FileAttachment(Base):
    """
    Files table - one row per uploaded attachment
    """
    __tablename__ = "files"

    file_id = Column(Integer, primary_key=True, autoincrement=True)
    stored_name = Column(String, nullable=False)  # generated name on disk
    original_name = Column(String, nullable=False)  # name sent by the client
    file_path = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    size = Column(Integer, nullable=False)  # bytes
    task_id = Column(String, ForeignKey("tasks.task_id"), nullable=False)
    uploaded_by = Column(String, nullable=False)  # user_id of the uploader
    uploaded_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    download_count = Column(Integer, nullable=False, default=0)

    # Relationship to owning task
    task = relationship("Task", back_populates="attachments")

    __table_args__ = (
        Index('idx_files_task', 'task_id'),
        {"sqlite_autoincrement": True}
    )
