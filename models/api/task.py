"""
TaxDesk Server - Task API Models

Pydantic models for task endpoints.
"""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel


class TaskRequest(BaseModel):
    """Body of task create and full update. Required fields are checked by the service."""
    title: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    recurring: bool = False
    frequency: Optional[str] = None


class TaskStatusRequest(BaseModel):
    """Body of a status change"""
    status: Optional[str] = None


class AttachmentResponse(BaseModel):
    """Attachment as shown inside a task and by the file endpoints"""
    id: int
    url: str
    name: str
    size: int
    type: str
    upload_date: datetime
    uploaded_by: str
    download_count: int


class TaskResponse(BaseModel):
    """Task with its proof-of-completion attachments"""
    id: str
    title: str
    assignee: str
    assignee_id: Optional[str]
    due_date: date
    notes: str
    status: str
    recurring: bool
    frequency: str
    created_at: datetime
    comprovantes: List[AttachmentResponse]
