"""
TaxDesk Server - Activity Log API Models

Pydantic models for the activity log endpoints.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class LogCreateRequest(BaseModel):
    """Client-reported activity"""
    action: Optional[str] = None
    task_id: Optional[str] = None
    task_title: Optional[str] = None


class LogEntryResponse(BaseModel):
    id: int
    user_id: str
    user_email: str
    action: str
    task_id: Optional[str]
    task_title: Optional[str]
    file_id: Optional[int]
    timestamp: datetime
