"""
TaxDesk Server - User Management API Models

Pydantic models for user management endpoints.
"""

from typing import Optional
from pydantic import BaseModel


class UserSummary(BaseModel):
    """Roster entry"""
    id: str
    name: str
    email: str
    role: str


class UpdateUserRequest(BaseModel):
    """Request model for editing a user. Omitted fields are left unchanged."""
    full_name: Optional[str] = None
    role: Optional[str] = None
