"""
TaxDesk Server - Change Password Response Model

Pydantic model for password endpoint responses.
"""

from typing import Optional
from pydantic import BaseModel


class ChangePasswordResponse(BaseModel):
    """Response model for password endpoints"""
    success: bool
    message: str


class ResetTokenResponse(BaseModel):
    """Response of a reset request. Token fields are only set in development."""
    message: str
    reset_token: Optional[str] = None
    reset_url: Optional[str] = None


class ResetTokenStatusResponse(BaseModel):
    """Response of a reset token check"""
    valid: bool
    email: str
