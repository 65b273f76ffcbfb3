"""
TaxDesk Server - Password Request Models

Pydantic models for the password change and reset endpoints.
"""

from typing import Optional
from pydantic import BaseModel


class ChangePasswordRequest(BaseModel):
    """Request model for authenticated password change"""
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Request a reset token for an e-mail"""
    email: Optional[str] = None


class ResetPasswordConfirmRequest(BaseModel):
    """Redeem a reset token"""
    new_password: Optional[str] = None


class VerifyOldPasswordRequest(BaseModel):
    """Check a previous password before a direct change"""
    email: Optional[str] = None
    old_password: Optional[str] = None


class ChangePasswordDirectRequest(BaseModel):
    """Set a new password by e-mail without a token"""
    email: Optional[str] = None
    new_password: Optional[str] = None
