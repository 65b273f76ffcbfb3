"""
TaxDesk Server - Login Request Model

Pydantic model for login endpoint request.
"""

from typing import Optional
from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Request model for login endpoint"""
    email: Optional[str] = None
    password: Optional[str] = None
