"""
TaxDesk Server - Register Request Model

Pydantic model for the self-registration endpoint.
"""

from typing import Optional
from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Request model for registration endpoint"""
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
