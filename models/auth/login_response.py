"""
TaxDesk Server - Login Response Model

Pydantic model for login and registration responses.
"""

from pydantic import BaseModel


class UserProfile(BaseModel):
    """Public view of a user"""
    user_id: str
    email: str
    full_name: str
    role: str


class LoginResponse(BaseModel):
    """Response model for login endpoint"""
    token: str  # Local credential (mock-token-<user_id>)
    user: UserProfile
