"""
TaxDesk Server - Auth Models Package

This package contains Pydantic models for authentication endpoints.
"""

from models.auth.login_request import LoginRequest
from models.auth.login_response import LoginResponse, UserProfile
from models.auth.register_request import RegisterRequest
from models.auth.change_password_request import (
    ChangePasswordRequest,
    ResetPasswordRequest,
    ResetPasswordConfirmRequest,
    VerifyOldPasswordRequest,
    ChangePasswordDirectRequest
)
from models.auth.change_password_response import (
    ChangePasswordResponse,
    ResetTokenResponse,
    ResetTokenStatusResponse
)

__all__ = [
    'LoginRequest',
    'LoginResponse',
    'UserProfile',
    'RegisterRequest',
    'ChangePasswordRequest',
    'ResetPasswordRequest',
    'ResetPasswordConfirmRequest',
    'VerifyOldPasswordRequest',
    'ChangePasswordDirectRequest',
    'ChangePasswordResponse',
    'ResetTokenResponse',
    'ResetTokenStatusResponse',
]
