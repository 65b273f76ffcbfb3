"""
TaxDesk Server - Authentication Endpoints

This module contains authentication-related endpoints including login,
registration and the password reset flow.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

import config
from auth import AuthenticateUser, GetCurrentPrincipal, IssueLocalToken
from errors import TaxDeskError, ValidationError, Unauthenticated, NotFound, InternalError
from models.auth import (
    LoginRequest, LoginResponse, UserProfile, RegisterRequest,
    ChangePasswordRequest, ResetPasswordRequest, ResetPasswordConfirmRequest,
    VerifyOldPasswordRequest, ChangePasswordDirectRequest,
    ChangePasswordResponse, ResetTokenResponse, ResetTokenStatusResponse
)
from models.database import Role, User
from models.infrastructure import Principal
from reset_tokens import IssueResetToken, VerifyResetToken, RedeemResetToken, ValidateNewPassword


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def _Profile(user: User) -> UserProfile:
    return UserProfile(
        user_id=user.user_id,
        email=user.email,
        full_name=user.display_name,
        role=user.role.value
    )


# ==================== Login and Registration ====================

@router.post("/api/login", response_model=LoginResponse, tags=["Authentication"])
async def login(login_request: LoginRequest):
    """
    Authenticate with e-mail and password and return the local credential

    Args:
        login_request: E-mail and password

    Returns:
        LoginResponse: Token and user profile

    Raises:
        ValidationError: If e-mail or password is missing
        Unauthenticated: If the credentials are wrong
    """
    from database import db_manager

    if not login_request.email or not login_request.password:
        raise ValidationError("Email and password are required")

    user = AuthenticateUser(db_manager, login_request.email, login_request.password)

    if not user:
        logger.warning(f"Failed login attempt for '{login_request.email}'")
        raise Unauthenticated("Incorrect email or password")

    logger.info(f"User '{user.email}' logged in successfully (role: {user.role.value})")

    return LoginResponse(token=IssueLocalToken(user), user=_Profile(user))


@router.post("/api/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED,
             tags=["Authentication"])
async def register(register_request: RegisterRequest):
    """
    Create a standard user account and return its local credential

    Args:
        register_request: Full name, e-mail and password

    Returns:
        LoginResponse: Token and user profile

    Raises:
        ValidationError: If fields are missing, the password is too short or the e-mail is taken
    """
    from database import db_manager

    if not register_request.full_name or not register_request.email or not register_request.password:
        raise ValidationError("Full name, email and password are required")

    email = register_request.email.strip().lower()
    if "@" not in email:
        raise ValidationError("Invalid email address")

    session = db_manager.GetSession()
    try:
        ValidateNewPassword(db_manager, session, register_request.password)

        if db_manager.GetUserByEmail(session, email):
            raise ValidationError("Email already registered")

        user = User(
            user_id=str(uuid.uuid4()),
            email=email,
            full_name=register_request.full_name.strip(),
            password_hash=db_manager.HashPassword(register_request.password),
            role=Role.STANDARD,
            created_at=datetime.now(timezone.utc)
        )
        session.add(user)
        session.commit()

        logger.info(f"Registered new user '{email}'")

        return LoginResponse(token=IssueLocalToken(user), user=_Profile(user))

    except TaxDeskError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error registering user '{email}': {str(e)}")
        raise InternalError("Failed to register user")
    finally:
        session.close()


@router.get("/api/me", tags=["Authentication"])
async def current_user(principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Return the authenticated principal

    Args:
        principal: Authenticated caller

    Returns:
        dict: Principal fields
    """
    return {"user": principal.ToDict()}


@router.post("/api/change-password", response_model=ChangePasswordResponse, tags=["User"])
async def change_password(
    password_request: ChangePasswordRequest,
    principal: Principal = Depends(GetCurrentPrincipal)
):
    """
    Change the password of the authenticated user

    Args:
        password_request: Current and new passwords
        principal: Authenticated caller

    Returns:
        ChangePasswordResponse: Success status and message

    Raises:
        Unauthenticated: If the current password is wrong
        ValidationError: If the new password is invalid
    """
    from database import db_manager

    session = db_manager.GetSession()
    try:
        user = db_manager.GetUserById(session, principal.user_id)
        if not user:
            raise NotFound("User not found")

        if not password_request.current_password or \
                not db_manager.VerifyPassword(password_request.current_password, user.password_hash):
            logger.warning(f"Failed password change attempt for user '{user.email}' - incorrect current password")
            raise Unauthenticated("Current password is incorrect")

        ValidateNewPassword(db_manager, session, password_request.new_password)

        user.password_hash = db_manager.HashPassword(password_request.new_password)
        session.commit()

        logger.info(f"User '{user.email}' changed password successfully")

        return ChangePasswordResponse(success=True, message="Password changed successfully")

    except TaxDeskError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error changing password for user '{principal.email}': {str(e)}")
        raise InternalError("An error occurred while changing password")
    finally:
        session.close()


# ==================== Password Reset ====================

@router.post("/api/reset-password", response_model=ResetTokenResponse, tags=["Password Reset"])
async def request_password_reset(reset_request: ResetPasswordRequest):
    """
    Issue a password reset token
    The response does not reveal whether the e-mail exists. In development
    the token and reset URL are returned directly.

    Args:
        reset_request: E-mail address

    Returns:
        ResetTokenResponse: Message, plus the token in development
    """
    from database import db_manager

    try:
        record = IssueResetToken(db_manager, reset_request.email)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error issuing reset token: {str(e)}")
        raise InternalError("Failed to process password reset")

    if record is None:
        return ResetTokenResponse(message="If the email exists, reset instructions will be sent")

    if config.IsDevelopment():
        return ResetTokenResponse(
            message="Reset token generated (development mode)",
            reset_token=record.token,
            reset_url=f"{config.CORS_ORIGINS[0] if config.CORS_ORIGINS else ''}/reset-password?token={record.token}"
        )

    return ResetTokenResponse(message="If the email exists, reset instructions will be sent")


@router.get("/api/reset-password/{token}", response_model=ResetTokenStatusResponse, tags=["Password Reset"])
async def verify_reset_token(token: str):
    """
    Check a reset token

    Args:
        token: Reset token

    Returns:
        ResetTokenStatusResponse: valid flag and the owning e-mail

    Raises:
        ValidationError: If the token is unknown or expired
    """
    from database import db_manager

    record = VerifyResetToken(db_manager, token)
    return ResetTokenStatusResponse(valid=True, email=record.email)


@router.post("/api/reset-password/{token}", response_model=ChangePasswordResponse, tags=["Password Reset"])
async def confirm_password_reset(token: str, confirm_request: ResetPasswordConfirmRequest):
    """
    Set a new password with a reset token

    Args:
        token: Reset token
        confirm_request: New password

    Returns:
        ChangePasswordResponse: Success status and message

    Raises:
        ValidationError: If the password is invalid or the token unusable
    """
    from database import db_manager

    try:
        RedeemResetToken(db_manager, token, confirm_request.new_password)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error redeeming reset token: {str(e)}")
        raise InternalError("Failed to reset password")

    return ChangePasswordResponse(success=True, message="Password reset successfully")


@router.post("/api/verify-old-password", response_model=ChangePasswordResponse, tags=["Password Reset"])
async def verify_old_password(verify_request: VerifyOldPasswordRequest):
    """
    Check a previously used password before a direct change
    Only an exact match is accepted.

    Args:
        verify_request: E-mail and old password

    Returns:
        ChangePasswordResponse: Success status and message

    Raises:
        ValidationError: If fields are missing
        NotFound: If no user has the e-mail
        Unauthenticated: If the password does not match
    """
    from database import db_manager

    if not verify_request.email or not verify_request.old_password:
        raise ValidationError("Email and previous password are required")

    session = db_manager.GetSession()
    try:
        user = db_manager.GetUserByEmail(session, verify_request.email)
        if not user:
            raise NotFound("User not found")

        if not db_manager.VerifyPassword(verify_request.old_password, user.password_hash):
            logger.warning(f"Previous password check failed for '{user.email}'")
            raise Unauthenticated("The password does not match your current password")

        logger.info(f"Previous password verified for '{user.email}'")
        return ChangePasswordResponse(success=True, message="Previous password verified")

    finally:
        session.close()


@router.post("/api/change-password-direct", response_model=ChangePasswordResponse, tags=["Password Reset"])
async def change_password_direct(change_request: ChangePasswordDirectRequest):
    """
    Set a new password by e-mail (after verify-old-password)

    Args:
        change_request: E-mail and new password

    Returns:
        ChangePasswordResponse: Success status and message

    Raises:
        ValidationError: If fields are missing or the password is too short
        NotFound: If no user has the e-mail
    """
    from database import db_manager

    if not change_request.email or not change_request.new_password:
        raise ValidationError("Email and new password are required")

    session = db_manager.GetSession()
    try:
        ValidateNewPassword(db_manager, session, change_request.new_password)

        user = db_manager.GetUserByEmail(session, change_request.email)
        if not user:
            raise NotFound("User not found")

        user.password_hash = db_manager.HashPassword(change_request.new_password)
        session.commit()

        logger.info(f"Password changed directly for '{user.email}'")
        return ChangePasswordResponse(success=True, message="Password changed successfully")

    except TaxDeskError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error changing password for '{change_request.email}': {str(e)}")
        raise InternalError("Failed to change password")
    finally:
        session.close()
