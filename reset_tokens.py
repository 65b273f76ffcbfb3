"""
TaxDesk Server - Password Reset Tokens

Single-use password reset tokens stored in the password_reset_tokens table,
so they survive restarts. Redemption claims the token with a conditional
DELETE in the same transaction as the password update; when two requests
redeem the same token only the first DELETE removes a row and the other
request is rejected.
"""

import logging
import uuid
from datetime import datetime, timezone, timedelta
from typing import Optional

from errors import ValidationError, NotFound
from models.database import PasswordResetToken
from managers.database_manager import DatabaseManager

logger = logging.getLogger(__name__)


def _UtcNow() -> datetime:
    # Stored as naive UTC; SQLite drops tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ValidateNewPassword(db_manager: DatabaseManager, session, new_password: Optional[str]) -> None:
    """
    Check a new password against the minimum length setting

    Args:
        db_manager: DatabaseManager instance
        session: SQLAlchemy session
        new_password: Candidate password

    Raises:
        ValidationError: If the password is missing or too short
    """
    if not new_password:
        raise ValidationError("New password is required")

    min_length = db_manager.GetSettingInt(session, "min_password_length")
    if len(new_password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")


def IssueResetToken(db_manager: DatabaseManager, email: str, now: Optional[datetime] = None) -> Optional[PasswordResetToken]:
    """
    Create a reset token for the user owning an e-mail

    Args:
        db_manager: DatabaseManager instance
        email: E-mail address
        now: Issue time (naive UTC), defaults to the current time

    Returns:
        PasswordResetToken: The stored token, or None when no user has that e-mail

    Raises:
        ValidationError: If email is empty
    """
    if not email:
        raise ValidationError("Email is required")

    now = now or _UtcNow()
    session = db_manager.GetSession()
    try:
        user = db_manager.GetUserByEmail(session, email)
        if not user:
            logger.info(f"Password reset requested for unknown email '{email}'")
            return None

        lifetime_minutes = db_manager.GetSettingInt(session, "reset_token_minutes")
        record = PasswordResetToken(
            token=str(uuid.uuid4()),
            user_id=user.user_id,
            email=user.email,
            created_at=now,
            expires_at=now + timedelta(minutes=lifetime_minutes)
        )
        session.add(record)
        session.commit()

        logger.info(f"Issued password reset token for user '{user.email}' (expires in {lifetime_minutes} minutes)")
        return record

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def VerifyResetToken(db_manager: DatabaseManager, token: str, now: Optional[datetime] = None) -> PasswordResetToken:
    """
    Check that a token exists and has not expired
    Expired tokens are deleted.

    Args:
        db_manager: DatabaseManager instance
        token: Reset token
        now: Check time (naive UTC), defaults to the current time

    Returns:
        PasswordResetToken: The valid token

    Raises:
        ValidationError: If the token is unknown or expired
    """
    now = now or _UtcNow()
    session = db_manager.GetSession()
    try:
        record = session.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
        if not record:
            raise ValidationError("Invalid or expired token")

        if now >= record.expires_at:
            session.delete(record)
            session.commit()
            logger.info(f"Password reset token for '{record.email}' expired")
            raise ValidationError("Token expired")

        return record

    finally:
        session.close()


def RedeemResetToken(db_manager: DatabaseManager, token: str, new_password: Optional[str],
                     now: Optional[datetime] = None) -> str:
    """
    Set a new password using a reset token, consuming the token

    Args:
        db_manager: DatabaseManager instance
        token: Reset token
        new_password: New plain text password
        now: Redemption time (naive UTC), defaults to the current time

    Returns:
        str: E-mail of the user whose password changed

    Raises:
        ValidationError: If the password is invalid or the token is unknown, expired or already used
        NotFound: If the token's user no longer exists
    """
    now = now or _UtcNow()
    session = db_manager.GetSession()
    try:
        ValidateNewPassword(db_manager, session, new_password)

        record = session.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
        if not record:
            raise ValidationError("Invalid or expired token")

        if now >= record.expires_at:
            session.delete(record)
            session.commit()
            raise ValidationError("Token expired")

        user_id = record.user_id

        # Atomic claim: only one redemption deletes the row
        claimed = session.query(PasswordResetToken).filter(
            PasswordResetToken.token == token,
            PasswordResetToken.expires_at > now
        ).delete(synchronize_session=False)

        if claimed != 1:
            session.rollback()
            raise ValidationError("Invalid or expired token")

        user = db_manager.GetUserById(session, user_id)
        if not user:
            session.rollback()
            raise NotFound("User not found")

        user.password_hash = db_manager.HashPassword(new_password)
        session.commit()

        logger.info(f"Password reset completed for user '{user.email}'")
        return user.email

    except (ValidationError, NotFound):
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def CleanupExpiredTokens(db_manager: DatabaseManager, now: Optional[datetime] = None) -> int:
    """
    Remove all expired tokens

    Args:
        db_manager: DatabaseManager instance
        now: Reference time (naive UTC), defaults to the current time

    Returns:
        Number of tokens removed
    """
    now = now or _UtcNow()
    session = db_manager.GetSession()
    try:
        removed = session.query(PasswordResetToken).filter(
            PasswordResetToken.expires_at <= now
        ).delete(synchronize_session=False)
        session.commit()

        if removed:
            logger.info(f"Cleaned up {removed} expired password reset tokens")

        return removed

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
