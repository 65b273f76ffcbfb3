"""
TaxDesk Server - PasswordResetToken Database Model

Single-use password reset tokens. Rows are deleted when redeemed or
when found expired.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Index

from models.database.base import Base


class PasswordResetToken(Base):
    """
    Password_reset_tokens table
    """
    __tablename__ = "password_reset_tokens"

    token = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    email = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    expires_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('idx_reset_tokens_expires', 'expires_at'),
    )
