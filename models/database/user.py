"""
TaxDesk Server - User Database Model

User model for authentication and authorization.
Stores credentials, display name and role.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.orm import relationship

from models.database.base import Base
from models.database.role import Role


class User(Base):
    """
    Users table - stores user credentials and role
    """
    __tablename__ = "users"

    user_id = Column(String, primary_key=True)  # uuid4
    email = Column(String, unique=True, nullable=False)  # stored lower-case
    full_name = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    role = Column(
        Enum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.STANDARD
    )
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Tasks assigned to this user
    tasks = relationship("Task", back_populates="assignee")

    @property
    def display_name(self) -> str:
        """Full name, or the local part of the e-mail when no name was given"""
        return self.full_name or self.email.split("@")[0]
