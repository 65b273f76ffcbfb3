"""
TaxDesk Server - Database Manager

This module manages database connection, initialization, and operations.
"""

import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import bcrypt

from models.database import Base, Role, User, Setting

logger = logging.getLogger(__name__)


# Runtime-tunable settings and their defaults
DEFAULT_SETTINGS = {
    "reset_token_minutes": "30",
    "max_upload_bytes": str(10 * 1024 * 1024),  # 10 MiB
    "min_password_length": "6",
}


class DatabaseManager:
    """
    Manages database connection, initialization, and operations
    """

    def __init__(self, db_path: str = "database/taxdesk.db"):
        """
        Initialize database manager

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        # Ensure database directory exists
        db_dir = Path(db_path).parent
        if db_dir and str(db_dir) != '.':
            db_dir.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{db_path}",
            echo=False,
            connect_args={"check_same_thread": False}
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def InitializeDatabase(self, admin_email: str = "admin@taxdesk.local") -> Optional[str]:
        """
        Initialize the database with all tables and default data
        Creates tables if they don't exist, populates default settings,
        and creates a default admin user on first run.

        Args:
            admin_email: E-mail of the admin account created on first run

        Returns:
            str: Generated admin password if admin user was created, None otherwise
        """
        Base.metadata.create_all(bind=self.engine)

        session = self.SessionLocal()
        admin_password = None

        try:
            # First run: no users at all
            if session.query(User).count() == 0:
                admin_password = self.GenerateRandomPassword()
                admin_user = User(
                    user_id=str(uuid.uuid4()),
                    email=admin_email.strip().lower(),
                    full_name="Administrator",
                    password_hash=self.HashPassword(admin_password),
                    role=Role.ADMIN,
                    created_at=datetime.now(timezone.utc)
                )
                session.add(admin_user)
                logger.info(f"Created default admin user '{admin_email}'")

            self.PopulateDefaultSettings(session)

            session.commit()

        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()

        return admin_password

    def PopulateDefaultSettings(self, session):
        """
        Populate default settings
        Only adds settings that don't already exist

        Args:
            session: SQLAlchemy session
        """
        for key, value in DEFAULT_SETTINGS.items():
            existing = session.query(Setting).filter(Setting.key == key).first()
            if not existing:
                session.add(Setting(key=key, value=value))
                logger.info(f"Added default setting: {key} = {value}")

    def GetSettingInt(self, session, key: str) -> int:
        """
        Read an integer setting, falling back to its default

        Args:
            session: SQLAlchemy session
            key: Setting key (must be one of DEFAULT_SETTINGS)

        Returns:
            int: Setting value
        """
        setting = session.query(Setting).filter(Setting.key == key).first()
        raw = setting.value if setting else DEFAULT_SETTINGS[key]
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Setting '{key}' has non-integer value '{raw}', using default")
            return int(DEFAULT_SETTINGS[key])

    @staticmethod
    def GenerateRandomPassword(length: int = 12) -> str:
        """
        Generate a secure random password

        Args:
            length: Password length (default 12)

        Returns:
            str: Generated password
        """
        alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    @staticmethod
    def HashPassword(password: str) -> str:
        """
        Hash a password using bcrypt
        Truncates to 72 bytes to comply with bcrypt's maximum password length

        Args:
            password: Plain text password

        Returns:
            str: Hashed password (as string)
        """
        password_bytes = password.encode('utf-8')[:72]
        hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
        return hashed.decode('utf-8')

    @staticmethod
    def VerifyPassword(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a hash
        Truncates to 72 bytes to match how it was hashed

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored password hash (as string)

        Returns:
            bool: True if password matches, False otherwise
        """
        password_bytes = plain_password.encode('utf-8')[:72]
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))

    def GetSession(self):
        """
        Get a new database session

        Returns:
            Session: SQLAlchemy session
        """
        return self.SessionLocal()

    # ==================== User Lookup Helpers ====================

    def GetUserById(self, session, user_id: str) -> Optional[User]:
        """
        Get a user by id

        Args:
            session: SQLAlchemy session
            user_id: User id

        Returns:
            User or None
        """
        if not user_id:
            return None
        return session.query(User).filter(User.user_id == user_id).first()

    def GetUserByEmail(self, session, email: str) -> Optional[User]:
        """
        Get a user by e-mail (case-insensitive)

        Args:
            session: SQLAlchemy session
            email: E-mail address

        Returns:
            User or None
        """
        if not email:
            return None
        return session.query(User).filter(User.email == email.strip().lower()).first()

    def GetFirstAdmin(self, session) -> Optional[User]:
        """
        Get the oldest admin account

        Args:
            session: SQLAlchemy session

        Returns:
            User or None if there is no admin
        """
        return session.query(User).filter(User.role == Role.ADMIN).order_by(User.created_at.asc()).first()
