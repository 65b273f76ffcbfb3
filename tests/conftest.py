"""
Shared fixtures for TaxDesk Server tests

Each test gets its own SQLite database and upload folder under tmp_path.
The FastAPI lifespan is not run; fixtures install the database manager
directly in the database module.
"""

import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
import database
from managers.database_manager import DatabaseManager
from models.database import Role, User
from file_storage import InitializeStorage


TEST_PASSWORD = "secret123"


@pytest.fixture
def db_manager(tmp_path, monkeypatch):
    """Isolated database and upload folder, installed as the shared db_manager"""
    uploads = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOADS_DIR", uploads)
    monkeypatch.setattr(config, "IDP_SECRET", "")
    monkeypatch.setattr(config, "ENV", "development")

    manager = DatabaseManager(str(tmp_path / "taxdesk-test.db"))
    manager.InitializeDatabase("bootstrap@taxdesk.test")
    InitializeStorage(uploads)

    monkeypatch.setattr(database, "db_manager", manager)
    yield manager
    manager.engine.dispose()


@pytest.fixture
def make_user(db_manager):
    """Factory creating users with TEST_PASSWORD"""
    def _MakeUser(email: str, role: Role = Role.STANDARD, full_name: str = "") -> User:
        session = db_manager.GetSession()
        try:
            user = User(
                user_id=str(uuid.uuid4()),
                email=email,
                full_name=full_name or email.split("@")[0].title(),
                password_hash=db_manager.HashPassword(TEST_PASSWORD),
                role=role,
                created_at=datetime.now(timezone.utc)
            )
            session.add(user)
            session.commit()
            return user
        finally:
            session.close()

    return _MakeUser


@pytest.fixture
def admin(make_user):
    return make_user("ana@taxdesk.test", Role.ADMIN, "Ana Admin")


@pytest.fixture
def standard_user(make_user):
    return make_user("bruno@taxdesk.test", Role.STANDARD, "Bruno")


@pytest.fixture
def other_user(make_user):
    return make_user("carla@taxdesk.test", Role.STANDARD, "Carla")


@pytest.fixture
def client(db_manager):
    from fastapi.testclient import TestClient
    from server import app

    return TestClient(app)


def AuthHeaders(user: User) -> dict:
    """Bearer header carrying the local credential of a user"""
    return {"Authorization": f"Bearer mock-token-{user.user_id}"}
