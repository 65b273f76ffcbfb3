"""
Tests for credential resolution, login and registration
"""

import sys
from pathlib import Path

import pytest
from jose import jwt

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from auth import ResolvePrincipal
from errors import Unauthenticated
from models.database import Role
from models.infrastructure import LocalCredential, ExternalCredential, ParseCredential

from conftest import AuthHeaders, TEST_PASSWORD


def test_parse_credential_kinds():
    """Test that bearer tokens are classified by prefix"""
    assert ParseCredential("mock-token-abc") == LocalCredential(user_id="abc")
    assert ParseCredential("eyJhbGciOi.x.y") == ExternalCredential(token="eyJhbGciOi.x.y")
    assert LocalCredential(user_id="abc").Encode() == "mock-token-abc"


def test_local_credential_resolves_stored_user(db_manager, standard_user):
    """Test local credential resolution against the stored user"""
    principal = ResolvePrincipal(f"mock-token-{standard_user.user_id}", db_manager)

    assert principal.user_id == standard_user.user_id
    assert principal.email == "bruno@taxdesk.test"
    assert principal.role == Role.STANDARD
    assert not principal.is_admin


def test_local_credential_for_unknown_user_is_rejected(db_manager):
    """Test that a local credential for an unknown id is rejected"""
    with pytest.raises(Unauthenticated):
        ResolvePrincipal("mock-token-does-not-exist", db_manager)


def test_external_credential_without_key_is_rejected(db_manager):
    """Test external credentials when no verification key is configured"""
    with pytest.raises(Unauthenticated) as exc_info:
        ResolvePrincipal("some.external.token", db_manager)

    assert "mock-token-" in exc_info.value.message


def test_external_credential_signed_with_configured_key(db_manager, admin, monkeypatch):
    """Test external credentials signed with the configured key"""
    monkeypatch.setattr(config, "IDP_SECRET", "unit-test-secret")
    monkeypatch.setattr(config, "IDP_AUDIENCE", "")

    known = jwt.encode({"uid": admin.user_id, "email": admin.email}, "unit-test-secret", algorithm="HS256")
    principal = ResolvePrincipal(known, db_manager)
    assert principal.user_id == admin.user_id
    assert principal.is_admin

    # Identity unknown locally resolves to a standard principal
    unknown = jwt.encode({"sub": "idp-42", "email": "new@taxdesk.test"}, "unit-test-secret", algorithm="HS256")
    principal = ResolvePrincipal(unknown, db_manager)
    assert principal.user_id == "idp-42"
    assert principal.role == Role.STANDARD


def test_external_credential_with_wrong_signature(db_manager, monkeypatch):
    """Test that a token signed with another key is rejected"""
    monkeypatch.setattr(config, "IDP_SECRET", "unit-test-secret")

    forged = jwt.encode({"uid": "x"}, "another-secret", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        ResolvePrincipal(forged, db_manager)


def test_missing_token_returns_401(client):
    """Test the 401 response without an Authorization header"""
    response = client.get("/api/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Token not provided"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_me_returns_principal(client, standard_user):
    """Test the current principal endpoint"""
    response = client.get("/api/me", headers=AuthHeaders(standard_user))

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "bruno@taxdesk.test"
    assert response.json()["user"]["role"] == "standard"


def test_login_success_and_failure(client, standard_user):
    """Test login with correct, wrong and missing credentials"""
    response = client.post("/api/login", json={"email": "BRUNO@taxdesk.test", "password": TEST_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["token"] == f"mock-token-{standard_user.user_id}"
    assert body["user"]["role"] == "standard"

    response = client.post("/api/login", json={"email": "bruno@taxdesk.test", "password": "wrong"})
    assert response.status_code == 401

    response = client.post("/api/login", json={"email": "bruno@taxdesk.test"})
    assert response.status_code == 400


def test_register_creates_standard_user(client):
    """Test that registration creates a standard user with a usable token"""
    response = client.post("/api/register", json={
        "full_name": "Daniel",
        "email": "daniel@taxdesk.test",
        "password": "abcdef"
    })

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "standard"
    assert body["token"].startswith("mock-token-")

    me = client.get("/api/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.json()["user"]["email"] == "daniel@taxdesk.test"


def test_register_rejects_duplicate_email_and_short_password(client, standard_user):
    """Test registration validation"""
    response = client.post("/api/register", json={
        "full_name": "Bruno Again",
        "email": "bruno@taxdesk.test",
        "password": "abcdef"
    })
    assert response.status_code == 400
    assert response.json()["error"] == "Email already registered"

    response = client.post("/api/register", json={
        "full_name": "Eva",
        "email": "eva@taxdesk.test",
        "password": "abc"
    })
    assert response.status_code == 400


def test_change_password_requires_current_password(client, standard_user):
    """Test password change with wrong and correct current password"""
    headers = AuthHeaders(standard_user)

    response = client.post("/api/change-password", headers=headers,
                           json={"current_password": "nope", "new_password": "newpass1"})
    assert response.status_code == 401

    response = client.post("/api/change-password", headers=headers,
                           json={"current_password": TEST_PASSWORD, "new_password": "newpass1"})
    assert response.status_code == 200

    response = client.post("/api/login", json={"email": "bruno@taxdesk.test", "password": "newpass1"})
    assert response.status_code == 200


def test_verify_old_password_requires_exact_match(client, standard_user):
    """Test that only the exact previous password is accepted"""
    response = client.post("/api/verify-old-password",
                           json={"email": "bruno@taxdesk.test", "old_password": TEST_PASSWORD + "4"})
    assert response.status_code == 401

    response = client.post("/api/verify-old-password",
                           json={"email": "bruno@taxdesk.test", "old_password": TEST_PASSWORD})
    assert response.status_code == 200

    response = client.post("/api/verify-old-password",
                           json={"email": "nobody@taxdesk.test", "old_password": TEST_PASSWORD})
    assert response.status_code == 404
