"""
Tests for user management endpoints
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import AuthHeaders


def _Emails(client, user):
    return sorted(u["email"] for u in client.get("/api/users", headers=AuthHeaders(user)).json())


def test_any_user_can_list_users(client, admin, standard_user):
    """Test the roster for a standard user"""
    response = client.get("/api/users", headers=AuthHeaders(standard_user))

    assert response.status_code == 200
    assert _Emails(client, standard_user) == ["ana@taxdesk.test", "bootstrap@taxdesk.test", "bruno@taxdesk.test"]
    assert {"id", "name", "email", "role"} <= set(response.json()[0])


def test_admin_cannot_remove_self(client, admin, standard_user):
    """Test that an admin cannot remove their own account"""
    before = _Emails(client, admin)

    response = client.delete(f"/api/users/{admin.user_id}", headers=AuthHeaders(admin))

    assert response.status_code == 400
    assert response.json() == {"error": "You cannot remove your own account"}
    assert _Emails(client, admin) == before


def test_standard_user_cannot_manage_users(client, admin, standard_user):
    """Test that non-admins cannot edit or remove users"""
    response = client.delete(f"/api/users/{admin.user_id}", headers=AuthHeaders(standard_user))
    assert response.status_code == 403

    response = client.put(f"/api/users/{standard_user.user_id}", headers=AuthHeaders(standard_user),
                          json={"role": "admin"})
    assert response.status_code == 403


def test_admin_edits_user(client, admin, standard_user):
    """Test user edit and assignee name sync"""
    task = client.post("/api/tasks", headers=AuthHeaders(admin), json={
        "title": "PGDAS-D",
        "assignee_id": standard_user.user_id,
        "due_date": "2025-06-20"
    }).json()

    response = client.put(f"/api/users/{standard_user.user_id}", headers=AuthHeaders(admin),
                          json={"full_name": "Bruno Souza", "role": "admin"})

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert response.json()["name"] == "Bruno Souza"

    refreshed = client.get(f"/api/tasks/{task['id']}", headers=AuthHeaders(admin)).json()
    assert refreshed["assignee"] == "Bruno Souza"

    response = client.put(f"/api/users/{standard_user.user_id}", headers=AuthHeaders(admin),
                          json={"role": "owner"})
    assert response.status_code == 400


def test_removed_user_tasks_keep_assignee_name(client, admin, standard_user):
    """Test user removal keeps task assignee names"""
    task = client.post("/api/tasks", headers=AuthHeaders(admin), json={
        "title": "DIRF",
        "assignee_id": standard_user.user_id,
        "due_date": "2025-02-28"
    }).json()

    response = client.delete(f"/api/users/{standard_user.user_id}", headers=AuthHeaders(admin))
    assert response.status_code == 200

    orphan = client.get(f"/api/tasks/{task['id']}", headers=AuthHeaders(admin)).json()
    assert orphan["assignee"] == "Bruno"
    assert orphan["assignee_id"] is None

    response = client.get("/api/me", headers=AuthHeaders(standard_user))
    assert response.status_code == 401
