"""
Tests for the authorization policy
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from errors import Forbidden, ValidationError
from models.database import Role
from models.infrastructure import Principal
from policy import Action, Authorize, Decide, ADMIN_ONLY_ACTIONS


ADMIN = Principal(user_id="a1", email="admin@taxdesk.test", full_name="Admin", role=Role.ADMIN)
USER = Principal(user_id="u1", email="user@taxdesk.test", full_name="User", role=Role.STANDARD)


@pytest.mark.parametrize("action", list(ADMIN_ONLY_ACTIONS))
def test_admin_only_actions(action):
    """Test admin-only actions for both roles"""
    assert Decide(ADMIN, action).allowed
    decision = Decide(USER, action)
    assert not decision.allowed
    assert decision.reason


def test_status_change_allowed_for_assignee_only():
    """Test status change ownership rule"""
    assert Decide(USER, Action.UPDATE_TASK_STATUS, owner_id="u1").allowed
    assert not Decide(USER, Action.UPDATE_TASK_STATUS, owner_id="someone-else").allowed
    assert not Decide(USER, Action.UPDATE_TASK_STATUS, owner_id=None).allowed
    assert Decide(ADMIN, Action.UPDATE_TASK_STATUS, owner_id="someone-else").allowed


def test_authorize_raises_forbidden():
    """Test that denied actions raise Forbidden"""
    with pytest.raises(Forbidden):
        Authorize(USER, Action.CREATE_TASK)

    Authorize(ADMIN, Action.CREATE_TASK)


def test_admin_cannot_delete_self():
    """Test the self-deletion rule"""
    with pytest.raises(ValidationError):
        Authorize(ADMIN, Action.DELETE_USER, owner_id="a1")

    Authorize(ADMIN, Action.DELETE_USER, owner_id="u1")
