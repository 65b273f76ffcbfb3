"""
TaxDesk Server - Authorization Policy

Decides whether a principal may perform an action. Decide() is a pure
function of (principal, action, owner); Authorize() raises on denial.

Rules:
- Task create/edit/delete, user edit/delete and the obligation calendar
  are admin-only
- A task status may be changed by an admin or by the task's assignee
- An attachment may be deleted by its uploader or by an admin
- Nobody deletes their own account
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import Forbidden, ValidationError
from models.infrastructure import Principal


class Action(str, Enum):
    """Protected operations"""
    CREATE_TASK = "create_task"
    EDIT_TASK = "edit_task"
    DELETE_TASK = "delete_task"
    UPDATE_TASK_STATUS = "update_task_status"
    EDIT_USER = "edit_user"
    DELETE_USER = "delete_user"
    DELETE_FILE = "delete_file"
    VIEW_CALENDAR = "view_calendar"
    GENERATE_CALENDAR = "generate_calendar"
    VIEW_ALL_LOGS = "view_all_logs"


# Actions that only require the admin role
ADMIN_ONLY_ACTIONS = {
    Action.CREATE_TASK: "Only administrators can create tasks",
    Action.EDIT_TASK: "Only administrators can edit tasks",
    Action.DELETE_TASK: "Only administrators can delete tasks",
    Action.EDIT_USER: "Only administrators can edit users",
    Action.DELETE_USER: "Only administrators can remove users",
    Action.VIEW_CALENDAR: "Only administrators can access the obligation calendar",
    Action.GENERATE_CALENDAR: "Only administrators can generate obligation tasks",
    Action.VIEW_ALL_LOGS: "Only administrators can view all activity",
}

# Actions allowed to admins or to the owner of the target resource
OWNER_OR_ADMIN_ACTIONS = {
    Action.UPDATE_TASK_STATUS: "You can only update the status of your own tasks",
    Action.DELETE_FILE: "Only the uploader or an administrator can delete this file",
}


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check"""
    allowed: bool
    reason: str = ""


def Decide(principal: Principal, action: Action, owner_id: Optional[str] = None) -> Decision:
    """
    Evaluate the policy

    Args:
        principal: Authenticated caller
        action: Requested action
        owner_id: Owner of the target (assignee for tasks, uploader for files,
                  target user id for DELETE_USER)

    Returns:
        Decision: allowed flag and a human-readable reason when denied
    """
    if action in ADMIN_ONLY_ACTIONS:
        if principal.is_admin:
            return Decision(allowed=True)
        return Decision(allowed=False, reason=ADMIN_ONLY_ACTIONS[action])

    if action in OWNER_OR_ADMIN_ACTIONS:
        if principal.is_admin or (owner_id is not None and owner_id == principal.user_id):
            return Decision(allowed=True)
        return Decision(allowed=False, reason=OWNER_OR_ADMIN_ACTIONS[action])

    return Decision(allowed=False, reason=f"Unknown action: {action}")


def Authorize(principal: Principal, action: Action, owner_id: Optional[str] = None) -> None:
    """
    Enforce the policy

    Args:
        principal: Authenticated caller
        action: Requested action
        owner_id: Owner of the target resource

    Raises:
        Forbidden: If the policy denies the action
        ValidationError: If a user tries to delete their own account
    """
    decision = Decide(principal, action, owner_id)
    if not decision.allowed:
        raise Forbidden(decision.reason)

    if action == Action.DELETE_USER and owner_id == principal.user_id:
        raise ValidationError("You cannot remove your own account")
