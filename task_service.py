"""
TaxDesk Server - Task Lifecycle

Create, list, update, change status and delete tasks. Every mutation
records exactly one activity entry in the same transaction.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy.orm import selectinload

from activity_log import RecordActivity
from errors import NotFound, ValidationError
from file_storage import RemovePhysicalFile, SerializeAttachment
from models.api import TaskRequest
from models.database import Task, User, TASK_STATUSES, DEFAULT_TASK_STATUS, DEFAULT_FREQUENCY
from models.infrastructure import Principal
from managers.database_manager import DatabaseManager
from policy import Action, Authorize

logger = logging.getLogger(__name__)


# ==================== Helpers ====================

def SerializeTask(task: Task) -> dict:
    """Convert a task and its attachments to JSON form"""
    return {
        "id": task.task_id,
        "title": task.title,
        "assignee": task.assignee_name,
        "assignee_id": task.assignee_id,
        "due_date": task.due_date,
        "notes": task.notes or "",
        "status": task.status,
        "recurring": bool(task.recurring),
        "frequency": task.frequency,
        "created_at": task.created_at,
        "comprovantes": [SerializeAttachment(f) for f in task.attachments]
    }


def _RequireTaskFields(request: TaskRequest) -> str:
    """
    Check required fields of a create/update body

    Returns:
        str: Trimmed title
    """
    title = (request.title or "").strip()
    if not title or not request.assignee_id or not request.due_date:
        raise ValidationError("Title, assignee and due date are required")
    return title


def _ResolveAssignee(db_manager: DatabaseManager, session, assignee_id: str) -> User:
    assignee = db_manager.GetUserById(session, assignee_id)
    if not assignee:
        raise ValidationError("Assignee not found")
    return assignee


def _GetTaskOr404(session, task_id: str) -> Task:
    task = session.query(Task).filter(Task.task_id == task_id).first()
    if not task:
        raise NotFound("Task not found")
    return task


def NewTask(
    assignee: User,
    title: str,
    due_date: date,
    notes: str = "",
    recurring: bool = False,
    frequency: Optional[str] = None
) -> Task:
    """
    Build a pending task for an assignee (caller adds it to a session)

    Args:
        assignee: Responsible user
        title: Task title
        due_date: Due date
        notes: Free text
        recurring: Whether the obligation repeats
        frequency: Recurrence frequency

    Returns:
        Task: New unsaved task
    """
    return Task(
        task_id=str(uuid.uuid4()),
        title=title,
        assignee_id=assignee.user_id,
        assignee_name=assignee.display_name,
        due_date=due_date,
        notes=notes or "",
        status=DEFAULT_TASK_STATUS,
        recurring=bool(recurring),
        frequency=frequency or DEFAULT_FREQUENCY,
        created_at=datetime.now(timezone.utc)
    )


# ==================== Operations ====================

def CreateTask(db_manager: DatabaseManager, principal: Principal, request: TaskRequest) -> dict:
    """
    Create a task

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (admin)
        request: Task fields

    Returns:
        dict: Serialized task

    Raises:
        Forbidden: If the caller is not an admin
        ValidationError: If required fields are missing or the assignee is unknown
    """
    Authorize(principal, Action.CREATE_TASK)
    title = _RequireTaskFields(request)

    session = db_manager.GetSession()
    try:
        assignee = _ResolveAssignee(db_manager, session, request.assignee_id)

        task = NewTask(assignee, title, request.due_date, request.notes, request.recurring, request.frequency)
        session.add(task)
        RecordActivity(session, principal, "create_task", task_id=task.task_id, task_title=task.title)
        session.commit()

        logger.info(f"User '{principal.email}' created task {task.task_id} '{task.title}' for '{assignee.email}'")
        return SerializeTask(task)

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ListTasks(db_manager: DatabaseManager) -> List[dict]:
    """
    List all tasks with their attachments, by due date

    Args:
        db_manager: DatabaseManager instance

    Returns:
        List[dict]: Serialized tasks
    """
    session = db_manager.GetSession()
    try:
        tasks = session.query(Task).options(
            selectinload(Task.attachments)
        ).order_by(Task.due_date.asc(), Task.created_at.asc()).all()
        return [SerializeTask(task) for task in tasks]
    finally:
        session.close()


def GetTask(db_manager: DatabaseManager, task_id: str) -> dict:
    """
    Get one task

    Raises:
        NotFound: If the task does not exist
    """
    session = db_manager.GetSession()
    try:
        return SerializeTask(_GetTaskOr404(session, task_id))
    finally:
        session.close()


def UpdateTask(db_manager: DatabaseManager, principal: Principal, task_id: str, request: TaskRequest) -> dict:
    """
    Replace the mutable fields of a task

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (admin)
        task_id: Task id
        request: New field values

    Returns:
        dict: Serialized task

    Raises:
        Forbidden: If the caller is not an admin
        ValidationError: If required fields are missing or the assignee is unknown
        NotFound: If the task does not exist
    """
    Authorize(principal, Action.EDIT_TASK)
    title = _RequireTaskFields(request)

    session = db_manager.GetSession()
    try:
        task = _GetTaskOr404(session, task_id)
        assignee = _ResolveAssignee(db_manager, session, request.assignee_id)

        task.title = title
        task.assignee_id = assignee.user_id
        task.assignee_name = assignee.display_name
        task.due_date = request.due_date
        task.notes = request.notes or ""
        task.recurring = bool(request.recurring)
        task.frequency = request.frequency or DEFAULT_FREQUENCY

        RecordActivity(session, principal, "edit_task", task_id=task.task_id, task_title=task.title)
        session.commit()

        logger.info(f"User '{principal.email}' edited task {task_id}")
        return SerializeTask(task)

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def UpdateTaskStatus(db_manager: DatabaseManager, principal: Principal, task_id: str, new_status: Optional[str]) -> dict:
    """
    Change the status of a task

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (admin or assignee)
        task_id: Task id
        new_status: One of TASK_STATUSES

    Returns:
        dict: Serialized task

    Raises:
        ValidationError: If the status is missing or unknown
        NotFound: If the task does not exist
        Forbidden: If the caller is neither admin nor assignee
    """
    if not new_status:
        raise ValidationError("Status is required")
    if new_status not in TASK_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(TASK_STATUSES)}")

    session = db_manager.GetSession()
    try:
        task = _GetTaskOr404(session, task_id)
        Authorize(principal, Action.UPDATE_TASK_STATUS, owner_id=task.assignee_id)

        task.status = new_status
        RecordActivity(session, principal, "update_task_status", task_id=task.task_id, task_title=task.title)
        session.commit()

        logger.info(f"User '{principal.email}' set status of task {task_id} to '{new_status}'")
        return SerializeTask(task)

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def DeleteTask(db_manager: DatabaseManager, principal: Principal, task_id: str) -> None:
    """
    Delete a task together with its attachments

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (admin)
        task_id: Task id

    Raises:
        Forbidden: If the caller is not an admin
        NotFound: If the task does not exist
    """
    Authorize(principal, Action.DELETE_TASK)

    session = db_manager.GetSession()
    try:
        task = _GetTaskOr404(session, task_id)
        title = task.title

        for attachment in list(task.attachments):
            RemovePhysicalFile(Path(attachment.file_path))
            session.delete(attachment)

        session.delete(task)
        RecordActivity(session, principal, "delete_task", task_id=task_id, task_title=title)
        session.commit()

        logger.info(f"User '{principal.email}' deleted task {task_id} '{title}'")

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
