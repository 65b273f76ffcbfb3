"""
TaxDesk Server - Task Endpoints

CRUD and status changes for tasks. Authorization and activity logging
happen in task_service.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from auth import GetCurrentPrincipal
from errors import TaxDeskError, InternalError
from models.api import TaskRequest, TaskStatusRequest, TaskResponse
from models.infrastructure import Principal
import task_service


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.get("/api/tasks", response_model=List[TaskResponse], tags=["Tasks"])
async def list_tasks(principal: Principal = Depends(GetCurrentPrincipal)):
    """
    List all tasks with their attachments

    Args:
        principal: Authenticated caller

    Returns:
        List[TaskResponse]: Tasks ordered by due date
    """
    from database import db_manager

    try:
        tasks = task_service.ListTasks(db_manager)
        logger.info(f"User '{principal.email}' listed {len(tasks)} tasks")
        return tasks
    except Exception as e:
        logger.error(f"Error listing tasks: {str(e)}")
        raise InternalError("Failed to list tasks")


@router.get("/api/tasks/{task_id}", response_model=TaskResponse, tags=["Tasks"])
async def get_task(task_id: str, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Get one task
    """
    from database import db_manager

    try:
        return task_service.GetTask(db_manager, task_id)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error reading task {task_id}: {str(e)}")
        raise InternalError("Failed to read task")


@router.post("/api/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED, tags=["Tasks"])
async def create_task(request_data: TaskRequest, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Create a task (admin only)

    Args:
        request_data: Title, assignee, due date and optional fields
        principal: Authenticated caller

    Returns:
        TaskResponse: The new task with status 'pending'
    """
    from database import db_manager

    try:
        return task_service.CreateTask(db_manager, principal, request_data)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error creating task: {str(e)}")
        raise InternalError("Failed to create task")


@router.put("/api/tasks/{task_id}", response_model=TaskResponse, tags=["Tasks"])
async def update_task(task_id: str, request_data: TaskRequest, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Replace a task's fields (admin only)
    """
    from database import db_manager

    try:
        return task_service.UpdateTask(db_manager, principal, task_id, request_data)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error updating task {task_id}: {str(e)}")
        raise InternalError("Failed to update task")


@router.patch("/api/tasks/{task_id}/status", response_model=TaskResponse, tags=["Tasks"])
async def update_task_status(
    task_id: str,
    request_data: TaskStatusRequest,
    principal: Principal = Depends(GetCurrentPrincipal)
):
    """
    Change a task's status (admin or assignee)
    """
    from database import db_manager

    try:
        return task_service.UpdateTaskStatus(db_manager, principal, task_id, request_data.status)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error updating status of task {task_id}: {str(e)}")
        raise InternalError("Failed to update task status")


@router.delete("/api/tasks/{task_id}", tags=["Tasks"])
async def delete_task(task_id: str, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Delete a task and its attachments (admin only)
    """
    from database import db_manager

    try:
        task_service.DeleteTask(db_manager, principal, task_id)
        return {"success": True, "message": "Task deleted successfully"}
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error deleting task {task_id}: {str(e)}")
        raise InternalError("Failed to delete task")
