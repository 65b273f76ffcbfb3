"""
TaxDesk Server - Activity Log Endpoints
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from activity_log import ListActivity, RecordActivity, SerializeActivity
from auth import GetCurrentPrincipal
from errors import ValidationError, InternalError
from models.api import LogCreateRequest, LogEntryResponse
from models.infrastructure import Principal
from policy import Action, Decide


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.get("/api/logs", response_model=List[LogEntryResponse], tags=["Activity"])
async def list_logs(principal: Principal = Depends(GetCurrentPrincipal)):
    """
    List activity, newest first
    Admins see every entry, other users only their own.

    Args:
        principal: Authenticated caller

    Returns:
        List[LogEntryResponse]: Entries
    """
    from database import db_manager

    see_all = Decide(principal, Action.VIEW_ALL_LOGS).allowed

    try:
        entries = ListActivity(db_manager, user_id=None if see_all else principal.user_id)
        return [SerializeActivity(entry) for entry in entries]
    except Exception as e:
        logger.error(f"Error listing activity: {str(e)}")
        raise InternalError("Failed to list activity")


@router.post("/api/logs", response_model=LogEntryResponse, status_code=status.HTTP_201_CREATED, tags=["Activity"])
async def create_log(request_data: LogCreateRequest, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Record a client-reported activity

    Args:
        request_data: action, task_id and task_title
        principal: Authenticated caller

    Returns:
        LogEntryResponse: Stored entry

    Raises:
        ValidationError: If a field is missing
    """
    from database import db_manager

    if not request_data.action or not request_data.task_id or not request_data.task_title:
        raise ValidationError("action, task_id and task_title are required")

    session = db_manager.GetSession()
    try:
        entry = RecordActivity(session, principal, request_data.action,
                               task_id=request_data.task_id, task_title=request_data.task_title)
        session.commit()
        return SerializeActivity(entry)

    except Exception as e:
        session.rollback()
        logger.error(f"Error recording activity: {str(e)}")
        raise InternalError("Failed to record activity")
    finally:
        session.close()
