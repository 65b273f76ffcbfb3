"""
TaxDesk Server - User Management Endpoints
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from auth import GetCurrentPrincipal
from errors import TaxDeskError, ValidationError, NotFound, InternalError
from models.api import UserSummary, UpdateUserRequest
from models.database import Role, User, Task
from models.infrastructure import Principal
from policy import Action, Authorize

# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def _Summary(user: User) -> UserSummary:
    return UserSummary(id=user.user_id, name=user.display_name, email=user.email, role=user.role.value)


@router.get("/api/users", response_model=List[UserSummary], tags=["Users"])
async def list_users(principal: Principal = Depends(GetCurrentPrincipal)):
    """
    List all users (used to pick task assignees)

    Args:
        principal: Authenticated caller

    Returns:
        List[UserSummary]: Users ordered by creation time
    """
    from database import db_manager
    db_session = db_manager.GetSession()

    try:
        users = db_session.query(User).order_by(User.created_at.asc()).all()
        return [_Summary(user) for user in users]

    except Exception as e:
        logger.error(f"Error listing users: {str(e)}")
        raise InternalError("Failed to list users")
    finally:
        db_session.close()


@router.put("/api/users/{user_id}", response_model=UserSummary, tags=["Users"])
async def update_user(
    user_id: str,
    request_data: UpdateUserRequest,
    principal: Principal = Depends(GetCurrentPrincipal)
):
    """
    Edit a user's name and/or role

    Args:
        user_id: User to edit
        request_data: New name and/or role
        principal: Authenticated caller (admin)

    Returns:
        UserSummary: Updated user
    """
    from database import db_manager

    Authorize(principal, Action.EDIT_USER)

    db_session = db_manager.GetSession()
    try:
        user = db_manager.GetUserById(db_session, user_id)
        if not user:
            raise NotFound("User not found")

        if request_data.role is not None:
            try:
                user.role = Role.Parse(request_data.role)
            except ValueError as e:
                raise ValidationError(str(e))

        if request_data.full_name is not None:
            full_name = request_data.full_name.strip()
            if not full_name:
                raise ValidationError("Name cannot be empty")
            user.full_name = full_name
            # Keep the denormalised assignee name in sync
            db_session.query(Task).filter(Task.assignee_id == user.user_id).update(
                {Task.assignee_name: user.display_name}, synchronize_session=False
            )

        db_session.commit()

        logger.info(f"Admin '{principal.email}' updated user '{user.email}' (role: {user.role.value})")
        return _Summary(user)

    except TaxDeskError:
        db_session.rollback()
        raise
    except Exception as e:
        db_session.rollback()
        logger.error(f"Error updating user {user_id}: {str(e)}")
        raise InternalError("Failed to update user")
    finally:
        db_session.close()


@router.delete("/api/users/{user_id}", tags=["Users"])
async def delete_user(user_id: str, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Remove a user
    Tasks assigned to the user keep their assignee name but lose the id.

    Args:
        user_id: User to remove
        principal: Authenticated caller (admin, not the target)

    Returns:
        Success message
    """
    from database import db_manager

    Authorize(principal, Action.DELETE_USER, owner_id=user_id)

    db_session = db_manager.GetSession()
    try:
        user = db_manager.GetUserById(db_session, user_id)
        if not user:
            raise NotFound("User not found")

        db_session.query(Task).filter(Task.assignee_id == user_id).update(
            {Task.assignee_id: None}, synchronize_session=False
        )
        db_session.delete(user)
        db_session.commit()

        logger.info(f"Admin '{principal.email}' removed user '{user.email}'")
        return {"success": True, "message": "User removed successfully"}

    except TaxDeskError:
        db_session.rollback()
        raise
    except Exception as e:
        db_session.rollback()
        logger.error(f"Error removing user {user_id}: {str(e)}")
        raise InternalError("Failed to remove user")
    finally:
        db_session.close()
