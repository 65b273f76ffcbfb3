"""
TaxDesk Server - Database Models Package

This package contains all SQLAlchemy database model definitions.
All models share a common declarative base for proper table relationships.
"""

# Import Base first
from models.database.base import Base

# Import all models
from models.database.role import Role
from models.database.user import User
from models.database.task import Task, TASK_STATUSES, DEFAULT_TASK_STATUS, DEFAULT_FREQUENCY
from models.database.file_attachment import FileAttachment
from models.database.activity_log import ActivityLog
from models.database.password_reset_token import PasswordResetToken
from models.database.setting import Setting

# Export all models and Base
__all__ = [
    'Base',
    'Role',
    'User',
    'Task',
    'TASK_STATUSES',
    'DEFAULT_TASK_STATUS',
    'DEFAULT_FREQUENCY',
    'FileAttachment',
    'ActivityLog',
    'PasswordResetToken',
    'Setting',
]
