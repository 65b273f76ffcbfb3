"""
TaxDesk Server - API Models Package

This package contains Pydantic models for all API endpoints.
"""

from models.api.task import TaskRequest, TaskStatusRequest, TaskResponse, AttachmentResponse
from models.api.file_operations import FileDeleteResponse
from models.api.user_management import UserSummary, UpdateUserRequest
from models.api.activity_log import LogCreateRequest, LogEntryResponse
from models.api.obligations import (
    ObligationFilters,
    GenerateMonthRequest,
    GenerateYearRequest,
    GenerateNextMonthRequest
)

__all__ = [
    'TaskRequest',
    'TaskStatusRequest',
    'TaskResponse',
    'AttachmentResponse',
    'FileDeleteResponse',
    'UserSummary',
    'UpdateUserRequest',
    'LogCreateRequest',
    'LogEntryResponse',
    'ObligationFilters',
    'GenerateMonthRequest',
    'GenerateYearRequest',
    'GenerateNextMonthRequest',
]
