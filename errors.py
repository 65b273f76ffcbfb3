"""
TaxDesk Server - Error Taxonomy

Exceptions raised by services and route handlers. Each carries the HTTP
status it is rendered with; server.py turns them into {"error": message}.
"""

from fastapi import status


class TaxDeskError(Exception):
    """Base exception for all request-level failures."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaxDeskError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(TaxDeskError):
    """Missing, invalid or expired credential."""
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(TaxDeskError):
    """Authenticated but not allowed to perform the action."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(TaxDeskError):
    """Resource or referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class UnsupportedMediaType(TaxDeskError):
    """Upload rejected because of its type or size (reported as 400)."""
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(TaxDeskError):
    """Unexpected failure, e.g. persistence errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
