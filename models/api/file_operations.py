"""
TaxDesk Server - File Operations API Models

Pydantic models for attachment delete responses.
"""

from pydantic import BaseModel


class FileDeleteResponse(BaseModel):
    success: bool
    message: str
