"""
TaxDesk Server - Obligation Calendar API Models

Pydantic models for the obligation calendar endpoints.
"""

from typing import Optional
from pydantic import BaseModel


class ObligationFilters(BaseModel):
    """Narrow the catalog before generating tasks"""
    category: Optional[str] = None
    company_type: Optional[str] = None


class GenerateMonthRequest(BaseModel):
    year: Optional[int] = None
    month: Optional[int] = None
    responsible_email: Optional[str] = None
    filters: Optional[ObligationFilters] = None


class GenerateYearRequest(BaseModel):
    year: Optional[int] = None
    responsible_email: Optional[str] = None
    filters: Optional[ObligationFilters] = None


class GenerateNextMonthRequest(BaseModel):
    responsible_email: Optional[str] = None
    filters: Optional[ObligationFilters] = None
