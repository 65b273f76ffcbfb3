"""
TaxDesk Server - Obligation Calendar Endpoints

Admin endpoints to inspect the obligation catalog and expand it into
tasks for a month, a whole year or the upcoming month.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from auth import GetCurrentPrincipal
from errors import TaxDeskError, InternalError
from models.api import GenerateMonthRequest, GenerateYearRequest, GenerateNextMonthRequest
from models.infrastructure import Principal
from obligation_calendar import (
    DescribeCatalog, RefreshCatalog, GenerateMonth, GenerateYear, SummarizeYear, NextMonth
)
from policy import Action, Authorize


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def _MonthResponse(result, year: int):
    """200 with the result on success, 400 with the error otherwise"""
    if result.success:
        return {
            "message": f"Obligation calendar {result.month:02d}/{year} generated",
            "year": year,
            **result.ToDict()
        }
    return JSONResponse(
        status_code=400,
        content={"error": result.error, "details": {"year": year, **result.ToDict()}}
    )


@router.get("/api/agenda-obligations/obligations", tags=["Obligation Calendar"])
async def list_obligations(detailed: bool = False, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Describe the active catalog month by month

    Args:
        detailed: Include category, company type, source and frequency
        principal: Authenticated caller (admin)

    Returns:
        dict: Catalog summary
    """
    Authorize(principal, Action.VIEW_CALENDAR)
    return DescribeCatalog(detailed=detailed)


@router.get("/api/agenda-obligations/refresh", tags=["Obligation Calendar"])
async def refresh_obligations(principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Reload the catalog from its configured source

    Args:
        principal: Authenticated caller (admin)

    Returns:
        dict: Load summary
    """
    Authorize(principal, Action.VIEW_CALENDAR)

    try:
        summary = RefreshCatalog()
    except (OSError, ValueError) as e:
        logger.error(f"Error reloading obligation catalog: {str(e)}")
        raise InternalError(f"Failed to reload obligation catalog: {str(e)}")

    logger.info(f"Admin '{principal.email}' reloaded the obligation catalog")
    return {"message": "Obligation catalog reloaded", **summary}


@router.post("/api/agenda-obligations/month", tags=["Obligation Calendar"])
async def generate_month(request_data: GenerateMonthRequest, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Create the obligation tasks of one month

    Args:
        request_data: year, month, optional responsible e-mail and filters
        principal: Authenticated caller (admin)

    Returns:
        Month result, or 400 with the failure details
    """
    from database import db_manager

    filters = request_data.filters
    try:
        result = GenerateMonth(
            db_manager, principal, request_data.year, request_data.month,
            responsible_email=request_data.responsible_email,
            category=filters.category if filters else None,
            company_type=filters.company_type if filters else None
        )
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error generating obligation month: {str(e)}")
        raise InternalError("Failed to generate obligation calendar")

    return _MonthResponse(result, request_data.year)


@router.post("/api/agenda-obligations/year", tags=["Obligation Calendar"])
async def generate_year(request_data: GenerateYearRequest, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Create the obligation tasks of all twelve months
    Failing months are listed under details.errors; the others still run.

    Args:
        request_data: year, optional responsible e-mail and filters
        principal: Authenticated caller (admin)

    Returns:
        dict: Per-month successes and errors
    """
    from database import db_manager

    filters = request_data.filters
    try:
        results = GenerateYear(
            db_manager, principal, request_data.year,
            responsible_email=request_data.responsible_email,
            category=filters.category if filters else None,
            company_type=filters.company_type if filters else None
        )
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error generating obligation year: {str(e)}")
        raise InternalError("Failed to generate obligation calendar")

    summary = SummarizeYear(request_data.year, results)
    logger.info(f"Admin '{principal.email}' generated obligation calendar {request_data.year}: "
                f"{summary['successes']} months ok, {summary['errors']} failed")
    return summary


@router.post("/api/agenda-obligations/next-month", tags=["Obligation Calendar"])
async def generate_next_month(
    request_data: GenerateNextMonthRequest,
    principal: Principal = Depends(GetCurrentPrincipal)
):
    """
    Create the obligation tasks of the month after the current one
    """
    from database import db_manager

    year, month = NextMonth()
    filters = request_data.filters
    try:
        result = GenerateMonth(
            db_manager, principal, year, month,
            responsible_email=request_data.responsible_email,
            category=filters.category if filters else None,
            company_type=filters.company_type if filters else None
        )
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error generating next obligation month: {str(e)}")
        raise InternalError("Failed to generate obligation calendar")

    return _MonthResponse(result, year)
