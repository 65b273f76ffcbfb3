"""
TaxDesk Server - Status Endpoints
"""

from datetime import datetime, timezone
from fastapi import APIRouter


# Create router instance
router = APIRouter()


# ==================== Health Check Endpoint ====================

@router.get("/api/health", tags=["Status"])
async def health_check():
    """
    Health check endpoint to verify server is running (no authentication)

    Returns:
        dict: Server status information
    """
    return {
        "status": "ok",
        "service": "TaxDesk Server",
        "version": "1.0.0",
        "timestamp_utc": datetime.now(timezone.utc).isoformat()
    }
