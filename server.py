"""
TaxDesk Server - Main FastAPI Application

This module contains the main FastAPI application for the TaxDesk server.
It serves the REST API used to track tax obligation tasks, their proof
attachments and the obligation calendar.
"""

import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import uvicorn

import config
from errors import TaxDeskError
from managers.database_manager import DatabaseManager
from file_storage import InitializeStorage
from reset_tokens import CleanupExpiredTokens
from obligation_calendar import RefreshCatalog

logger = logging.getLogger(__name__)

# Import database module for shared db_manager instance
import database


def ConfigureLogging():
    """
    Configure logging to write to both console and a rotating file
    """
    logs_dir = config.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Create log filename with date
    log_filename = logs_dir / f"taxdesk-server-{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            # Console handler
            logging.StreamHandler(),
            # File handler with rotation (max 10MB per file, keep 10 backup files)
            RotatingFileHandler(
                log_filename,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=10,
                encoding='utf-8'
            )
        ]
    )


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    Manages database, storage and catalog initialization
    """
    # Startup
    ConfigureLogging()
    logger.info("TaxDesk Server starting up...")

    # Initialize database manager in database module
    database.db_manager = DatabaseManager(config.DATABASE_PATH)

    # Creates tables if needed; the admin account only on first start
    admin_password = database.db_manager.InitializeDatabase(config.ADMIN_EMAIL)
    if admin_password:
        logger.warning("=" * 60)
        logger.warning("NEW ADMIN USER CREATED")
        logger.warning(f"E-mail: {config.ADMIN_EMAIL}")
        logger.warning(f"Password: {admin_password}")
        logger.warning("SAVE THIS PASSWORD - IT WILL NOT BE SHOWN AGAIN!")
        logger.warning("=" * 60)

    logger.info("Database initialized successfully")

    InitializeStorage()
    logger.info("File storage initialized successfully")

    removed = CleanupExpiredTokens(database.db_manager)
    if removed:
        logger.info(f"Removed {removed} expired password reset tokens")

    try:
        RefreshCatalog()
    except (OSError, ValueError) as e:
        logger.error(f"Could not load obligation catalog {config.OBLIGATION_CATALOG}: {str(e)}; using the built-in catalog")

    logger.info(f"Server startup complete (environment: {config.ENV})")

    yield

    # Shutdown
    logger.info("TaxDesk Server shutting down...")
    database.db_manager.engine.dispose()
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

app = FastAPI(
    title="TaxDesk Server",
    description="Task tracking for recurring tax obligations",
    version="1.0.0",
    lifespan=lifespan
)

# ==================== CORS Middleware ====================

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every incoming request"""
    logger.info(f"[REQUEST] {request.method} {request.url.path}")
    return await call_next(request)


# ==================== Error Handlers ====================

def _ErrorResponse(status_code: int, message: str) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(TaxDeskError)
async def taxdesk_error_handler(request: Request, exc: TaxDeskError):
    return _ErrorResponse(exc.status_code, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _ErrorResponse(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
    else:
        message = "Invalid request"
    return _ErrorResponse(400, message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return _ErrorResponse(500, "Internal server error")


# ==================== Import Routers ====================

from routes import status, auth, users, tasks, files, obligations, logs


# ==================== Include Routers ====================

app.include_router(status.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tasks.router)
app.include_router(files.router)
app.include_router(obligations.router)
app.include_router(logs.router)


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    """
    Run the server using uvicorn
    """
    uvicorn.run(
        "server:app",
        host=config.HOST,
        port=config.PORT,
        reload=False,
        log_level="info"
    )
