"""
TaxDesk Server - Attachment Endpoints

This module contains endpoints for uploading, listing, downloading and
deleting the proof-of-completion files of a task.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from auth import GetCurrentPrincipal
from errors import TaxDeskError, ValidationError, UnsupportedMediaType, InternalError
from file_storage import (
    IsAllowedMimeType, StageUpload, StoreAttachment, RemovePhysicalFile,
    ListAttachments, PrepareDownload, DeleteAttachment
)
from models.api import AttachmentResponse, FileDeleteResponse
from models.infrastructure import Principal


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.post("/api/upload", response_model=AttachmentResponse, tags=["Files"])
async def upload_file(
    file: Optional[UploadFile] = File(None),
    task_id: Optional[str] = Form(None),
    principal: Principal = Depends(GetCurrentPrincipal)
):
    """
    Upload a proof-of-completion file for a task

    The content is streamed to a staging file first; the staging file is
    discarded when the task id is missing or unknown.

    Args:
        file: Uploaded file (multipart field 'file')
        task_id: Owning task (multipart field 'task_id')
        principal: Authenticated caller

    Returns:
        AttachmentResponse: Stored attachment

    Raises:
        ValidationError: If no file or no task id was sent
        UnsupportedMediaType: If the type is not allowed or the file is too large
        NotFound: If the task does not exist
    """
    from database import db_manager

    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    if not IsAllowedMimeType(file.content_type):
        logger.warning(f"User '{principal.email}' tried to upload unsupported type '{file.content_type}'")
        raise UnsupportedMediaType("Unsupported file type")

    staged_path = None
    try:
        session = db_manager.GetSession()
        try:
            max_bytes = db_manager.GetSettingInt(session, "max_upload_bytes")
        finally:
            session.close()

        staged_path, size = await StageUpload(file, max_bytes)

        if not task_id:
            RemovePhysicalFile(staged_path)
            raise ValidationError("task_id is required")

        return StoreAttachment(
            db_manager, principal, staged_path,
            original_name=file.filename,
            mime_type=file.content_type,
            size=size,
            task_id=task_id
        )

    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error uploading file: {str(e)}")
        if staged_path is not None:
            RemovePhysicalFile(staged_path)
        raise InternalError("Failed to upload file")


@router.get("/api/files/task/{task_id}", response_model=List[AttachmentResponse], tags=["Files"])
async def list_task_files(task_id: str, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    List the attachments of a task

    Args:
        task_id: Task id
        principal: Authenticated caller

    Returns:
        List[AttachmentResponse]: Attachments, oldest first
    """
    from database import db_manager

    try:
        return ListAttachments(db_manager, task_id)
    except Exception as e:
        logger.error(f"Error listing files of task {task_id}: {str(e)}")
        raise InternalError("Failed to list files")


@router.get("/api/files/{file_id}/download", tags=["Files"])
async def download_file(file_id: int, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Download an attachment
    Increments the download counter and records a 'download' activity.

    Args:
        file_id: Attachment id
        principal: Authenticated caller

    Returns:
        FileResponse: File content with its MIME type and original name

    Raises:
        NotFound: If the record or the physical file is missing
    """
    from database import db_manager

    try:
        file_path, original_name, mime_type = PrepareDownload(db_manager, principal, file_id)
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error downloading file {file_id}: {str(e)}")
        raise InternalError("Failed to download file")

    return FileResponse(path=str(file_path), filename=original_name, media_type=mime_type)


@router.delete("/api/files/{file_id}", response_model=FileDeleteResponse, tags=["Files"])
async def delete_file(file_id: int, principal: Principal = Depends(GetCurrentPrincipal)):
    """
    Delete an attachment (uploader or admin)

    Args:
        file_id: Attachment id
        principal: Authenticated caller

    Returns:
        FileDeleteResponse: Success status and message
    """
    from database import db_manager

    try:
        DeleteAttachment(db_manager, principal, file_id)
        return FileDeleteResponse(success=True, message="File deleted successfully")
    except TaxDeskError:
        raise
    except Exception as e:
        logger.error(f"Error deleting file {file_id}: {str(e)}")
        raise InternalError("Failed to delete file")
