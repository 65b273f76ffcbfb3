"""
TaxDesk Server - File Attachment Storage

This module handles proof-of-completion attachments including:
- Upload directory structure (one folder per task)
- Streaming uploads into a staging area with a size limit
- MIME type allow-list
- Attachment metadata, download counter and deletion

Physical files live under <uploads>/<task_id>/<timestamp>_<uuid>_<name>.
"""

import logging
import re
import shutil
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import UploadFile

import config
from activity_log import RecordActivity
from errors import NotFound, UnsupportedMediaType
from models.database import FileAttachment, Task
from models.infrastructure import Principal
from managers.database_manager import DatabaseManager
from policy import Action, Authorize

logger = logging.getLogger(__name__)


# ==================== Storage Configuration ====================

STAGING_DIR_NAME = ".staging"
CHUNK_SIZE = 8192

ALLOWED_MIME_TYPES = [
    'image/jpeg', 'image/png', 'image/gif', 'image/webp',
    'application/pdf', 'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'text/plain', 'text/csv'
]


# ==================== Storage Directory Management ====================

def GetUploadsRoot() -> Path:
    """Root directory for attachments, from configuration"""
    return Path(config.UPLOADS_DIR)


def InitializeStorage(uploads_root: Optional[Path] = None) -> None:
    """
    Initialize the upload directory structure
    Creates the root directory and the staging area

    Args:
        uploads_root: Root directory for attachments
    """
    root = Path(uploads_root or GetUploadsRoot())

    try:
        root.mkdir(parents=True, exist_ok=True)
        (root / STAGING_DIR_NAME).mkdir(exist_ok=True)
        logger.info(f"Upload storage ready: {root.absolute()}")
    except Exception as e:
        logger.error(f"Failed to initialize storage: {str(e)}")
        raise


def GetTaskDirectory(task_id: str, uploads_root: Optional[Path] = None) -> Path:
    """
    Get (and create) the folder holding a task's attachments

    Args:
        task_id: Task id
        uploads_root: Root directory for attachments

    Returns:
        Path: Task folder
    """
    task_dir = Path(uploads_root or GetUploadsRoot()) / task_id
    task_dir.mkdir(parents=True, exist_ok=True)
    return task_dir


def SanitizeFilename(name: str) -> str:
    """
    Reduce a client-supplied file name to a safe base name

    Args:
        name: Original file name

    Returns:
        str: Name without directories or unusual characters
    """
    base = Path(name or "").name
    base = re.sub(r'[^\w.\-]', '_', base)
    return base or "file"


def GenerateStoredName(original_name: str) -> str:
    """
    Build a collision-resistant name for the stored copy

    Args:
        original_name: Name sent by the client

    Returns:
        str: "<epoch ms>_<uuid4>_<sanitized name>"
    """
    return f"{int(time.time() * 1000)}_{uuid.uuid4()}_{SanitizeFilename(original_name)}"


def IsAllowedMimeType(mime_type: Optional[str]) -> bool:
    return mime_type in ALLOWED_MIME_TYPES


def RemovePhysicalFile(file_path: Path) -> bool:
    """
    Delete a file from disk, logging instead of raising on failure

    Args:
        file_path: File to remove

    Returns:
        bool: True if the file was removed
    """
    try:
        path = Path(file_path)
        if path.exists():
            path.unlink()
            logger.info(f"Removed file from disk: {path}")
            return True
        return False
    except OSError as e:
        logger.warning(f"Could not remove file {file_path}: {str(e)}")
        return False


# ==================== Upload ====================

async def StageUpload(upload: UploadFile, max_bytes: int, uploads_root: Optional[Path] = None) -> Tuple[Path, int]:
    """
    Stream an upload into the staging area, enforcing the size limit

    Args:
        upload: Uploaded file
        max_bytes: Maximum accepted size
        uploads_root: Root directory for attachments

    Returns:
        Tuple[Path, int]: Staged file path and its size in bytes

    Raises:
        UnsupportedMediaType: If the file is larger than max_bytes
    """
    staging_dir = Path(uploads_root or GetUploadsRoot()) / STAGING_DIR_NAME
    staging_dir.mkdir(parents=True, exist_ok=True)
    staged_path = staging_dir / f"{uuid.uuid4()}.part"

    size = 0
    with open(staged_path, "wb") as f:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                break
            f.write(chunk)

    if size > max_bytes:
        RemovePhysicalFile(staged_path)
        raise UnsupportedMediaType(f"File exceeds the maximum size of {max_bytes // (1024 * 1024)} MB")

    return staged_path, size


def StoreAttachment(
    db_manager: DatabaseManager,
    principal: Principal,
    staged_path: Path,
    original_name: str,
    mime_type: str,
    size: int,
    task_id: str,
    uploads_root: Optional[Path] = None
) -> dict:
    """
    Move a staged upload into the task folder and record its metadata

    Args:
        db_manager: DatabaseManager instance
        principal: Uploader
        staged_path: File produced by StageUpload
        original_name: Name sent by the client
        mime_type: Declared MIME type
        size: Size in bytes
        task_id: Owning task
        uploads_root: Root directory for attachments

    Returns:
        dict: Serialized attachment

    Raises:
        NotFound: If the task does not exist (the staged file is discarded)
    """
    session = db_manager.GetSession()
    final_path = None

    try:
        task = session.query(Task).filter(Task.task_id == task_id).first()
        if not task:
            RemovePhysicalFile(staged_path)
            raise NotFound("Task not found")

        stored_name = GenerateStoredName(original_name)
        final_path = GetTaskDirectory(task_id, uploads_root) / stored_name
        shutil.move(str(staged_path), str(final_path))

        record = FileAttachment(
            stored_name=stored_name,
            original_name=original_name,
            file_path=str(final_path),
            mime_type=mime_type,
            size=size,
            task_id=task_id,
            uploaded_by=principal.user_id,
            uploaded_at=datetime.now(timezone.utc),
            download_count=0
        )
        session.add(record)
        session.flush()

        RecordActivity(session, principal, "upload", task_id=task.task_id, task_title=task.title,
                       file_id=record.file_id)
        session.commit()

        logger.info(f"User '{principal.email}' uploaded '{original_name}' ({size} bytes) to task {task_id}")
        return SerializeAttachment(record)

    except NotFound:
        raise
    except Exception:
        session.rollback()
        # Keep disk and database consistent
        RemovePhysicalFile(final_path or staged_path)
        raise
    finally:
        session.close()


# ==================== Listing and Download ====================

def SerializeAttachment(record: FileAttachment) -> dict:
    """Convert an attachment to its JSON form"""
    return {
        "id": record.file_id,
        "url": f"/api/files/{record.file_id}/download",
        "name": record.original_name,
        "size": record.size,
        "type": record.mime_type,
        "upload_date": record.uploaded_at,
        "uploaded_by": record.uploaded_by,
        "download_count": record.download_count or 0
    }


def ListAttachments(db_manager: DatabaseManager, task_id: str) -> List[dict]:
    """
    List the attachments of a task

    Args:
        db_manager: DatabaseManager instance
        task_id: Task id

    Returns:
        List[dict]: Serialized attachments, oldest first
    """
    session = db_manager.GetSession()
    try:
        records = session.query(FileAttachment).filter(
            FileAttachment.task_id == task_id
        ).order_by(FileAttachment.file_id.asc()).all()
        return [SerializeAttachment(record) for record in records]
    finally:
        session.close()


def PrepareDownload(db_manager: DatabaseManager, principal: Principal, file_id: int) -> Tuple[Path, str, str]:
    """
    Resolve an attachment for download, counting the download

    Args:
        db_manager: DatabaseManager instance
        principal: Caller
        file_id: Attachment id

    Returns:
        Tuple[Path, str, str]: Physical path, original name, MIME type

    Raises:
        NotFound: If the record or the physical file is missing
    """
    session = db_manager.GetSession()
    try:
        record = session.query(FileAttachment).filter(FileAttachment.file_id == file_id).first()
        if not record:
            raise NotFound("File not found")

        file_path = Path(record.file_path)
        if not file_path.exists():
            logger.error(f"Attachment {file_id} exists in database but not on disk: {file_path}")
            raise NotFound("Physical file not found")

        record.download_count = (record.download_count or 0) + 1
        task_title = record.task.title if record.task else None
        RecordActivity(session, principal, "download", task_id=record.task_id, task_title=task_title,
                       file_id=record.file_id)
        session.commit()

        logger.info(f"User '{principal.email}' downloading '{record.original_name}' (download #{record.download_count})")
        return file_path, record.original_name, record.mime_type

    except NotFound:
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ==================== Deletion ====================

def DeleteAttachment(db_manager: DatabaseManager, principal: Principal, file_id: int) -> None:
    """
    Delete an attachment: physical file first (best-effort), then the record

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (must be the uploader or an admin)
        file_id: Attachment id

    Raises:
        NotFound: If the attachment does not exist
        Forbidden: If the caller may not delete it
    """
    session = db_manager.GetSession()
    try:
        record = session.query(FileAttachment).filter(FileAttachment.file_id == file_id).first()
        if not record:
            raise NotFound("File not found")

        Authorize(principal, Action.DELETE_FILE, owner_id=record.uploaded_by)

        RemovePhysicalFile(Path(record.file_path))

        task_id = record.task_id
        task_title = record.task.title if record.task else None
        session.delete(record)
        RecordActivity(session, principal, "delete", task_id=task_id, task_title=task_title, file_id=file_id)
        session.commit()

        logger.info(f"User '{principal.email}' deleted attachment {file_id} from task {task_id}")

    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
