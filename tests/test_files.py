"""
Tests for attachment upload, download and deletion
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from activity_log import ListActivity
from file_storage import ListAttachments, SanitizeFilename, STAGING_DIR_NAME

from conftest import AuthHeaders


PDF_BYTES = b"%PDF-1.4 proof of payment"


def _CreateTask(client, admin, assignee):
    response = client.post("/api/tasks", headers=AuthHeaders(admin), json={
        "title": "EFD-Reinf",
        "assignee_id": assignee.user_id,
        "due_date": "2025-05-15"
    })
    return response.json()["id"]


def _Upload(client, user, task_id, name="guia.pdf", content=PDF_BYTES, mime="application/pdf"):
    data = {"task_id": task_id} if task_id is not None else {}
    return client.post(
        "/api/upload",
        headers=AuthHeaders(user),
        files={"file": (name, content, mime)},
        data=data
    )


def _StagingIsEmpty() -> bool:
    return not any((Path(config.UPLOADS_DIR) / STAGING_DIR_NAME).iterdir())


def test_sanitize_filename():
    """Test reduction of client file names to safe base names"""
    assert SanitizeFilename("../../etc/passwd") == "passwd"
    assert SanitizeFilename("guia de pagamento.pdf") == "guia_de_pagamento.pdf"
    assert SanitizeFilename("") == "file"


def test_upload_and_list(client, db_manager, admin, standard_user):
    """Test upload and listing of an attachment"""
    task_id = _CreateTask(client, admin, standard_user)

    response = _Upload(client, standard_user, task_id)

    assert response.status_code == 200
    attachment = response.json()
    assert attachment["name"] == "guia.pdf"
    assert attachment["size"] == len(PDF_BYTES)
    assert attachment["type"] == "application/pdf"
    assert attachment["download_count"] == 0
    assert attachment["url"] == f"/api/files/{attachment['id']}/download"

    task = client.get(f"/api/tasks/{task_id}", headers=AuthHeaders(admin)).json()
    assert [c["id"] for c in task["comprovantes"]] == [attachment["id"]]

    listed = client.get(f"/api/files/task/{task_id}", headers=AuthHeaders(admin)).json()
    assert [c["id"] for c in listed] == [attachment["id"]]
    assert _StagingIsEmpty()


def test_disallowed_type_is_rejected(client, db_manager, admin, standard_user):
    """Test that disallowed MIME types leave no record or file"""
    task_id = _CreateTask(client, admin, standard_user)

    response = _Upload(client, standard_user, task_id, name="tool.exe", content=b"MZ", mime="application/x-msdownload")

    assert response.status_code == 400
    assert "error" in response.json()
    assert ListAttachments(db_manager, task_id) == []
    assert not (Path(config.UPLOADS_DIR) / task_id).exists()


def test_oversized_upload_is_rejected(client, db_manager, admin, standard_user):
    """Test the upload size limit from settings"""
    from models.database import Setting

    task_id = _CreateTask(client, admin, standard_user)

    session = db_manager.GetSession()
    try:
        session.query(Setting).filter(Setting.key == "max_upload_bytes").update({Setting.value: "10"})
        session.commit()
    finally:
        session.close()

    response = _Upload(client, standard_user, task_id)

    assert response.status_code == 400
    assert ListAttachments(db_manager, task_id) == []
    assert _StagingIsEmpty()


def test_upload_requires_known_task(client, db_manager, admin, standard_user):
    """Test uploads without a task id or for an unknown task"""
    response = _Upload(client, standard_user, None)
    assert response.status_code == 400

    response = _Upload(client, standard_user, "no-such-task")
    assert response.status_code == 404

    assert _StagingIsEmpty()


def test_download_with_missing_physical_file(client, db_manager, admin, standard_user):
    """Test that a record whose file vanished from disk returns 404 without counting a download"""
    task_id = _CreateTask(client, admin, standard_user)
    file_id = _Upload(client, standard_user, task_id).json()["id"]

    for stored in (Path(config.UPLOADS_DIR) / task_id).iterdir():
        stored.unlink()

    response = client.get(f"/api/files/{file_id}/download", headers=AuthHeaders(admin))

    assert response.status_code == 404
    assert response.json() == {"error": "Physical file not found"}
    assert ListAttachments(db_manager, task_id)[0]["download_count"] == 0
    assert "download" not in [entry.action for entry in ListActivity(db_manager)]


def test_download_counts_once_and_logs(client, db_manager, admin, standard_user):
    """Test that a download counts once and logs one entry"""
    task_id = _CreateTask(client, admin, standard_user)
    file_id = _Upload(client, standard_user, task_id).json()["id"]

    response = client.get(f"/api/files/{file_id}/download", headers=AuthHeaders(admin))

    assert response.status_code == 200
    assert response.content == PDF_BYTES
    assert response.headers["content-type"].startswith("application/pdf")
    assert "guia.pdf" in response.headers["content-disposition"]

    assert ListAttachments(db_manager, task_id)[0]["download_count"] == 1

    downloads = [entry for entry in ListActivity(db_manager) if entry.action == "download"]
    assert len(downloads) == 1
    assert downloads[0].file_id == file_id
    assert downloads[0].user_id == admin.user_id


def test_download_missing_file(client, admin):
    """Test download of an unknown attachment id"""
    response = client.get("/api/files/999/download", headers=AuthHeaders(admin))
    assert response.status_code == 404


def test_delete_by_uploader_or_admin_only(client, db_manager, admin, standard_user, other_user):
    """Test attachment deletion permissions"""
    task_id = _CreateTask(client, admin, standard_user)
    file_id = _Upload(client, standard_user, task_id).json()["id"]
    stored = Path(config.UPLOADS_DIR) / task_id
    assert len(list(stored.iterdir())) == 1

    response = client.delete(f"/api/files/{file_id}", headers=AuthHeaders(other_user))
    assert response.status_code == 403
    assert len(list(stored.iterdir())) == 1

    response = client.delete(f"/api/files/{file_id}", headers=AuthHeaders(standard_user))
    assert response.status_code == 200
    assert list(stored.iterdir()) == []
    assert ListAttachments(db_manager, task_id) == []

    assert "delete" in [entry.action for entry in ListActivity(db_manager)]
