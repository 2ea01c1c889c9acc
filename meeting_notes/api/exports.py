"""
Export relay - PDF / Word rendering and download of generated files
"""
import logging
import os
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from meeting_notes.api.auth import AuthUser, get_current_user
from meeting_notes.config import get_settings
from meeting_notes.services.export_service import export_meeting
from meeting_notes.utils.errors import RelayError

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()
files_router = APIRouter()

MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class ExportAction(BaseModel):
    action_text: str = ""
    assignee: Optional[str] = None
    due_date: Optional[str] = None


class ExportRequest(BaseModel):
    title: Optional[str] = None
    transcript: Optional[str] = ""
    notes: Optional[str] = ""
    actions: List[ExportAction] = []


async def _export(body: ExportRequest, extension: str, failure: str) -> dict:
    try:
        filename = await run_in_threadpool(
            export_meeting, extension, body.title, body.transcript, body.notes, body.actions
        )
    except Exception as e:
        logger.exception(f"{extension} export error")
        raise RelayError(500, failure, details=str(e)) from e

    return {
        "success": True,
        "filename": filename,
        "url": f"/exports/{quote(filename)}",
    }


@router.post("/export-pdf")
async def export_pdf(
    body: ExportRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    return await _export(body, "pdf", "Failed to generate PDF")


@router.post("/export-word")
async def export_word(
    body: ExportRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    return await _export(body, "docx", "Failed to generate Word document")


def _validate_file_path(file_path: str) -> None:
    """Prevent path traversal - ensure file is within EXPORT_DIR."""
    real_path = os.path.realpath(file_path)
    export_base = os.path.realpath(settings.EXPORT_DIR)
    if os.path.commonpath([real_path, export_base]) != export_base:
        raise HTTPException(403, "Access denied")


@files_router.get("/exports/{filename}")
async def download_export(filename: str):
    """Download a generated export"""
    file_path = os.path.join(settings.EXPORT_DIR, filename)
    _validate_file_path(file_path)

    if not os.path.isfile(file_path):
        raise HTTPException(404, "File not found")

    return FileResponse(
        path=file_path,
        filename=filename,
        media_type=MEDIA_TYPES.get(os.path.splitext(filename)[1].lower(), "application/octet-stream"),
    )
