"""
Transcription relay - audio upload in, timestamped transcript out
"""
import logging
import os
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from meeting_notes.api.auth import AuthUser, get_current_user
from meeting_notes.config import get_settings
from meeting_notes.services import transcription_service
from meeting_notes.services.transcription_service import (
    INSTALL_HINT,
    TranscriptionError,
    format_transcript,
    remove_quietly,
)
from meeting_notes.utils.errors import RelayError

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/transcribe")
async def transcribe_audio(
    audio: Optional[UploadFile] = File(None),
    current_user: AuthUser = Depends(get_current_user),
):
    """Run the uploaded recording through Whisper"""
    if audio is None:
        raise RelayError(400, "No audio file provided")

    content = await audio.read()
    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise RelayError(413, f"File too large. Maximum size: {settings.MAX_UPLOAD_MB}MB")

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    ext = os.path.splitext(audio.filename or "")[1].lower()
    audio_path = os.path.join(settings.UPLOAD_DIR, f"{uuid.uuid4().hex}{ext}")

    try:
        with open(audio_path, "wb") as f:
            f.write(content)

        result = await run_in_threadpool(transcription_service.transcriber.transcribe, audio_path)
        transcript = format_transcript(result)
    except TranscriptionError as e:
        logger.error(f"Whisper error: {e}")
        raise RelayError(500, "Transcription failed", details=str(e), hint=INSTALL_HINT) from e
    except Exception as e:
        logger.exception("Transcription server error")
        raise RelayError(500, "Server error", details=str(e)) from e
    finally:
        remove_quietly(audio_path)

    logger.info(f"Transcription successful for '{audio.filename}' ({len(content)} bytes)")
    return {
        "success": True,
        "transcript": transcript,
        "text": str(result.get("text") or "").strip() or transcript,
    }
