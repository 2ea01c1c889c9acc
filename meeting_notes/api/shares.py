"""
Share-link relay
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_notes.api.auth import AuthUser, get_current_user
from meeting_notes.api.meetings import format_meeting_response
from meeting_notes.database import get_db
from meeting_notes.services.share_service import (
    ShareLinkExpired,
    ShareLinkNotFound,
    create_share,
    resolve_share,
)
from meeting_notes.utils.errors import RelayError

logger = logging.getLogger(__name__)

router = APIRouter()


class ShareLinkRequest(BaseModel):
    meetingId: Optional[str] = None


@router.post("/create-share-link")
async def create_share_link(
    body: ShareLinkRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """Mint a 7-day public link to one meeting"""
    if not body.meetingId:
        raise RelayError(400, "Meeting ID is required")

    logger.info(f"Creating share link for meeting: {body.meetingId}")
    try:
        share = await create_share(db, body.meetingId, current_user.id)
    except Exception as e:
        logger.error(f"Share link error: {e}")
        await db.rollback()
        raise RelayError(500, "Failed to create share link", details=str(e)) from e

    return {
        "success": True,
        "shareLink": share.share_link,
        "expiresAt": share.expires_at.isoformat(),
        "token": share.token,
    }


@router.get("/share/{token}")
async def get_shared_meeting(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Public: resolve a share token to its meeting"""
    try:
        meeting = await resolve_share(db, token)
    except ShareLinkNotFound:
        raise RelayError(404, "Share link not found")
    except ShareLinkExpired:
        raise RelayError(410, "Share link has expired")
    except Exception as e:
        logger.error(f"Share retrieval error: {e}")
        raise RelayError(500, "Failed to retrieve shared meeting", details=str(e)) from e

    return {
        "success": True,
        "meeting": format_meeting_response(meeting).model_dump(mode="json"),
    }
