"""
Share links: mint a token for a meeting and resolve it back with lazy expiry
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from meeting_notes.config import get_settings
from meeting_notes.models.meeting import Meeting
from meeting_notes.models.meeting_share import MeetingShare
from meeting_notes.utils.helpers import as_utc, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


class ShareLinkNotFound(LookupError):
    pass


class ShareLinkExpired(LookupError):
    pass


@dataclass
class CreatedShare:
    token: str
    expires_at: datetime
    share_link: str


def share_ttl() -> timedelta:
    return timedelta(days=settings.SHARE_LINK_TTL_DAYS)


def build_share_link(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/share/{token}"


async def create_share(
    db: AsyncSession,
    meeting_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> CreatedShare:
    """
    Persist {meeting, token, expiry}. Only the meeting's owner can share it;
    an unknown meeting and someone else's meeting fail the same way.
    """
    now = as_utc(now) if now else utc_now()
    result = await db.execute(
        select(Meeting.id).where(Meeting.id == meeting_id, Meeting.user_id == user_id)
    )
    if result.scalar_one_or_none() is None:
        raise LookupError(f"insert into meeting_shares violates foreign key: meeting {meeting_id} does not exist")

    token = str(uuid.uuid4())
    share = MeetingShare(
        meeting_id=meeting_id,
        share_token=token,
        expires_at=now + share_ttl(),
        created_at=now,
    )
    db.add(share)
    await db.commit()

    logger.info(f"Share link created for meeting {meeting_id}")
    return CreatedShare(token=token, expires_at=share.expires_at, share_link=build_share_link(token))


async def resolve_share(
    db: AsyncSession,
    token: str,
    now: Optional[datetime] = None,
) -> Meeting:
    """
    Return the shared meeting. Missing tokens and expired tokens raise
    different errors so callers can answer 404 and 410 respectively.
    """
    now = as_utc(now) if now else utc_now()
    result = await db.execute(
        select(MeetingShare)
        .options(selectinload(MeetingShare.meeting).selectinload(Meeting.actions))
        .where(MeetingShare.share_token == token)
    )
    share = result.scalar_one_or_none()
    if share is None or share.meeting is None:
        raise ShareLinkNotFound(token)

    if now > as_utc(share.expires_at):
        raise ShareLinkExpired(token)

    return share.meeting
