"""
Meeting records - owner-scoped CRUD plus wholesale action replacement
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_notes.api.auth import AuthUser, get_current_user
from meeting_notes.database import get_db
from meeting_notes.models.action_item import ActionItem
from meeting_notes.models.meeting import Meeting, TemplateType, normalize_template_type
from meeting_notes.models.meeting_share import MeetingShare
from meeting_notes.utils.helpers import parse_iso_date, utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class ActionItemPayload(BaseModel):
    id: Optional[str] = None
    action_text: str
    assignee: str = "Unassigned"
    due_date: Optional[str] = None
    speaker: str = ""
    completed: bool = False

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v):
        return parse_iso_date(v)


class ActionItemResponse(ActionItemPayload):
    id: str

    class Config:
        from_attributes = True


class MeetingCreate(BaseModel):
    title: str = "Untitled Meeting"
    transcript: str = ""
    notes: str = ""
    speaker_tags: Dict[str, str] = {}
    duration_minutes: int = 0
    is_billable: bool = True
    template_type: TemplateType = TemplateType.PROFESSIONAL

    @field_validator("template_type", mode="before")
    @classmethod
    def validate_template_type(cls, v):
        return normalize_template_type(v)


class MeetingUpdate(BaseModel):
    title: Optional[str] = None
    transcript: Optional[str] = None
    notes: Optional[str] = None
    speaker_tags: Optional[Dict[str, str]] = None
    duration_minutes: Optional[int] = None
    is_billable: Optional[bool] = None
    template_type: Optional[TemplateType] = None

    @field_validator("template_type", mode="before")
    @classmethod
    def validate_template_type(cls, v):
        return None if v is None else normalize_template_type(v)


class MeetingResponse(BaseModel):
    id: str
    user_id: str
    title: str
    transcript: str
    notes: str
    speaker_tags: Dict[str, str]
    duration_minutes: int
    is_billable: bool
    template_type: TemplateType
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    actions: List[ActionItemResponse] = []

    class Config:
        from_attributes = True


# --- Helpers ---

def format_meeting_response(meeting: Meeting) -> MeetingResponse:
    return MeetingResponse(
        id=meeting.id,
        user_id=meeting.user_id,
        title=meeting.title,
        transcript=meeting.transcript or "",
        notes=meeting.notes or "",
        speaker_tags=meeting.speaker_tags or {},
        duration_minutes=meeting.duration_minutes or 0,
        is_billable=bool(meeting.is_billable),
        template_type=normalize_template_type(meeting.template_type),
        created_at=meeting.created_at,
        updated_at=meeting.updated_at,
        actions=[ActionItemResponse.model_validate(a) for a in meeting.actions],
    )


async def _get_owned_meeting(db: AsyncSession, meeting_id: str, user: AuthUser) -> Meeting:
    result = await db.execute(
        select(Meeting).where(Meeting.id == meeting_id, Meeting.user_id == user.id)
    )
    meeting = result.scalar_one_or_none()
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


# --- Endpoints ---

@router.post("/", response_model=MeetingResponse)
async def create_meeting(
    meeting_data: MeetingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)
):
    """Create a new meeting"""
    now = utc_now()
    meeting = Meeting(
        id=str(uuid.uuid4()),
        user_id=current_user.id,
        created_at=now,
        updated_at=now,
        actions=[],
        **meeting_data.model_dump(),
    )
    db.add(meeting)
    await db.commit()

    logger.info(f"User {current_user.id} created meeting {meeting.id}")
    return format_meeting_response(meeting)


@router.get("/", response_model=List[MeetingResponse])
async def list_meetings(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)
):
    """List the caller's meetings, newest first"""
    result = await db.execute(
        select(Meeting)
        .where(Meeting.user_id == current_user.id)
        .order_by(Meeting.created_at.desc())
    )
    return [format_meeting_response(m) for m in result.scalars().all()]


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)
):
    """Get a specific meeting"""
    meeting = await _get_owned_meeting(db, meeting_id, current_user)
    return format_meeting_response(meeting)


@router.patch("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting(
    meeting_id: str,
    updates: MeetingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)
):
    """Apply the editor's changes to a saved meeting"""
    meeting = await _get_owned_meeting(db, meeting_id, current_user)

    for key, value in updates.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(meeting, key, value)
    meeting.updated_at = utc_now()

    await db.commit()
    return format_meeting_response(meeting)


@router.put("/{meeting_id}/actions", response_model=MeetingResponse)
async def replace_actions(
    meeting_id: str,
    actions: List[ActionItemPayload],
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)
):
    """Replace the meeting's action list wholesale"""
    meeting = await _get_owned_meeting(db, meeting_id, current_user)

    # Old rows go first so resent action ids can be inserted again
    meeting.actions = []
    await db.flush()

    meeting.actions = [
        ActionItem(
            id=a.id or str(uuid.uuid4()),
            position=index,
            action_text=a.action_text,
            assignee=a.assignee or "Unassigned",
            due_date=a.due_date,
            speaker=a.speaker,
            completed=a.completed,
        )
        for index, a in enumerate(actions)
    ]
    meeting.updated_at = utc_now()

    await db.commit()
    return format_meeting_response(meeting)


@router.delete("/{meeting_id}")
async def delete_meeting(
    meeting_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user)
):
    """Delete a meeting with its actions and share links"""
    meeting = await _get_owned_meeting(db, meeting_id, current_user)

    await db.execute(delete(MeetingShare).where(MeetingShare.meeting_id == meeting.id))
    await db.delete(meeting)
    await db.commit()

    logger.info(f"User {current_user.id} deleted meeting {meeting_id}")
    return {"success": True, "message": "Meeting deleted"}
