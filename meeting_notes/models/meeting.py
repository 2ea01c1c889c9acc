"""
Meeting model
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON, Enum
from sqlalchemy.orm import relationship

from meeting_notes.database import Base
from meeting_notes.utils.helpers import utc_now


class TemplateType(str, enum.Enum):
    PROFESSIONAL = "professional"
    ACADEMIC = "academic"
    STUDY_GROUP = "study-group"


# Older clients stored the meeting flavour instead of a note template
LEGACY_TEMPLATE_TYPES = {
    "daily-standup": TemplateType.PROFESSIONAL,
    "1-on-1": TemplateType.PROFESSIONAL,
    "client-meeting": TemplateType.PROFESSIONAL,
    "team-meeting": TemplateType.PROFESSIONAL,
    "sales-call": TemplateType.PROFESSIONAL,
}


def normalize_template_type(value) -> TemplateType:
    """Map any stored template value onto the closed set of template types"""
    if isinstance(value, TemplateType):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        if key in LEGACY_TEMPLATE_TYPES:
            return LEGACY_TEMPLATE_TYPES[key]
        try:
            return TemplateType(key)
        except ValueError:
            pass
    return TemplateType.PROFESSIONAL


def _new_id() -> str:
    return str(uuid.uuid4())


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False, default="Untitled Meeting")

    # Content
    transcript = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    speaker_tags = Column(JSON, nullable=False, default=dict)  # label -> display name

    duration_minutes = Column(Integer, nullable=False, default=0)
    is_billable = Column(Boolean, nullable=False, default=True)
    template_type = Column(
        Enum(TemplateType, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TemplateType.PROFESSIONAL,
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # Relationships
    actions = relationship(
        "ActionItem",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="ActionItem.position",
        lazy="selectin",
    )
    shares = relationship("MeetingShare", back_populates="meeting", passive_deletes=True)
