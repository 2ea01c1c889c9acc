"""
Action items extracted from a meeting transcript
"""
import uuid

from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from meeting_notes.database import Base


class ActionItem(Base):
    __tablename__ = "action_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    meeting_id = Column(String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # Content
    action_text = Column(Text, nullable=False)
    assignee = Column(String, nullable=False, default="Unassigned")
    due_date = Column(String(10), nullable=True)  # ISO calendar date
    speaker = Column(String, nullable=False, default="")
    completed = Column(Boolean, nullable=False, default=False)

    # Relationships
    meeting = relationship("Meeting", back_populates="actions")
