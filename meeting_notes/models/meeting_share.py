"""
Share links - time-limited public access to one meeting
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from meeting_notes.database import Base
from meeting_notes.utils.helpers import utc_now


class MeetingShare(Base):
    __tablename__ = "meeting_shares"

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    share_token = Column(String(64), nullable=False, unique=True, index=True)

    # Expiry is checked on read only; expired rows are never purged
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    meeting = relationship("Meeting", back_populates="shares")
