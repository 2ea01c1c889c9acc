from meeting_notes.models.meeting import Meeting, TemplateType
from meeting_notes.models.action_item import ActionItem
from meeting_notes.models.meeting_share import MeetingShare

__all__ = [
    "Meeting",
    "TemplateType",
    "ActionItem",
    "MeetingShare",
]
