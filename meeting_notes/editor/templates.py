"""
Note templates: section catalogue, extraction prompts and note/email formatting
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

from meeting_notes.models.meeting import TemplateType, normalize_template_type


@dataclass(frozen=True)
class TemplateSection:
    id: str
    label: str
    placeholder: str = ""


@dataclass(frozen=True)
class NoteTemplate:
    name: str
    summary_key: str
    sections: tuple

    @property
    def section_ids(self) -> List[str]:
        return [s.id for s in self.sections]


TEMPLATES: Dict[TemplateType, NoteTemplate] = {
    TemplateType.PROFESSIONAL: NoteTemplate(
        name="Professional Meeting Notes",
        summary_key="executiveSummary",
        sections=(
            TemplateSection("meetingDetails", "Meeting Details", "Date:\nTime:\nLocation/Platform:\nAttendees:\nNote-taker:"),
            TemplateSection("executiveSummary", "Executive Summary", "(Complete after meeting)"),
            TemplateSection("meetingObjectives", "Meeting Objectives", "Primary purpose:\nKey agenda items:"),
            TemplateSection("discussionNotes", "Discussion Notes", "Topic 1:\nTopic 2:\nTopic 3:"),
            TemplateSection("decisionsMade", "Decisions Made", "- \n- "),
            TemplateSection("actionItems", "Action Items", "Task:\nOwner:\nDue Date:\nStatus:"),
            TemplateSection("parkingLot", "Parking Lot", "Items to revisit later"),
            TemplateSection("nextMeeting", "Next Meeting", "Date:\nFocus:"),
        ),
    ),
    TemplateType.ACADEMIC: NoteTemplate(
        name="Academic Lecture Notes",
        summary_key="lectureSummary",
        sections=(
            TemplateSection("courseInfo", "Course Information", "Course, Date, Lecture #, Topic..."),
            TemplateSection("lectureSummary", "Lecture Summary", "Overview of the lecture..."),
            TemplateSection("keyConcepts", "Key Concepts", "Main concepts covered..."),
            TemplateSection("detailedNotes", "Detailed Notes", "In-depth notes..."),
            TemplateSection("examplesStudies", "Examples/Case Studies", "- "),
            TemplateSection("questions", "Questions & Clarifications Needed", "Clarifications needed..."),
            TemplateSection("studyPriorities", "Study Priorities", "What to review/practice"),
            TemplateSection("relatedMaterials", "Related Materials", "Readings, assignments..."),
        ),
    ),
    TemplateType.STUDY_GROUP: NoteTemplate(
        name="Study Group/Collaboration Session",
        summary_key="sessionSummary",
        sections=(
            TemplateSection("sessionDetails", "Session Details", "Date:\nDuration:\nParticipants:\nLocation:"),
            TemplateSection("sessionSummary", "Session Summary", "(Complete after session)"),
            TemplateSection("sessionGoals", "Session Goals", "- \n- "),
            TemplateSection("topicsCovered", "Topics Covered", "Topic 1:\nTopic 2:\nTopic 3:"),
            TemplateSection("keyInsights", "Key Insights & Breakthroughs", "- "),
            TemplateSection("problemSolving", "Problem-Solving Work", "Problem:\nApproach:\nSolution:"),
            TemplateSection("unresolvedQuestions", "Unresolved Questions", "- "),
            TemplateSection("individualActions", "Individual Action Items", "Person:\nTask:\nDeadline:"),
            TemplateSection("resources", "Resources to Share", "- "),
            TemplateSection("nextSession", "Next Session", "Date:\nFocus areas:\nPreparation needed:"),
        ),
    ),
}


def get_template(template_type: Any) -> NoteTemplate:
    return TEMPLATES[normalize_template_type(template_type)]


def initialize_sections(template_type: Any) -> Dict[str, str]:
    """Empty section map for a template"""
    return {section_id: "" for section_id in get_template(template_type).section_ids}


def build_extraction_prompt(template_type: Any, transcript: str) -> str:
    template = get_template(template_type)
    sections_list = "\n- ".join(template.section_ids)
    empty = json.dumps({section_id: "" for section_id in template.section_ids})
    return (
        f"Extract all relevant details from this transcript and fill in these sections: - {sections_list}"
        f"\n\nTRANSCRIPT:\n{transcript}"
        f"\n\nReturn ONLY JSON with these keys filled in (leave empty if not applicable): {empty}"
    )


def build_summary_prompt(template_type: Any, transcript: str) -> str:
    kind = normalize_template_type(template_type).value
    return f"Create a concise {kind} summary (2-3 sentences) of this meeting transcript:\n\n{transcript}"


def merge_sections(current: Mapping[str, str], extracted: Mapping[str, Any]) -> Dict[str, str]:
    """Overlay extracted values; unknown keys ride along and are ignored when formatting"""
    merged = dict(current)
    for key, value in extracted.items():
        if value is None:
            continue
        if isinstance(value, str):
            merged[str(key)] = value
        elif isinstance(value, list):
            merged[str(key)] = "\n".join(f"- {item}" for item in value)
        else:
            merged[str(key)] = json.dumps(value, ensure_ascii=False)
    return merged


def _filled(sections: Mapping[str, str], template: NoteTemplate) -> List[TemplateSection]:
    return [s for s in template.sections if str(sections.get(s.id) or "").strip()]


def format_notes(template_type: Any, sections: Mapping[str, str], user_notes: str = "") -> str:
    """The notes text saved with a meeting and sent to exports"""
    template = get_template(template_type)
    formatted = ""

    if user_notes and user_notes.strip():
        formatted += f"USER NOTES:\n{user_notes}\n\n"

    extracted = "\n\n".join(f"{s.label}:\n{sections[s.id]}" for s in _filled(sections, template))
    if extracted:
        formatted += f"EXTRACTED DETAILS:\n\n{extracted}"

    return formatted


def compose_email(
    title: Optional[str],
    transcript: Optional[str],
    template_type: Any,
    sections: Mapping[str, str],
    actions: Iterable[Mapping[str, Any]],
    user_notes: str = "",
) -> Dict[str, str]:
    """Subject and plain-text body for mailing the notes"""
    subject = f"Meeting Notes: {title or 'Meeting'}"
    body = f"Meeting: {title}\n\n"

    if user_notes and user_notes.strip():
        body += f"YOUR NOTES:\n{user_notes}\n\n"

    if transcript:
        body += f"TRANSCRIPT:\n{transcript}\n\n"

    filled = _filled(sections, get_template(template_type))
    if filled:
        body += "EXTRACTED MEETING DETAILS:\n\n"
        for section in filled:
            body += f"{section.label}:\n{sections[section.id]}\n\n"

    actions = list(actions)
    if actions:
        body += "ACTION ITEMS:\n"
        for action in actions:
            body += (
                f"- {action.get('action_text')} "
                f"(Assignee: {action.get('assignee')}, Due: {action.get('due_date') or 'Not set'})\n"
            )

    return {"subject": subject, "body": body}


def mailto_link(subject: str, body: str) -> str:
    return f"mailto:?subject={quote(subject, safe='')}&body={quote(body, safe='')}"
