"""
Editor session - runs the capture → transcript → notes → actions → export
flow against the relays and keeps the result in a MeetingStore
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from meeting_notes.editor import store as reducers
from meeting_notes.editor.client import MeetingNotesClient, RelayRequestError
from meeting_notes.editor.store import MeetingStore
from meeting_notes.editor.templates import (
    build_extraction_prompt,
    build_summary_prompt,
    compose_email,
    format_notes,
    get_template,
    initialize_sections,
    mailto_link,
    merge_sections,
)
from meeting_notes.models.meeting import TemplateType, normalize_template_type
from meeting_notes.utils.helpers import parse_json_block, utc_now

logger = logging.getLogger(__name__)


class EditorError(RuntimeError):
    """The editor cannot run a step in its current state"""


@dataclass
class SaveChoices:
    save_transcript: bool = True
    save_notes: bool = True
    delete_audio: bool = True


class EditorSession:
    def __init__(
        self,
        client: MeetingNotesClient,
        store: Optional[MeetingStore] = None,
        template_type: Any = TemplateType.PROFESSIONAL,
    ):
        self.client = client
        self.store = store or MeetingStore()
        self.template_type = normalize_template_type(template_type)
        self.sections: Dict[str, str] = initialize_sections(self.template_type)
        self.user_notes = ""
        self.audio: Optional[Tuple[bytes, str]] = None

    # --- Meeting & template state ---

    def open_meeting(self, meeting: Dict[str, Any]) -> None:
        self.store.dispatch(reducers.set_current_meeting, meeting)
        self.change_template(meeting.get("template_type"))

    def change_template(self, template_type: Any) -> None:
        self.template_type = normalize_template_type(template_type)
        self.sections = initialize_sections(self.template_type)

    def update_section(self, section_id: str, value: str) -> None:
        self.sections = {**self.sections, section_id: value}

    @property
    def transcript(self) -> str:
        meeting = self.store.current_meeting or {}
        return meeting.get("transcript") or ""

    def formatted_notes(self) -> str:
        return format_notes(self.template_type, self.sections, self.user_notes)

    # --- Relay steps ---

    async def transcribe_and_extract(self, audio: bytes, filename: str = "meeting.webm") -> str:
        """Transcribe a recording, store the transcript, then fill the template"""
        self.audio = (audio, filename)
        result = await self.client.transcribe(audio, filename)
        transcript = result["transcript"]
        self.store.dispatch(reducers.update_meeting, {"transcript": transcript})

        await self.extract_details(transcript)
        return transcript

    async def extract_details(self, transcript: Optional[str] = None) -> Dict[str, str]:
        transcript = transcript or self.transcript
        if not transcript:
            raise EditorError("No transcript available.")

        template = get_template(self.template_type)
        reply = await self.client.generate_summary(
            build_extraction_prompt(self.template_type, transcript), style="professional"
        )
        parsed = parse_json_block(reply, "object")
        if not parsed.ok:
            logger.warning(f"Could not parse template reply: {parsed.error}")
            raise EditorError("Could not parse AI response.")

        extracted = dict(parsed.value)
        if not str(extracted.get(template.summary_key) or "").strip():
            try:
                extracted[template.summary_key] = await self.client.generate_summary(
                    build_summary_prompt(self.template_type, transcript), style="professional"
                )
            except RelayRequestError as e:
                logger.warning(f"Summary fallback failed: {e}")

        self.sections = merge_sections(self.sections, extracted)
        return self.sections

    async def extract_actions(self) -> List[Dict[str, Any]]:
        if not self.transcript:
            raise EditorError("No transcript available. Extract details first.")

        actions = await self.client.extract_actions(self.transcript)
        self.store.dispatch(reducers.set_actions, actions)
        return self.store.actions

    def toggle_action(self, action_id: str) -> None:
        self.store.dispatch(reducers.toggle_action, action_id)

    # --- Output ---

    def export_payload(self) -> Dict[str, Any]:
        meeting = self.store.current_meeting or {}
        return {
            "title": meeting.get("title") or "Meeting",
            "transcript": meeting.get("transcript") or "",
            "notes": self.formatted_notes(),
            "actions": self.store.actions,
        }

    async def export_pdf(self) -> Tuple[str, bytes]:
        return await self.client.export("pdf", self.export_payload())

    async def export_word(self) -> Tuple[str, bytes]:
        return await self.client.export("word", self.export_payload())

    async def create_share_link(self) -> Dict[str, Any]:
        meeting = self.store.current_meeting or {}
        if not meeting.get("id"):
            raise EditorError("Save the meeting before sharing it.")
        return await self.client.create_share_link(meeting["id"])

    def email(self) -> Dict[str, str]:
        meeting = self.store.current_meeting or {}
        message = compose_email(
            meeting.get("title"),
            meeting.get("transcript"),
            self.template_type,
            self.sections,
            self.store.actions,
            self.user_notes,
        )
        message["mailto"] = mailto_link(message["subject"], message["body"])
        return message

    def save_payload(
        self,
        user_id: Optional[str],
        elapsed_seconds: int = 0,
        is_billable: bool = True,
        choices: Optional[SaveChoices] = None,
    ) -> Dict[str, Any]:
        """The row written on save; transcript and notes follow the save choices"""
        meeting = self.store.current_meeting
        if meeting is None:
            raise EditorError("No meeting open.")
        choices = choices or SaveChoices()

        payload: Dict[str, Any] = {
            "id": meeting.get("id"),
            "user_id": user_id,
            "title": meeting.get("title") or "Untitled Meeting",
            "template_type": self.template_type.value,
            "speaker_tags": meeting.get("speaker_tags") or {},
            "duration_minutes": elapsed_seconds // 60,
            "is_billable": is_billable,
            "updated_at": utc_now().isoformat(),
        }
        if choices.save_transcript:
            payload["transcript"] = meeting.get("transcript") or ""
        if choices.save_notes:
            payload["notes"] = self.formatted_notes()
        if choices.delete_audio:
            self.audio = None
        return payload

    # --- Meeting records ---

    async def save(
        self,
        elapsed_seconds: int = 0,
        is_billable: bool = True,
        choices: Optional[SaveChoices] = None,
    ) -> Dict[str, Any]:
        """
        Upsert the open meeting: create it on first save, patch it afterwards,
        then replace its action list with the store's.
        """
        payload = self.save_payload(None, elapsed_seconds, is_billable, choices)
        meeting_id = payload.pop("id")
        for key in ("user_id", "updated_at"):
            payload.pop(key)

        if meeting_id:
            saved = await self.client.update_meeting(meeting_id, payload)
        else:
            saved = await self.client.create_meeting(payload)
            logger.info(f"Meeting created: {saved['id']}")

        saved = await self.client.replace_actions(saved["id"], self.store.actions)
        self.store.dispatch(reducers.set_current_meeting, saved)
        self.store.dispatch(reducers.set_actions, saved["actions"])
        return saved

    async def load_meeting(self, meeting_id: str) -> Dict[str, Any]:
        meeting = await self.client.get_meeting(meeting_id)
        self.open_meeting(meeting)
        self.store.dispatch(reducers.set_actions, meeting.get("actions") or [])
        return meeting

    async def list_meetings(self) -> List[Dict[str, Any]]:
        return await self.client.list_meetings()

    async def delete_meeting(self, meeting_id: str) -> None:
        await self.client.delete_meeting(meeting_id)
        current = self.store.current_meeting or {}
        if current.get("id") == meeting_id:
            self.store.dispatch(reducers.clear_current)
