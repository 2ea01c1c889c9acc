"""
Turn a model reply into a clean list of action items
"""
import logging
import uuid
from typing import Any, Dict, List

from meeting_notes.utils.helpers import parse_json_block, parse_iso_date

logger = logging.getLogger(__name__)

DEFAULT_ASSIGNEE = "Unassigned"


def normalize_action(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Give one parsed item a fresh id, defaults and a false completion flag"""
    action_text = raw.get("action_text")
    assignee = raw.get("assignee")
    speaker = raw.get("speaker")
    return {
        "id": str(uuid.uuid4()),
        "action_text": str(action_text).strip() if action_text else "No description",
        "assignee": str(assignee).strip() if assignee else DEFAULT_ASSIGNEE,
        "due_date": parse_iso_date(raw.get("due_date")),
        "speaker": str(speaker).strip() if speaker else "",
        "completed": False,
    }


def parse_action_reply(reply: str) -> List[Dict[str, Any]]:
    """An unparseable reply means no actions, not an error"""
    result = parse_json_block(reply, "array")
    if not result.ok:
        logger.warning(f"Could not parse actions as JSON: {result.error}")
        return []

    actions = [normalize_action(item) for item in result.value if isinstance(item, dict)]
    skipped = len(result.value) - len(actions)
    if skipped:
        logger.warning(f"Dropped {skipped} non-object entries from action reply")
    return actions
