"""
General helper utilities
"""
import json
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(seconds: float) -> str:
    """Format a segment offset in seconds as MM:SS"""
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins:02d}:{secs:02d}"


def parse_iso_date(value: Any) -> Optional[str]:
    """Return value if it is an ISO calendar date (YYYY-MM-DD), else None"""
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        return None


# ─── Permissive JSON extraction from LLM replies ───

@dataclass(frozen=True)
class JsonParseResult:
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


_BLOCK_PATTERNS = {
    "array": re.compile(r"\[[\s\S]*\]"),
    "object": re.compile(r"\{[\s\S]*\}"),
}
_OPENERS = {"array": "[", "object": "{"}
_EXPECTED_TYPES = {"array": list, "object": dict}


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _scan_for_block(text: str, kind: str) -> Optional[Any]:
    """Try every opener position until one decodes to the expected type."""
    decoder = json.JSONDecoder()
    opener = _OPENERS[kind]
    start = text.find(opener)
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, _EXPECTED_TYPES[kind]):
            return value
        start = text.find(opener, start + 1)
    return None


def parse_json_block(text: Any, kind: str = "array") -> JsonParseResult:
    """
    Pull a JSON array or object out of free-form model output.

    The widest span from the first opener to the last closer is tried first,
    then each opener position in turn. If the text has no opener at all the
    whole reply is parsed. Never raises on bad input.
    """
    if kind not in _BLOCK_PATTERNS:
        raise ValueError(f"Unsupported JSON block kind: {kind}")
    if not isinstance(text, str) or not text.strip():
        return JsonParseResult(error="empty reply")

    cleaned = _strip_code_fences(text)
    expected = _EXPECTED_TYPES[kind]

    match = _BLOCK_PATTERNS[kind].search(cleaned)
    candidate = match.group(0) if match else cleaned
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        value = _scan_for_block(cleaned, kind) if match else None
        if value is None:
            return JsonParseResult(error=f"invalid JSON: {e}")

    if not isinstance(value, expected):
        return JsonParseResult(error=f"expected a JSON {kind}, got {type(value).__name__}")
    return JsonParseResult(value=value)
