"""
Whisper CLI wrapper - runs the recognizer on an uploaded file and formats its segments
"""
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

from meeting_notes.config import get_settings
from meeting_notes.utils.helpers import format_timestamp

settings = get_settings()
logger = logging.getLogger(__name__)

NO_SPEECH_MARKER = "No speech detected"
INSTALL_HINT = "Make sure Whisper is installed: pip3 install openai-whisper"


class TranscriptionError(RuntimeError):
    """The recognizer failed or left no output file"""


def format_transcript(result: Dict[str, Any]) -> str:
    """
    One `[MM:SS] text` line per non-blank segment. Falls back to the flat
    text field, then to the no-speech marker.
    """
    segments = result.get("segments")
    lines = []
    if isinstance(segments, list):
        for segment in segments:
            if not isinstance(segment, dict):
                continue
            text = str(segment.get("text") or "").strip()
            if not text:
                continue
            start = float(segment.get("start") or 0)
            lines.append(f"[{format_timestamp(start)}] {text}")

    if lines:
        return "\n".join(lines)

    flat = str(result.get("text") or "").strip()
    return flat or NO_SPEECH_MARKER


class WhisperTranscriber:
    def __init__(
        self,
        command: Optional[str] = None,
        model: Optional[str] = None,
        output_dir: Optional[str] = None,
    ):
        self._command = command
        self._model = model
        self._output_dir = output_dir

    @property
    def command(self) -> str:
        return self._command or settings.WHISPER_COMMAND

    @property
    def model(self) -> str:
        return self._model or settings.WHISPER_MODEL

    @property
    def output_dir(self) -> str:
        return self._output_dir or settings.UPLOAD_DIR

    def build_command(self, audio_path: str) -> list[str]:
        return [
            self.command, audio_path,
            "--output_format", "json",
            "--output_dir", self.output_dir,
            "--model", self.model,
            "--fp16", "False",
        ]

    def find_output(self, audio_path: str) -> Optional[Path]:
        # Whisper names its output after the input stem; upload stems are uuid4 hex
        stem = Path(audio_path).stem
        for name in sorted(os.listdir(self.output_dir)):
            if stem in name and name.endswith(".json"):
                return Path(self.output_dir) / name
        return None

    def transcribe(self, audio_path: str) -> Dict[str, Any]:
        """
        Run whisper synchronously and return its parsed JSON result.
        Blocks for the full recognition; there is no timeout.
        """
        logger.info(f"Transcribing: {audio_path}")
        try:
            completed = subprocess.run(
                self.build_command(audio_path),
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise TranscriptionError(f"Whisper executable not found: {self.command}") from e
        except subprocess.CalledProcessError as e:
            message = (e.stderr or "").strip() or f"whisper exited with status {e.returncode}"
            raise TranscriptionError(message) from e

        logger.debug(f"Whisper output: {completed.stdout}")

        output_path = self.find_output(audio_path)
        if output_path is None:
            logger.error(f"Available files: {os.listdir(self.output_dir)}")
            raise TranscriptionError("Transcription output file not found")

        try:
            with open(output_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise TranscriptionError(f"Could not read transcription output: {e}") from e
        finally:
            remove_quietly(output_path)


def remove_quietly(path) -> None:
    """Best-effort delete; failures are logged, never raised"""
    try:
        if path and os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"Cleanup warning for {path}: {e}")


transcriber = WhisperTranscriber()
