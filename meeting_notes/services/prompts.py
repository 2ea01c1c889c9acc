"""
Prompts for the summary and action-extraction relays
"""
from datetime import date
from typing import Optional

DEFAULT_STYLE = "professional"

STYLE_INSTRUCTIONS = {
    "shorter": "Create a very brief 2-3 bullet point summary.",
    "longer": "Create a detailed 7-10 bullet point summary with comprehensive details.",
    "casual": "Create a summary in a casual, conversational tone with 3-5 bullet points.",
    "professional": "Create a professional 3-5 bullet point summary.",
}

SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 500
SUMMARY_MAX_TOKENS_LONG = 800

ACTIONS_TEMPERATURE = 0.3
ACTIONS_MAX_TOKENS = 1024


SUMMARY_PROMPT = """{instruction}

Focus on key decisions, outcomes, and next steps.

TRANSCRIPT:
{transcript}

Summary:"""


ACTION_EXTRACTION_PROMPT = """You are an AI assistant that extracts action items from meeting transcripts.

Analyze the following meeting transcript and extract ALL action items. Look for:
- "I'll..." statements
- "Let's..." statements
- "We should..." statements
- "@mentions" or names followed by tasks
- Explicit commitments or tasks

For each action item, extract:
1. The action text (what needs to be done)
2. The assignee (who should do it - if not mentioned, use "Unassigned")
3. The due date (IMPORTANT: Parse time references like "tomorrow", "next 2 hours", "by end of day", "Friday" into actual dates. Use today's date as reference: {today}. If no time mentioned, use null)
4. The speaker (who said it)

Return ONLY valid JSON array with this format:
[
  {{
    "action_text": "Fix the bug in login page",
    "assignee": "John",
    "due_date": "2025-10-25",
    "speaker": "Speaker 1"
  }}
]

TRANSCRIPT:
{transcript}

Extract actions and parse all time references into YYYY-MM-DD format:"""


def resolve_style(style: Optional[str]) -> str:
    return style if style in STYLE_INSTRUCTIONS else DEFAULT_STYLE


def build_summary_prompt(transcript: str, style: Optional[str]) -> str:
    instruction = STYLE_INSTRUCTIONS[resolve_style(style)]
    return SUMMARY_PROMPT.format(instruction=instruction, transcript=transcript)


def summary_max_tokens(style: Optional[str]) -> int:
    return SUMMARY_MAX_TOKENS_LONG if style == "longer" else SUMMARY_MAX_TOKENS


def build_action_prompt(transcript: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return ACTION_EXTRACTION_PROMPT.format(today=today.isoformat(), transcript=transcript)
