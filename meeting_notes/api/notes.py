"""
Note and action-item relays backed by the completion API
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meeting_notes.api.auth import AuthUser, get_current_user
from meeting_notes.services import completion_service as completion
from meeting_notes.services.action_extraction import parse_action_reply
from meeting_notes.services.completion_service import CompletionAPIError, CompletionNotConfigured
from meeting_notes.services.prompts import (
    ACTIONS_MAX_TOKENS,
    ACTIONS_TEMPERATURE,
    SUMMARY_TEMPERATURE,
    build_action_prompt,
    build_summary_prompt,
    summary_max_tokens,
)
from meeting_notes.utils.errors import RelayError

logger = logging.getLogger(__name__)

router = APIRouter()


class SummaryRequest(BaseModel):
    transcript: Optional[str] = None
    style: Optional[str] = None


class ActionsRequest(BaseModel):
    transcript: Optional[str] = None


@router.post("/generate-summary")
async def generate_summary(
    body: SummaryRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    """Summarize a transcript, or answer any JSON-producing prompt passed as the transcript"""
    if not body.transcript or not body.transcript.strip():
        raise RelayError(400, "No transcript provided")

    service = completion.completion_service
    if not service.is_available:
        raise RelayError(500, "Completion API key not configured")

    logger.info(f"Generating summary with style: {body.style}")
    try:
        summary = await service.complete(
            build_summary_prompt(body.transcript, body.style),
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=summary_max_tokens(body.style),
        )
    except CompletionNotConfigured as e:
        raise RelayError(500, "Completion API key not configured") from e
    except CompletionAPIError as e:
        logger.error(f"Summary generation error: {e.message}")
        raise RelayError(500, "Failed to generate summary", details=f"Completion API error: {e.message}") from e
    except Exception as e:
        logger.exception("Summary generation error")
        raise RelayError(500, "Failed to generate summary", details=str(e)) from e

    return {"success": True, "summary": summary}


@router.post("/extract-actions")
async def extract_actions(
    body: ActionsRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    """Pull action items out of a transcript"""
    if not body.transcript or not body.transcript.strip():
        raise RelayError(400, "No transcript provided", actions=[])

    service = completion.completion_service
    if not service.is_available:
        raise RelayError(500, "Completion API key not configured", actions=[])

    logger.info("Extracting actions from transcript...")
    try:
        reply = await service.complete(
            build_action_prompt(body.transcript),
            temperature=ACTIONS_TEMPERATURE,
            max_tokens=ACTIONS_MAX_TOKENS,
        )
    except CompletionNotConfigured as e:
        raise RelayError(500, "Completion API key not configured", actions=[]) from e
    except CompletionAPIError as e:
        logger.error(f"Action extraction error: {e.message}")
        raise RelayError(
            500, "Failed to extract actions", details=f"Completion API error: {e.message}", actions=[]
        ) from e
    except Exception as e:
        logger.exception("Action extraction error")
        raise RelayError(500, "Failed to extract actions", details=str(e), actions=[]) from e

    logger.debug(f"Raw completion reply: {reply}")
    actions = parse_action_reply(reply)
    logger.info(f"Extracted {len(actions)} actions")
    return {"success": True, "actions": actions}
