"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
import asyncio
import io
import os
import subprocess
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from docx import Document
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy import select

from meeting_notes.api.auth import create_access_token
from meeting_notes.config import get_settings
from meeting_notes.main import app
from meeting_notes.models.meeting import Meeting
from meeting_notes.models.meeting_share import MeetingShare
from meeting_notes.services.completion_service import CompletionAPIError, completion_service
from meeting_notes.services import membership_service
from meeting_notes.utils.helpers import utc_now

WHISPER_RUN = "meeting_notes.services.transcription_service.subprocess.run"


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(unauth_client):
    r = await unauth_client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["service"] == "transcription"
    assert body["version"] == get_settings().APP_VERSION
    datetime.fromisoformat(body["timestamp"])


# ===================== AUTH =====================


async def test_protected_route_no_token(unauth_client):
    r = await unauth_client.post("/api/extract-actions", json={"transcript": "hi"})
    assert r.status_code == 401


async def test_protected_route_bad_token(unauth_client):
    r = await unauth_client.post(
        "/api/generate-summary",
        json={"transcript": "hi"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401


def test_access_token_expires_in_the_future():
    token = create_access_token(data={"sub": "user-1"})
    claims = jwt.get_unverified_claims(token)

    remaining = claims["exp"] - utc_now().timestamp()
    minutes = get_settings().ACCESS_TOKEN_EXPIRE_MINUTES
    assert minutes * 60 - 5 < remaining <= minutes * 60


async def test_disabled_auth_lets_requests_through(unauth_client, monkeypatch):
    monkeypatch.setattr(get_settings(), "AUTH_MODE", "disabled")
    r = await unauth_client.post("/api/extract-actions", json={"transcript": ""})
    assert r.status_code == 400


# ===================== TRANSCRIBE =====================


async def test_transcribe_formats_segments(client, work_dirs, fake_whisper):
    whisper_result = {
        "text": " Welcome everyone. Let's start.",
        "segments": [
            {"start": 0.4, "text": " Welcome everyone."},
            {"start": 61.2, "text": " Let's start."},
            {"start": 70.0, "text": "  "},
        ],
    }
    with patch(WHISPER_RUN, side_effect=fake_whisper(whisper_result)):
        r = await client.post(
            "/api/transcribe",
            files={"audio": ("meeting.webm", b"\x1aE\xdf\xa3fake", "audio/webm")},
        )

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["transcript"] == "[00:00] Welcome everyone.\n[01:01] Let's start."
    assert body["text"] == "Welcome everyone. Let's start."
    assert os.listdir(work_dirs["uploads"]) == []


async def test_transcribe_without_file(client):
    with patch(WHISPER_RUN) as run:
        r = await client.post("/api/transcribe", data={"note": "no audio here"})

    assert r.status_code == 400
    assert r.json()["error"] == "No audio file provided"
    run.assert_not_called()


async def test_transcribe_whisper_failure_cleans_up(client, work_dirs):
    error = subprocess.CalledProcessError(1, ["whisper"], stderr="whisper: command failed")
    with patch(WHISPER_RUN, side_effect=error):
        r = await client.post(
            "/api/transcribe",
            files={"audio": ("meeting.mp3", b"ID3fake", "audio/mpeg")},
        )

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Transcription failed"
    assert "command failed" in body["details"]
    assert "openai-whisper" in body["hint"]
    assert os.listdir(work_dirs["uploads"]) == []


async def test_transcribe_too_large(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "MAX_UPLOAD_MB", 0)
    with patch(WHISPER_RUN) as run:
        r = await client.post(
            "/api/transcribe",
            files={"audio": ("meeting.webm", b"x", "audio/webm")},
        )
    assert r.status_code == 413
    run.assert_not_called()


# ===================== GENERATE SUMMARY =====================


async def test_generate_summary(client, completion):
    completion.return_value = "- Budget approved\n- Launch moved to May"

    r = await client.post(
        "/api/generate-summary",
        json={"transcript": "We approved the budget.", "style": "longer"},
    )

    assert r.status_code == 200
    assert r.json() == {"success": True, "summary": "- Budget approved\n- Launch moved to May"}
    prompt = completion.call_args.args[0]
    assert prompt.startswith("Create a detailed 7-10 bullet point summary")
    assert "We approved the budget." in prompt
    assert completion.call_args.kwargs["max_tokens"] == 800
    assert completion.call_args.kwargs["temperature"] == 0.3


async def test_generate_summary_unknown_style_uses_default(client, completion):
    completion.return_value = "ok"
    r = await client.post("/api/generate-summary", json={"transcript": "text", "style": "haiku"})

    assert r.status_code == 200
    assert completion.call_args.args[0].startswith("Create a professional 3-5 bullet point summary.")
    assert completion.call_args.kwargs["max_tokens"] == 500


async def test_generate_summary_blank_transcript(client, completion):
    r = await client.post("/api/generate-summary", json={"transcript": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == "No transcript provided"
    completion.assert_not_awaited()


async def test_generate_summary_without_credential(client):
    with patch.object(completion_service, "_available", False), \
            patch.object(completion_service, "complete", new_callable=AsyncMock) as complete:
        r = await client.post("/api/generate-summary", json={"transcript": "text"})

    assert r.status_code == 500
    assert "not configured" in r.json()["error"]
    complete.assert_not_awaited()


async def test_generate_summary_upstream_error(client, completion):
    completion.side_effect = CompletionAPIError("rate_limit_error: slow down", status_code=429)
    r = await client.post("/api/generate-summary", json={"transcript": "text"})

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate summary"
    assert "slow down" in r.json()["details"]


# ===================== EXTRACT ACTIONS =====================


async def test_extract_actions_from_prose_reply(client, completion):
    completion.return_value = (
        'Here you go:\n[{"action_text":"Ship v2","assignee":"Sam",'
        '"due_date":"2025-10-26","speaker":"Sam"}]\nDone.'
    )

    r = await client.post("/api/extract-actions", json={"transcript": "Sam: I'll ship v2 by Sunday."})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert len(body["actions"]) == 1
    action = body["actions"][0]
    assert {k: action[k] for k in ("action_text", "assignee", "due_date", "speaker")} == {
        "action_text": "Ship v2",
        "assignee": "Sam",
        "due_date": "2025-10-26",
        "speaker": "Sam",
    }
    assert action["completed"] is False
    uuid.UUID(action["id"])
    assert completion.call_args.kwargs["max_tokens"] == 1024


async def test_extract_actions_unparseable_reply(client, completion):
    completion.return_value = "Sorry, I could not find anything actionable."
    r = await client.post("/api/extract-actions", json={"transcript": "Just chatting."})

    assert r.status_code == 200
    assert r.json() == {"success": True, "actions": []}


async def test_extract_actions_blank_transcript(client, completion):
    r = await client.post("/api/extract-actions", json={"transcript": ""})

    assert r.status_code == 400
    assert r.json() == {"error": "No transcript provided", "actions": []}
    completion.assert_not_awaited()


async def test_extract_actions_missing_field(client, completion):
    r = await client.post("/api/extract-actions", json={})
    assert r.status_code == 400
    assert r.json()["actions"] == []


async def test_extract_actions_without_credential(client):
    with patch.object(completion_service, "_available", False):
        r = await client.post("/api/extract-actions", json={"transcript": "text"})
    assert r.status_code == 500
    assert r.json()["actions"] == []


async def test_extract_actions_upstream_error(client, completion):
    completion.side_effect = CompletionAPIError("overloaded", status_code=529)
    r = await client.post("/api/extract-actions", json={"transcript": "text"})

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to extract actions"
    assert r.json()["actions"] == []


# ===================== EXPORTS =====================


EXPORT_BODY = {
    "title": "Design Review",
    "transcript": "[00:00] Let's review the mockups.",
    "notes": "Mockups approved",
    "actions": [
        {"id": "a1", "action_text": "Update icons", "assignee": "Ana",
         "due_date": "2025-11-02", "speaker": "Ana", "completed": False},
    ],
}


async def test_export_pdf_and_download(client, unauth_client, work_dirs):
    r = await client.post("/api/export-pdf", json=EXPORT_BODY)

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["filename"].startswith("Design_Review_")
    assert body["filename"].endswith(".pdf")
    assert body["url"] == f"/exports/{body['filename']}"
    assert (work_dirs["exports"] / body["filename"]).exists()

    download = await unauth_client.get(body["url"])
    assert download.status_code == 200
    assert download.content.startswith(b"%PDF")


async def test_export_word_sections(client):
    body = {**EXPORT_BODY, "transcript": ""}
    r = await client.post("/api/export-word", json=body)
    assert r.status_code == 200

    download = await client.get(r.json()["url"])
    texts = [p.text for p in Document(io.BytesIO(download.content)).paragraphs if p.text]
    assert texts[0] == "Design Review"
    assert "Transcript" not in texts
    assert texts[2:] == [
        "Notes",
        "Mockups approved",
        "Action Items",
        "1. Update icons",
        "Assignee: Ana | Due: 2025-11-02",
    ]


async def test_concurrent_exports_same_title(client, work_dirs):
    responses = await asyncio.gather(*[
        client.post("/api/export-pdf", json={"title": "Same Title", "notes": f"copy {i}"})
        for i in range(4)
    ])
    filenames = {r.json()["filename"] for r in responses}

    assert len(filenames) == 4
    assert sorted(os.listdir(work_dirs["exports"])) == sorted(filenames)


async def test_export_title_with_url_characters(client, work_dirs):
    r = await client.post("/api/export-word", json={"title": "Q3 #1 plan? 50%", "notes": "Scope"})
    body = r.json()

    assert body["filename"].startswith("Q3_#1_plan?_50%_")
    assert "#" not in body["url"] and "?" not in body["url"]
    assert (work_dirs["exports"] / body["filename"]).exists()

    download = await client.get(body["url"])
    assert download.status_code == 200
    assert download.content.startswith(b"PK")


async def test_download_missing_export(unauth_client):
    r = await unauth_client.get("/exports/nothing_here.pdf")
    assert r.status_code == 404


async def test_download_outside_export_dir(unauth_client):
    r = await unauth_client.get("/exports/..%2F..%2Fsecrets.txt")
    assert r.status_code in (403, 404)


# ===================== SHARE LINKS =====================


async def test_create_and_resolve_share_link(client, unauth_client, seed_data):
    before = datetime.now(timezone.utc)
    r = await client.post("/api/create-share-link", json={"meetingId": seed_data["meeting"].id})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["shareLink"] == f"{get_settings().FRONTEND_URL}/share/{body['token']}"
    expires_at = datetime.fromisoformat(body["expiresAt"])
    assert timedelta(days=7) <= expires_at - before < timedelta(days=7, seconds=5)

    shared = await unauth_client.get(f"/api/share/{body['token']}")
    assert shared.status_code == 200
    meeting = shared.json()["meeting"]
    assert meeting["title"] == "Weekly Sync"
    assert meeting["speaker_tags"] == {"Speaker 1": "Sam"}


async def test_create_share_link_requires_meeting_id(client):
    r = await client.post("/api/create-share-link", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "Meeting ID is required"


async def test_create_share_link_unknown_meeting(client):
    r = await client.post("/api/create-share-link", json={"meetingId": str(uuid.uuid4())})
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to create share link"


async def test_create_share_link_for_someone_elses_meeting(client, db_session):
    other = Meeting(
        id=str(uuid.uuid4()), user_id="someone-else", title="Private", transcript="secret", actions=[]
    )
    db_session.add(other)
    await db_session.commit()

    r = await client.post("/api/create-share-link", json={"meetingId": other.id})

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to create share link"
    shares = await db_session.execute(select(MeetingShare))
    assert shares.scalars().all() == []


async def test_share_link_not_found(unauth_client):
    r = await unauth_client.get("/api/share/does-not-exist")
    assert r.status_code == 404
    assert r.json()["error"] == "Share link not found"


async def test_share_link_expired(unauth_client, db_session, seed_data):
    share = MeetingShare(
        meeting_id=seed_data["meeting"].id,
        share_token="expired-token",
        expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
    )
    db_session.add(share)
    await db_session.commit()

    r = await unauth_client.get("/api/share/expired-token")
    assert r.status_code == 410
    assert r.json()["error"] == "Share link has expired"


# ===================== MEMBERSHIP =====================


async def test_validate_membership(client):
    r = await client.post("/api/validate-membership", json={"memberId": "mem_42"})
    assert r.status_code == 200
    body = r.json()
    assert body["valid"] is True
    assert body["memberId"] == "mem_42"
    datetime.fromisoformat(body["validatedAt"])


async def test_validate_membership_requires_id(client):
    r = await client.post("/api/validate-membership", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "memberId required"


# ===================== UNHANDLED ERRORS =====================


async def _call_with_crashing_validator(monkeypatch, debug: bool, token: str):
    monkeypatch.setattr(get_settings(), "DEBUG", debug)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    with patch.object(membership_service.membership_service, "validate",
                      new_callable=AsyncMock, side_effect=RuntimeError("secret internals")):
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            return await ac.post(
                "/api/validate-membership",
                json={"memberId": "mem_1"},
                headers={"Authorization": f"Bearer {token}"},
            )


async def test_unhandled_error_is_masked_in_production(monkeypatch, auth_token):
    monkeypatch.setattr(get_settings(), "ENVIRONMENT", "production")
    r = await _call_with_crashing_validator(monkeypatch, debug=False, token=auth_token)

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error", "message": "An error occurred"}


async def test_unhandled_error_is_echoed_in_development(monkeypatch, auth_token):
    r = await _call_with_crashing_validator(monkeypatch, debug=True, token=auth_token)

    assert r.status_code == 500
    assert r.json()["message"] == "secret internals"


# ===================== MEETINGS =====================


async def test_create_meeting_normalizes_legacy_template(client):
    r = await client.post("/api/meetings/", json={
        "title": "Morning standup",
        "template_type": "daily-standup",
        "speaker_tags": {"Speaker 1": "Ana", "Speaker 2": "Ben"},
    })

    assert r.status_code == 200
    body = r.json()
    assert body["template_type"] == "professional"
    assert body["is_billable"] is True
    assert body["actions"] == []


async def test_list_and_get_meetings(client, seed_data):
    r = await client.get("/api/meetings/")
    assert r.status_code == 200
    assert [m["id"] for m in r.json()] == [seed_data["meeting"].id]

    r = await client.get(f"/api/meetings/{seed_data['meeting'].id}")
    assert r.status_code == 200
    assert r.json()["title"] == "Weekly Sync"


async def test_meetings_are_owner_scoped(client, db_session):
    other = Meeting(id=str(uuid.uuid4()), user_id="someone-else", title="Private", actions=[])
    db_session.add(other)
    await db_session.commit()

    r = await client.get(f"/api/meetings/{other.id}")
    assert r.status_code == 404


async def test_update_meeting(client, seed_data):
    r = await client.patch(f"/api/meetings/{seed_data['meeting'].id}", json={
        "notes": "EXTRACTED DETAILS:\n\nDecisions Made:\nShip it",
        "template_type": "study-group",
        "duration_minutes": 45,
    })

    assert r.status_code == 200
    body = r.json()
    assert body["template_type"] == "study-group"
    assert body["duration_minutes"] == 45
    assert body["title"] == "Weekly Sync"


async def test_replace_actions_wholesale(client, seed_data):
    meeting_id = seed_data["meeting"].id
    first = [
        {"action_text": "Draft agenda", "assignee": "Ana", "due_date": "2025-11-01"},
        {"action_text": "Book room"},
    ]
    r = await client.put(f"/api/meetings/{meeting_id}/actions", json=first)
    assert r.status_code == 200
    assert [a["action_text"] for a in r.json()["actions"]] == ["Draft agenda", "Book room"]
    assert r.json()["actions"][1]["assignee"] == "Unassigned"

    r = await client.put(f"/api/meetings/{meeting_id}/actions", json=[
        {"action_text": "Send recap", "due_date": "someday", "completed": True},
    ])
    actions = r.json()["actions"]
    assert len(actions) == 1
    assert actions[0]["action_text"] == "Send recap"
    assert actions[0]["due_date"] is None
    assert actions[0]["completed"] is True


async def test_delete_meeting(client, seed_data):
    meeting_id = seed_data["meeting"].id
    await client.post("/api/create-share-link", json={"meetingId": meeting_id})

    r = await client.delete(f"/api/meetings/{meeting_id}")
    assert r.status_code == 200

    r = await client.get(f"/api/meetings/{meeting_id}")
    assert r.status_code == 404
