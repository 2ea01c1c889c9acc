"""
Async HTTP client for the relay and meeting-record endpoints
"""
from typing import Any, Dict, List, Optional, Tuple

import httpx


class RelayRequestError(RuntimeError):
    def __init__(self, status_code: int, message: str, body: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}


class MeetingNotesClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        # Transcription has no server-side timeout, so none here either by default
        self._client = httpx.AsyncClient(
            base_url=base_url, headers=headers, transport=transport, timeout=timeout
        )

    async def __aenter__(self) -> "MeetingNotesClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _json(self, response: httpx.Response, fallback: str) -> Any:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_error:
            message = body.get("details") or body.get("error") or body.get("detail") or fallback
            raise RelayRequestError(response.status_code, str(message), body)
        return body

    async def transcribe(self, audio: bytes, filename: str = "meeting.webm", content_type: str = "audio/webm") -> Dict[str, Any]:
        response = await self._client.post(
            "/api/transcribe", files={"audio": (filename, audio, content_type)}
        )
        return await self._json(response, "Transcription failed")

    async def generate_summary(self, transcript: str, style: str = "professional") -> str:
        response = await self._client.post(
            "/api/generate-summary", json={"transcript": transcript, "style": style}
        )
        return (await self._json(response, "Failed to generate summary"))["summary"]

    async def extract_actions(self, transcript: str) -> List[Dict[str, Any]]:
        response = await self._client.post("/api/extract-actions", json={"transcript": transcript})
        return (await self._json(response, "Failed to extract actions")).get("actions") or []

    async def export(self, kind: str, payload: Dict[str, Any]) -> Tuple[str, bytes]:
        """Render on the server, then download the file; kind is 'pdf' or 'word'"""
        response = await self._client.post(f"/api/export-{kind}", json=payload)
        data = await self._json(response, f"{kind} export failed")

        file_response = await self._client.get(data["url"])
        if file_response.is_error:
            raise RelayRequestError(file_response.status_code, "Export download failed")
        return data["filename"], file_response.content

    async def create_share_link(self, meeting_id: str) -> Dict[str, Any]:
        response = await self._client.post("/api/create-share-link", json={"meetingId": meeting_id})
        return await self._json(response, "Failed to create share link")

    async def get_shared_meeting(self, token: str) -> Dict[str, Any]:
        response = await self._client.get(f"/api/share/{token}")
        return (await self._json(response, "Failed to retrieve shared meeting"))["meeting"]

    # --- Meeting records ---

    async def create_meeting(self, meeting: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.post("/api/meetings/", json=meeting)
        return await self._json(response, "Failed to save meeting")

    async def list_meetings(self) -> List[Dict[str, Any]]:
        response = await self._client.get("/api/meetings/")
        return await self._json(response, "Failed to load meetings")

    async def get_meeting(self, meeting_id: str) -> Dict[str, Any]:
        response = await self._client.get(f"/api/meetings/{meeting_id}")
        return await self._json(response, "Failed to load meeting")

    async def update_meeting(self, meeting_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.patch(f"/api/meetings/{meeting_id}", json=updates)
        return await self._json(response, "Failed to save meeting")

    async def replace_actions(self, meeting_id: str, actions: List[Dict[str, Any]]) -> Dict[str, Any]:
        response = await self._client.put(f"/api/meetings/{meeting_id}/actions", json=actions)
        return await self._json(response, "Failed to save action items")

    async def delete_meeting(self, meeting_id: str) -> None:
        response = await self._client.delete(f"/api/meetings/{meeting_id}")
        await self._json(response, "Failed to delete meeting")
