"""
Test fixtures - in-memory SQLite database + authenticated HTTP client
"""
import json
import os
import subprocess
import uuid
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from meeting_notes.config import get_settings
from meeting_notes.database import Base, get_db
from meeting_notes.main import app
from meeting_notes.api.auth import create_access_token
from meeting_notes.models.meeting import Meeting, TemplateType
from meeting_notes.services.completion_service import completion_service

TEST_USER_ID = "user-test-1"


@pytest.fixture(autouse=True)
def work_dirs(tmp_path, monkeypatch):
    """Point uploads and exports at a per-test temp directory"""
    settings = get_settings()
    uploads = tmp_path / "uploads"
    exports = tmp_path / "exports"
    uploads.mkdir()
    exports.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(uploads))
    monkeypatch.setattr(settings, "EXPORT_DIR", str(exports))
    monkeypatch.setattr(settings, "AUTH_MODE", "enforced")
    return {"uploads": uploads, "exports": exports}


@pytest.fixture()
def completion():
    """Completion API that is configured but never leaves the process"""
    with patch.object(completion_service, "_available", True), \
            patch.object(completion_service, "complete", new_callable=AsyncMock) as mock:
        yield mock


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: one meeting owned by the test user"""
    meeting = Meeting(
        id=str(uuid.uuid4()),
        user_id=TEST_USER_ID,
        title="Weekly Sync",
        transcript="[00:01] Sam: I'll ship v2 by Friday.",
        notes="",
        speaker_tags={"Speaker 1": "Sam"},
        duration_minutes=30,
        template_type=TemplateType.PROFESSIONAL,
        actions=[],
    )
    db_session.add(meeting)
    await db_session.commit()

    return {"user_id": TEST_USER_ID, "meeting": meeting}


@pytest.fixture()
def auth_token():
    return create_access_token(data={"sub": TEST_USER_ID, "email": "test@example.com"})


@pytest.fixture()
def api_transport(db_session):
    """ASGI transport bound to the app with the test database"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield ASGITransport(app=app)
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(api_transport, auth_token):
    """Authenticated httpx AsyncClient bound to the FastAPI app"""
    async with AsyncClient(transport=api_transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {auth_token}"
        yield ac


@pytest_asyncio.fixture()
async def unauth_client(api_transport):
    """Unauthenticated httpx AsyncClient"""
    async with AsyncClient(transport=api_transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac


@pytest.fixture()
def fake_whisper():
    """Factory for a subprocess.run stand-in that writes whisper's JSON next to the upload"""

    def factory(result):
        def run(cmd, **kwargs):
            audio_path = cmd[1]
            output_dir = cmd[cmd.index("--output_dir") + 1]
            stem = os.path.splitext(os.path.basename(audio_path))[0]
            with open(os.path.join(output_dir, f"{stem}.json"), "w", encoding="utf-8") as f:
                json.dump(result, f)
            return subprocess.CompletedProcess(cmd, 0, stdout="done", stderr="")

        return run

    return factory
