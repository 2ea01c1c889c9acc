"""
Main FastAPI application
"""
import os
import re
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meeting_notes.config import get_settings
from meeting_notes.database import engine, Base
from meeting_notes.api import exports, meetings, membership, notes, shares, transcribe
from meeting_notes.utils.errors import RelayError
from meeting_notes.utils.helpers import utc_now
from meeting_notes.utils.logger import get_logger

import meeting_notes.models  # noqa: F401 - register tables on Base.metadata

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    os.makedirs(settings.EXPORT_DIR, exist_ok=True)

    if not settings.auth_enforced:
        logger.warning("AUTH_MODE=disabled - API requests are not authenticated")

    logger.info(f"Frontend: {settings.FRONTEND_URL}")
    logger.info("Ready to transcribe audio files")

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)


def _cors_origins() -> tuple[list[str], Optional[str]]:
    """Split the allow-list into exact origins and a regex for wildcard entries"""
    origins = [o for o in settings.ALLOWED_ORIGINS if o and "*" not in o]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)

    patterns = [
        re.escape(o).replace(r"\*", r"[^/]+")
        for o in settings.ALLOWED_ORIGINS
        if o and "*" in o
    ]
    return origins, ("|".join(patterns) if patterns else None)


allow_origins, allow_origin_regex = _cors_origins()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.is_development else "An error occurred",
        },
    )


# Include routers
app.include_router(transcribe.router, prefix="/api", tags=["Transcription"])
app.include_router(notes.router, prefix="/api", tags=["Notes"])
app.include_router(exports.router, prefix="/api", tags=["Exports"])
app.include_router(exports.files_router, tags=["Exports"])
app.include_router(shares.router, prefix="/api", tags=["Sharing"])
app.include_router(membership.router, prefix="/api", tags=["Membership"])
app.include_router(meetings.router, prefix="/api/meetings", tags=["Meetings"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "service": "transcription",
        "timestamp": utc_now().isoformat(),
        "version": settings.APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "meeting_notes.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG
    )
