"""
Configuration management for Meeting Notes AI
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Meeting Notes AI"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    PORT: int = 3001

    # Public URLs
    FRONTEND_URL: str = "http://localhost:3000"
    PUBLIC_BACKEND_URL: str = "http://localhost:3001"
    ALLOWED_ORIGINS: list[str] = [
        "https://whop.com",
        "https://*.whop.com",
        "http://localhost:3000",  # dev
    ]

    # Database (Supabase Postgres in production)
    DATABASE_URL: str = "sqlite:///./meeting_notes.db"

    # Auth - bearer tokens are JWTs issued by the auth provider
    AUTH_MODE: str = "enforced"  # "enforced" or "disabled"
    AUTH_JWT_SECRET: str = "dev-secret-key-change-in-production"
    AUTH_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Claude API
    ANTHROPIC_API_KEY: str = ""
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"
    CLAUDE_MAX_TOKENS: int = 1024

    # Whisper CLI
    WHISPER_COMMAND: str = "whisper"
    WHISPER_MODEL: str = "small"
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 100

    # Exports & sharing
    EXPORT_DIR: str = "exports"
    SHARE_LINK_TTL_DAYS: int = 7

    # Whop membership API
    WHOP_API_KEY: str = ""
    WHOP_API_URL: str = "https://api.whop.com/api/v2"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT == "development"

    @property
    def auth_enforced(self) -> bool:
        return self.AUTH_MODE != "disabled"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
