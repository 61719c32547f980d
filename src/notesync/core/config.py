"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Server env vars:
        DATABASE_URL (local SQLite file), JWT_SECRET, JWT_ALGORITHM (HS256),
        JWT_ACCESS_TOKEN_EXPIRE_MINUTES (60 * 24)

    Client env vars:
        SYNC_API_URL, SYNC_INTERVAL_SECONDS (30), SYNC_HTTP_TIMEOUT (10),
        AUTOSAVE_DELAY_SECONDS (1.0), DELETION_GUARD_TTL_SECONDS (600),
        DELETION_GUARD_MAXSIZE (1024), LOCAL_STORE_URL

    Shared:
        LOG_LEVEL (INFO)
    """

    PROJECT_NAME: str = "NoteSync"

    # Database (authoritative note table)
    DATABASE_URL: str = "sqlite+aiosqlite:///./notesync.db"

    # Bearer credentials
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Sync client
    SYNC_API_URL: str = "http://localhost:8000/api/v1/notes"
    SYNC_INTERVAL_SECONDS: float = 30.0
    SYNC_HTTP_TIMEOUT: float = 10.0
    AUTOSAVE_DELAY_SECONDS: float = 1.0
    DELETION_GUARD_TTL_SECONDS: float = 600.0
    DELETION_GUARD_MAXSIZE: int = 1024
    LOCAL_STORE_URL: str = "sqlite+aiosqlite:///./notesync-local.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )


settings = Settings()
