from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pathlib import Path
import logging
import urllib.parse

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    PROJECT_NAME: str = "Rev Freelance API"
    PROJECT_VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    SERVER_HOST: str = "http://localhost:8000"
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: Optional[str] = "localhost"
    POSTGRES_USER: Optional[str] = "rev_user"
    POSTGRES_PASSWORD: Optional[str] = "securepassword123" # Default, should be overridden by .env
    POSTGRES_DB: Optional[str] = "rev_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None # Explicit URL wins over the POSTGRES_* parts

    # Security
    SECRET_KEY: str = "a_very_secret_key_that_should_be_strong_and_from_env" # CHANGE THIS IN .ENV
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    SESSION_COOKIE_NAME: str = "rev_session"
    SESSION_COOKIE_SECURE: bool = False

    # Wave
    WAVE_API_BASE_URL: str = "https://api.wave.com"
    WAVE_REQUEST_TIMEOUT: float = 30.0

    # Gemini
    GOOGLE_GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL_NAME: str = "gemini-2.5-flash"

    # Uploads and email
    UPLOAD_DIR: str = str(Path(__file__).resolve().parent.parent.parent / "static" / "uploads")
    MAX_UPLOAD_SIZE_MB: int = 200
    SMTP_TIMEOUT: float = 20.0

    model_config = SettingsConfigDict(
        # Four .parent calls to get to the repository root
        env_file=Path(__file__).resolve().parent.parent.parent.parent / ".env",
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=True
    )

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


settings = Settings()

if not settings.DATABASE_URL:
    if settings.POSTGRES_USER and settings.POSTGRES_PASSWORD and \
       settings.POSTGRES_SERVER and settings.POSTGRES_DB and settings.POSTGRES_PORT:
        encoded_password = urllib.parse.quote_plus(settings.POSTGRES_PASSWORD)
        settings.DATABASE_URL = (
            f"postgresql+asyncpg://{settings.POSTGRES_USER}:{encoded_password}@"
            f"{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}"
        )
    else:
        logger.warning("Database URL could not be constructed. Check POSTGRES environment variables in .env and config defaults.")

if not settings.GOOGLE_GEMINI_API_KEY:
    logger.warning("GOOGLE_GEMINI_API_KEY is not set. AI chat will not work.")
