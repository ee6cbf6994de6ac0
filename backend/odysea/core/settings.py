from functools import lru_cache
from pathlib import Path
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_GEMINI_KEY = "your-gemini-api-key"


class Settings(BaseSettings):
    # Database
    DB_URL: str = "postgresql://postgres:password@db:5432/odysea"
    DB_ECHO: bool = False  # Set to True for SQL query logging in development

    # Connection Pool Settings
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # External services
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    UNSPLASH_ACCESS_KEY: str = ""
    EXTERNAL_TIMEOUT_SECONDS: float = 30.0

    # Rate Limiting
    ENABLE_RATE_LIMITING: bool = True
    RATE_LIMIT_GENERATE: str = "5/minute"

    # Application Settings
    MAX_ITINERARY_DAYS: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"

    # CORS
    APP_ORIGIN: Union[List[str], str] = ["http://localhost:5173"]

    @field_validator("APP_ORIGIN", mode="before")
    @classmethod
    def parse_app_origin(cls, v):
        """Parse APP_ORIGIN from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Security
    JWT_SECRET: str = "change_me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parents[3] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @property
    def live_generation_enabled(self) -> bool:
        """True when a real Gemini credential is configured"""
        key = (self.GEMINI_API_KEY or "").strip()
        return bool(key) and key != PLACEHOLDER_GEMINI_KEY


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process; the result is read-only."""
    return Settings()
