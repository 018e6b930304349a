from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "SylMan"
    debug: bool = False
    log_level: str = "INFO"

    # Syllabus store (REST document API)
    api_url: str = "http://localhost:3000"
    request_timeout: float = 30.0

    # Autosave
    autosave_interval_seconds: float = 60.0
    status_clear_seconds: float = 5.0
    status_history_size: int = 200

    # Form limits
    max_modules: int = 20
    max_instructors: int = 9

    # Scalars that must be non-empty on a manual save
    required_fields: List[str] = ["courseTitle", "programSelect", "courseNumber"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SYLMAN_",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
