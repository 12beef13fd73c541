"""
Configuration and settings for the post backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

UPLOAD_SETTING_NAMES = (
    "S3_UPLOAD_KEY",
    "S3_UPLOAD_SECRET",
    "S3_UPLOAD_REGION",
    "S3_UPLOAD_ENDPOINT",
    "S3_UPLOAD_BUCKET",
)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # S3-compatible upload storage
    s3_upload_key: Optional[str] = Field(default=None)
    s3_upload_secret: Optional[str] = Field(default=None)
    s3_upload_region: Optional[str] = Field(default=None)
    s3_upload_endpoint: Optional[str] = Field(default=None)
    s3_upload_bucket: Optional[str] = Field(default=None)
    upload_expires_in: int = Field(default=60 * 60)

    def missing_upload_settings(self) -> list[str]:
        """Return the env names of upload settings that are unset or empty."""
        return [
            name for name in UPLOAD_SETTING_NAMES if not getattr(self, name.lower())
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
