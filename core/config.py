"""Configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SUPPORTED_EXTENSIONS = [".pdf", ".docx", ".doc", ".txt", ".csv", ".xlsx", ".xls"]

DEFAULT_SUPPORTED_MIME_TYPES = [
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
    "text/plain",
    "text/csv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
]


class ConfigurationError(Exception):
    """Raised when a client cannot be built from the current configuration."""


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Extraction engine
    engine_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "engine_api_key", "GOOGLE_GENERATIVE_AI_API_KEY", "GEMINI_API_KEY"
        ),
    )
    gemini_model: str = "gemini-2.5-pro"

    # Document source
    drive_service_account_email: str = Field(
        default="",
        validation_alias=AliasChoices(
            "drive_service_account_email", "GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL"
        ),
    )
    drive_private_key: str = Field(
        default="",
        validation_alias=AliasChoices("drive_private_key", "GOOGLE_DRIVE_PRIVATE_KEY"),
    )
    drive_folder_id: str = Field(
        default="",
        validation_alias=AliasChoices("drive_folder_id", "GOOGLE_DRIVE_FOLDER_ID"),
    )
    supported_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_EXTENSIONS)
    )
    supported_mime_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_MIME_TYPES)
    )

    # Storage
    staging_dir: str = "./data/staging"
    job_store: str = "memory"  # "memory" | "file"
    jobs_dir: str = "./data/jobs"
    sync_cache_path: str = "./data/sync_cache.json"

    # Sync pipeline
    default_max_documents: int = Field(default=100, ge=0)
    upload_max_attempts: int = Field(default=3, ge=1)
    upload_retry_delay: float = Field(default=2.0, ge=0)
    indexing_timeout: float = Field(default=120.0, gt=0)
    indexing_poll_interval: float = Field(default=2.0, gt=0)

    # Lead extraction
    inline_max_files: int = Field(default=10, ge=1)
    inline_max_chars: int = Field(default=50_000, ge=1)
    max_files_per_request: int = Field(default=1, ge=1)
    temperature: float = Field(default=0.2, ge=0, le=2)
    max_output_tokens: int = Field(default=8192, ge=1)
    default_max_leads: int = Field(default=50, ge=1)
    default_min_confidence: float = Field(default=0.6, ge=0, le=1)

    # Website analysis
    website_fetch_timeout: float = Field(default=10.0, gt=0)
    website_max_chars: int = Field(default=30_000, ge=1)
    website_temperature: float = Field(default=0.3, ge=0, le=2)

    # Runtime
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("supported_extensions", mode="after")
    @classmethod
    def _normalize_extensions(cls, v: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]

    @field_validator("drive_private_key", mode="after")
    @classmethod
    def _unescape_private_key(cls, v: str) -> str:
        # Keys pasted into .env files usually carry literal "\n" sequences
        return v.replace("\\n", "\n")

    @property
    def has_engine(self) -> bool:
        """Check if the extraction engine API key is configured."""
        return bool(self.engine_api_key)

    @property
    def has_drive(self) -> bool:
        """Check if Drive service-account credentials are configured."""
        return bool(self.drive_service_account_email and self.drive_private_key)


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from environment, overridden by an optional YAML file.

    Keys in the YAML file use the Settings field names.
    """
    overrides: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}

    return Settings(**overrides)


def snapshot_settings(settings: Settings) -> dict[str, Any]:
    """Create a serializable snapshot of the settings with secrets redacted."""
    data = settings.model_dump(mode="json")
    for key in ("engine_api_key", "drive_private_key"):
        if data.get(key):
            data[key] = "***"
    return data
