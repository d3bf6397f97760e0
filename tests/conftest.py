"""Shared fixtures."""

from __future__ import annotations

import json

import pytest
import structlog

from core.config import Settings

_ENV_KEYS = (
    "GOOGLE_GENERATIVE_AI_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_DRIVE_PRIVATE_KEY",
    "GOOGLE_DRIVE_FOLDER_ID",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_structlog():
    # configure_logging binds the current sys.stderr, which pytest closes
    # after each test's capture; reset so later tests don't log to it.
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        engine_api_key="test-key",
        drive_folder_id="root-folder",
        staging_dir=str(tmp_path / "staging"),
        jobs_dir=str(tmp_path / "jobs"),
        sync_cache_path=str(tmp_path / "sync_cache.json"),
        indexing_timeout=0.2,
        indexing_poll_interval=0.01,
        upload_retry_delay=0.0,
    )


@pytest.fixture
def lead_payload() -> dict:
    return {
        "company": {
            "name": "Acme Corporation",
            "industry": "Technology",
            "size": "50-200 employees",
            "website": "https://www.acme.com",
            "location": "San Francisco, CA, USA",
            "description": "Software development company",
        },
        "contacts": [
            {
                "name": "John Doe",
                "title": "CEO",
                "email": "john.doe@acme.com",
                "phone": "+1-555-0123",
                "linkedin": "https://linkedin.com/in/johndoe",
            },
            {"name": "Jane Roe", "title": "CTO", "email": "jane@acme.com"},
        ],
        "source": "clients.csv",
        "confidence": 0.9,
    }


@pytest.fixture
def completion(lead_payload) -> str:
    return json.dumps({"leads": [lead_payload]})
