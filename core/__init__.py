"""Core infrastructure: config, logging, and utilities."""

from core.config import ConfigurationError, Settings, load_settings
from core.ids import generate_job_id, safe_filename
from core.logging import configure_logging

__all__ = [
    "ConfigurationError",
    "Settings",
    "load_settings",
    "configure_logging",
    "generate_job_id",
    "safe_filename",
]
