"""Extraction engine error taxonomy.

The provider SDKs do not expose a stable typed error hierarchy, so every
provider exception is classified once, at the adapter boundary, into one
of the variants below. Nothing past the adapter inspects message strings.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Category of an engine failure."""

    AUTH = "auth"
    QUOTA = "quota"
    FILE = "file"
    PERMISSION = "permission"
    UNKNOWN = "unknown"


class ExtractionEngineError(Exception):
    """Base class for classified engine failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    status_code: int = 500

    def __init__(self, message: str, original_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_message = original_message or message


class EngineAuthError(ExtractionEngineError):
    """Missing or invalid API key."""

    kind = ErrorKind.AUTH
    status_code = 503


class EngineQuotaError(ExtractionEngineError):
    """Quota exhausted or rate limited."""

    kind = ErrorKind.QUOTA
    status_code = 429


class EngineFileError(ExtractionEngineError):
    """File missing, not yet active, failed processing or invalid."""

    kind = ErrorKind.FILE
    status_code = 409


class EnginePermissionError(ExtractionEngineError):
    """The key is valid but not allowed to touch the resource."""

    kind = ErrorKind.PERMISSION
    status_code = 503


class EngineUnknownError(ExtractionEngineError):
    """Anything not covered above."""

    kind = ErrorKind.UNKNOWN
    status_code = 500


class IndexingTimeoutError(EngineFileError):
    """A file stayed in PROCESSING past the allowed wait."""


_AUTH_MARKERS = ("api key", "api_key", "authentication", "unauthenticated", "unauthorized")
_QUOTA_MARKERS = ("quota", "rate limit", "ratelimit", "resource_exhausted", "too many requests")
_PERMISSION_MARKERS = ("permission", "forbidden", "access denied")
_FILE_MARKERS = ("file", "not found", "not active", "not_found")


def _status_of(exc: BaseException) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_error(exc: BaseException, action: str = "query documents") -> ExtractionEngineError:
    """Map a provider exception onto the engine error taxonomy.

    Args:
        exc: The exception raised by the provider SDK
        action: Short description of what was being attempted, used in messages

    Returns:
        A classified ExtractionEngineError (not raised)
    """
    if isinstance(exc, ExtractionEngineError):
        return exc

    original = str(exc) or exc.__class__.__name__
    text = original.lower()
    status = _status_of(exc)

    if status == 401 or any(m in text for m in _AUTH_MARKERS):
        return EngineAuthError(
            "Invalid or missing API key. Please check the GOOGLE_GENERATIVE_AI_API_KEY "
            "environment variable.",
            original,
        )
    if status == 429 or any(m in text for m in _QUOTA_MARKERS):
        return EngineQuotaError(
            "API quota exceeded or rate limit reached. Please try again later.",
            original,
        )
    if status == 403 or any(m in text for m in _PERMISSION_MARKERS):
        return EnginePermissionError(
            f"Permission denied: {original}. Please check file access permissions.",
            original,
        )
    if status == 404 or any(m in text for m in _FILE_MARKERS):
        return EngineFileError(
            f"File processing error: {original}. Please ensure files are uploaded "
            "and in ACTIVE state.",
            original,
        )
    return EngineUnknownError(f"Failed to {action}: {original}", original)
