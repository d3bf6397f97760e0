"""Extraction engine: file transfer and LLM completions."""

from engine.base import (
    Citation,
    ExtractionEngine,
    FileReferences,
    GenerationContent,
    GenerationOptions,
    GenerationResult,
    InlineText,
)
from engine.errors import (
    EngineAuthError,
    EngineFileError,
    EnginePermissionError,
    EngineQuotaError,
    EngineUnknownError,
    ErrorKind,
    ExtractionEngineError,
    IndexingTimeoutError,
    classify_error,
)
from engine.retry import RetryPolicy

__all__ = [
    "Citation",
    "EngineAuthError",
    "EngineFileError",
    "EnginePermissionError",
    "EngineQuotaError",
    "EngineUnknownError",
    "ErrorKind",
    "ExtractionEngine",
    "ExtractionEngineError",
    "FileReferences",
    "GenerationContent",
    "GenerationOptions",
    "GenerationResult",
    "IndexingTimeoutError",
    "InlineText",
    "RetryPolicy",
    "classify_error",
]
