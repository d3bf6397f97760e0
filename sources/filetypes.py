"""Supported document types and MIME helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath

from core.config import DEFAULT_SUPPORTED_EXTENSIONS, DEFAULT_SUPPORTED_MIME_TYPES, Settings

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
OCTET_STREAM = "application/octet-stream"

_MIME_BY_EXTENSION = {
    # Documents
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
    ".txt": "text/plain",
    ".rtf": "application/rtf",
    # Spreadsheets
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
    # Presentations
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".ppt": "application/vnd.ms-powerpoint",
    # Data / markup
    ".json": "application/json",
    ".xml": "application/xml",
    ".html": "text/html",
    ".md": "text/markdown",
}

# Types whose raw bytes can be sent inline as prompt text
_TEXT_EXTENSIONS = {".txt", ".csv", ".md", ".json"}


def extension_of(name: str) -> str:
    """Lowercased extension including the dot ('' if none)."""
    return PurePath(name).suffix.lower()


def guess_mime_type(name: str) -> str:
    """MIME type for a file name, falling back to application/octet-stream."""
    return _MIME_BY_EXTENSION.get(extension_of(name), OCTET_STREAM)


def upload_mime_type(name: str, mime_type: str | None = None) -> str:
    """The declared MIME type if it says anything, else a guess from the name."""
    if mime_type and mime_type != OCTET_STREAM:
        return mime_type
    return guess_mime_type(name)


def is_text_document(name: str, mime_type: str | None = None) -> bool:
    """Whether the document can be read as plain text."""
    if extension_of(name) in _TEXT_EXTENSIONS:
        return True
    return bool(mime_type) and mime_type in ("text/plain", "text/csv")


@dataclass(frozen=True)
class FileTypeFilter:
    """Allowlist of supported document types, by extension or MIME type."""

    extensions: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_SUPPORTED_EXTENSIONS)
    )
    mime_types: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_SUPPORTED_MIME_TYPES)
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> FileTypeFilter:
        return cls(
            extensions=frozenset(settings.supported_extensions),
            mime_types=frozenset(settings.supported_mime_types),
        )

    def accepts(self, name: str, mime_type: str | None) -> bool:
        """A file is supported if either its MIME type or its extension is allowed."""
        if mime_type == FOLDER_MIME_TYPE:
            return False
        if mime_type and mime_type in self.mime_types:
            return True
        return extension_of(name) in self.extensions
