"""Document schemas on both sides of the transfer: source files and engine files."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from .base import BaseSchema


class SourceFile(BaseSchema):
    """A file listed by the document source (e.g. a Drive file)."""

    id: str
    name: str
    mime_type: str = "application/octet-stream"
    size: int | None = Field(None, ge=0, description="Size in bytes if known")
    modified_time: datetime | None = None
    web_view_link: str | None = None


class DocumentState(StrEnum):
    """Processing state of a file held by the extraction engine."""

    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


class UploadedDocument(BaseSchema):
    """Engine-side file handle returned after upload."""

    name: str = Field(..., description="Opaque engine-assigned handle, e.g. files/abc123")
    display_name: str
    mime_type: str = "application/octet-stream"
    size_bytes: int = Field(default=0, ge=0)
    state: DocumentState = DocumentState.PROCESSING
    create_time: datetime | None = None
    uri: str | None = None
    metadata: dict[str, str | int | float] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.state == DocumentState.ACTIVE
