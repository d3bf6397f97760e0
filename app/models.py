"""Request bodies for the HTTP API."""

from enum import StrEnum

from pydantic import Field

from schemas.base import BaseSchema, HttpUrl
from schemas.lead import Lead


class SyncRequest(BaseSchema):
    folder_id: str | None = None
    max_documents: int = Field(default=100, ge=0)
    incremental: bool = False


class LeadSearchRequest(BaseSchema):
    query: str = Field(..., min_length=1)
    max_leads: int = Field(default=50, ge=1)
    min_confidence: float = Field(default=0.6, ge=0, le=1)


class ExportFormat(StrEnum):
    CSV = "csv"
    JSON = "json"


class LeadExportRequest(BaseSchema):
    leads: list[Lead]
    format: ExportFormat = ExportFormat.CSV


class ChatMessage(BaseSchema):
    role: str = "user"
    content: str = ""


class ChatRequest(BaseSchema):
    messages: list[ChatMessage] = Field(..., min_length=1)

    @property
    def last_user_text(self) -> str:
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return ""


class WebsiteAnalysisRequest(BaseSchema):
    url: HttpUrl
