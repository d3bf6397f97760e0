"""Drive sync job schemas."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from .base import BaseSchema


class SyncStatus(StrEnum):
    """Stage of a sync job. COMPLETED and FAILED are terminal."""

    SCANNING = "scanning"
    DOWNLOADING = "downloading"
    UPLOADING = "uploading"
    INDEXING = "indexing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SyncStatus.COMPLETED, SyncStatus.FAILED)


STATUS_MESSAGES: dict[SyncStatus, str] = {
    SyncStatus.SCANNING: "Scanning Google Drive folder...",
    SyncStatus.DOWNLOADING: "Downloading documents from Google Drive...",
    SyncStatus.UPLOADING: "Uploading documents to the extraction engine...",
    SyncStatus.INDEXING: "Indexing documents for search...",
    SyncStatus.COMPLETED: "Sync completed successfully!",
    SyncStatus.FAILED: "Sync failed. Please check the error message.",
}


class SyncJob(BaseSchema):
    """Progress record for one folder sync run."""

    job_id: str
    folder_id: str
    status: SyncStatus = SyncStatus.SCANNING
    files_found: int = Field(default=0, ge=0)
    files_processed: int = Field(default=0, ge=0)
    files_failed: int = Field(default=0, ge=0)
    progress: float = Field(default=0.0, ge=0, le=100)
    incremental: bool = False
    started_at: datetime
    completed_at: datetime | None = None
    error: str | None = None

    @property
    def status_message(self) -> str:
        return STATUS_MESSAGES.get(self.status, "Processing...")
