"""Record of previously synced files, for incremental sync."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from schemas.documents import SourceFile


class SyncedFile(BaseModel):
    name: str
    modified_time: datetime | None = None
    engine_file: str | None = None


class SyncCacheData(BaseModel):
    last_sync: datetime | None = None
    synced_files: dict[str, SyncedFile] = Field(default_factory=dict)


class SyncCache:
    """JSON-file cache mapping source file ids to the engine file that holds them.

    With ``path=None`` the cache lives in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self.data = self._read()

    def _read(self) -> SyncCacheData:
        if self.path is None or not self.path.exists():
            return SyncCacheData()
        with open(self.path, encoding="utf-8") as f:
            return SyncCacheData.model_validate(json.load(f))

    def is_stale(self, file: SourceFile) -> bool:
        """Whether the file is new or modified since it was last synced."""
        entry = self.data.synced_files.get(file.id)
        if entry is None:
            return True
        if file.modified_time is None or entry.modified_time is None:
            return True
        return file.modified_time > entry.modified_time

    def previous_handle(self, file_id: str) -> str | None:
        entry = self.data.synced_files.get(file_id)
        return entry.engine_file if entry else None

    def record(self, file: SourceFile, engine_file: str) -> None:
        self.data.synced_files[file.id] = SyncedFile(
            name=file.name,
            modified_time=file.modified_time,
            engine_file=engine_file,
        )

    def save(self) -> None:
        self.data.last_sync = datetime.now(timezone.utc)
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.data.model_dump(mode="json"), f, indent=2)
