"""Sync job storage."""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import structlog

from core.config import Settings
from schemas.sync_job import SyncJob

logger = structlog.get_logger(__name__)


class JobStore(ABC):
    """Keyed store of SyncJob records.

    ``update`` is a read-modify-write of the whole record under a lock:
    progress never decreases and terminal jobs are never modified.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @abstractmethod
    def _load(self, job_id: str) -> SyncJob | None:
        """Read one record."""

    @abstractmethod
    def _save(self, job: SyncJob) -> None:
        """Write one record, replacing any previous version."""

    @abstractmethod
    def _load_all(self) -> list[SyncJob]:
        """Read every record."""

    def create(self, job: SyncJob) -> SyncJob:
        with self._lock:
            if self._load(job.job_id) is not None:
                raise ValueError(f"Job already exists: {job.job_id}")
            self._save(job)
        return job

    def get(self, job_id: str) -> SyncJob | None:
        return self._load(job_id)

    def update(self, job_id: str, **changes: Any) -> SyncJob:
        """Apply field changes to a job and return the new snapshot.

        Raises:
            KeyError: Unknown job id
        """
        with self._lock:
            current = self._load(job_id)
            if current is None:
                raise KeyError(job_id)

            if current.status.is_terminal:
                logger.warning(
                    "Ignoring update to finished job",
                    job_id=job_id,
                    status=current.status,
                    changes=sorted(changes),
                )
                return current

            if "progress" in changes:
                changes["progress"] = max(current.progress, changes["progress"])

            data = current.model_dump()
            data.update(changes)
            updated = SyncJob.model_validate(data)
            self._save(updated)
            return updated

    def list(self) -> list[SyncJob]:
        """All jobs, most recently started first."""
        return sorted(self._load_all(), key=lambda j: j.started_at, reverse=True)


class MemoryJobStore(JobStore):
    """Process-lifetime job store."""

    def __init__(self) -> None:
        super().__init__()
        self._jobs: dict[str, SyncJob] = {}

    def _load(self, job_id: str) -> SyncJob | None:
        return self._jobs.get(job_id)

    def _save(self, job: SyncJob) -> None:
        self._jobs[job.job_id] = job

    def _load_all(self) -> list[SyncJob]:
        return list(self._jobs.values())


class FileJobStore(JobStore):
    """File-based job store that survives restarts.

    Structure:
        base_dir/
            {job_id}.json
    """

    def __init__(self, base_dir: str | Path) -> None:
        super().__init__()
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, job_id: str) -> Path:
        return self.base_dir / f"{job_id}.json"

    def _load(self, job_id: str) -> SyncJob | None:
        path = self._path(job_id)
        if not path.exists():
            return None
        with open(path) as f:
            return SyncJob.model_validate(json.load(f))

    def _save(self, job: SyncJob) -> None:
        path = self._path(job.job_id)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(job.model_dump(mode="json"), f, indent=2)
        tmp.replace(path)

    def _load_all(self) -> list[SyncJob]:
        jobs = []
        for path in self.base_dir.glob("*.json"):
            with open(path) as f:
                jobs.append(SyncJob.model_validate(json.load(f)))
        return jobs


def create_job_store(settings: Settings) -> JobStore:
    if settings.job_store == "file":
        return FileJobStore(settings.jobs_dir)
    if settings.job_store == "memory":
        return MemoryJobStore()
    raise ValueError(f"Unknown job store: {settings.job_store}")
