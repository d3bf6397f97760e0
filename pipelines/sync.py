"""Drive-to-engine sync jobs.

A job runs scan -> download -> upload -> index as a background task.
Per-file failures are counted and skipped; only structural errors (the
folder cannot be listed, a client cannot be built) fail the whole job.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from core.config import ConfigurationError, Settings
from core.ids import generate_job_id
from engine.base import ExtractionEngine
from engine.errors import ExtractionEngineError, IndexingTimeoutError
from pipelines.staging import discard, staging_area
from pipelines.store import JobStore, create_job_store
from pipelines.sync_cache import SyncCache
from schemas.documents import DocumentState, SourceFile, UploadedDocument
from schemas.sync_job import SyncJob, SyncStatus
from sources.base import DocumentSource, DocumentSourceError
from sources.filetypes import FileTypeFilter

logger = structlog.get_logger(__name__)

SourceFactory = Callable[[str], DocumentSource]
EngineFactory = Callable[[], ExtractionEngine]

# Progress bands per stage
SCAN_DONE = 20.0
DOWNLOAD_DONE = 60.0
UPLOAD_DONE = 90.0
COMPLETE = 100.0


class JobCancelled(Exception):
    """Raised inside a job when cancellation was requested."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _band(start: float, end: float, done: int, total: int) -> float:
    if total <= 0:
        return end
    return start + (end - start) * done / total


class SyncJobManager:
    """Owns sync jobs: starts them, tracks their progress and exposes snapshots."""

    def __init__(
        self,
        store: JobStore,
        source_factory: SourceFactory,
        engine_factory: EngineFactory,
        staging_dir: str | Path = "./data/staging",
        sync_cache: SyncCache | None = None,
        file_filter: FileTypeFilter | None = None,
        default_folder_id: str = "",
        indexing_timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> None:
        self.store = store
        self.source_factory = source_factory
        self.engine_factory = engine_factory
        self.staging_dir = Path(staging_dir)
        self.sync_cache = sync_cache or SyncCache()
        self.file_filter = file_filter or FileTypeFilter()
        self.default_folder_id = default_folder_id
        self.indexing_timeout = indexing_timeout
        self.poll_interval = poll_interval

        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._cancelled: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source_factory: SourceFactory,
        engine_factory: EngineFactory,
        store: JobStore | None = None,
    ) -> SyncJobManager:
        return cls(
            store=store or create_job_store(settings),
            source_factory=source_factory,
            engine_factory=engine_factory,
            staging_dir=settings.staging_dir,
            sync_cache=SyncCache(settings.sync_cache_path),
            file_filter=FileTypeFilter.from_settings(settings),
            default_folder_id=settings.drive_folder_id,
            indexing_timeout=settings.indexing_timeout,
            poll_interval=settings.indexing_poll_interval,
        )

    # -- public API -------------------------------------------------------

    def start_sync(
        self,
        folder_id: str | None = None,
        max_documents: int = 100,
        incremental: bool = False,
    ) -> str:
        """Create a job in ``scanning`` state and run it in the background.

        Must be called from within a running event loop.

        Raises:
            ConfigurationError: No folder id given and none configured
        """
        target = folder_id or self.default_folder_id
        if not target:
            raise ConfigurationError("Folder ID is required (or set GOOGLE_DRIVE_FOLDER_ID)")

        job = SyncJob(
            job_id=generate_job_id(),
            folder_id=target,
            incremental=incremental,
            started_at=_now(),
        )
        self.store.create(job)

        task = asyncio.get_running_loop().create_task(
            self._run(job.job_id, target, max_documents, incremental)
        )
        self._tasks[job.job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job.job_id, None))

        logger.info(
            "Sync job started",
            job_id=job.job_id,
            folder_id=target,
            max_documents=max_documents,
            incremental=incremental,
        )
        return job.job_id

    def get_job(self, job_id: str) -> SyncJob | None:
        return self.store.get(job_id)

    def list_jobs(self) -> list[SyncJob]:
        return self.store.list()

    def cancel(self, job_id: str) -> bool:
        """Request cooperative cancellation. False if the job is unknown or finished."""
        job = self.store.get(job_id)
        if job is None or job.status.is_terminal:
            return False
        self._cancelled.add(job_id)
        logger.info("Sync job cancellation requested", job_id=job_id)
        return True

    async def wait(self, job_id: str) -> SyncJob | None:
        """Wait for a running job to finish and return its final snapshot."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return self.store.get(job_id)

    # -- job body ---------------------------------------------------------

    async def _update(self, job_id: str, **changes: Any) -> SyncJob:
        # file-backed stores write to disk on every progress step
        return await asyncio.to_thread(self.store.update, job_id, **changes)

    def _check_cancelled(self, job_id: str) -> None:
        if job_id in self._cancelled:
            raise JobCancelled("Sync cancelled")

    async def _run(
        self, job_id: str, folder_id: str, max_documents: int, incremental: bool
    ) -> None:
        log = logger.bind(job_id=job_id, folder_id=folder_id)
        source: DocumentSource | None = None
        engine: ExtractionEngine | None = None

        try:
            source = self.source_factory(folder_id)
            engine = self.engine_factory()

            with staging_area(self.staging_dir, job_id) as staging:
                files = await self._scan(job_id, source, max_documents, incremental, log)
                staged = await self._download(job_id, source, files, staging, log)
                uploaded = await self._upload(job_id, engine, staged, incremental, log)
                await self._index(job_id, engine, uploaded, log)

            self.sync_cache.save()
            job = await self._update(
                job_id,
                status=SyncStatus.COMPLETED,
                progress=COMPLETE,
                completed_at=_now(),
            )
            log.info(
                "Sync job completed",
                files_found=job.files_found,
                files_processed=job.files_processed,
                files_failed=job.files_failed,
            )

        except JobCancelled as e:
            log.warning("Sync job cancelled")
            await self._update(job_id, status=SyncStatus.FAILED, error=str(e), completed_at=_now())
        except Exception as e:
            log.exception("Sync job failed")
            await self._update(job_id, status=SyncStatus.FAILED, error=str(e), completed_at=_now())
        finally:
            self._cancelled.discard(job_id)
            for resource in (source, engine):
                if resource is not None:
                    await resource.aclose()

    async def _scan(
        self,
        job_id: str,
        source: DocumentSource,
        max_documents: int,
        incremental: bool,
        log: Any,
    ) -> list[SourceFile]:
        if max_documents <= 0:
            await self._update(job_id, files_found=0, progress=SCAN_DONE)
            return []

        listed = await source.list_all(limit=max_documents)
        files = [f for f in listed if self.file_filter.accepts(f.name, f.mime_type)]
        if len(files) < len(listed):
            log.warning("Skipped unsupported files", count=len(listed) - len(files))
        files = files[:max_documents]

        await self._update(job_id, files_found=len(files), progress=SCAN_DONE)
        log.info("Scanned folder", files_found=len(files))

        if incremental:
            stale = [f for f in files if self.sync_cache.is_stale(f)]
            log.info("Incremental sync", changed=len(stale), unchanged=len(files) - len(stale))
            files = stale

        self._check_cancelled(job_id)
        return files

    async def _download(
        self,
        job_id: str,
        source: DocumentSource,
        files: list[SourceFile],
        staging: Path,
        log: Any,
    ) -> list[tuple[SourceFile, Path]]:
        job = await self._update(job_id, status=SyncStatus.DOWNLOADING, progress=SCAN_DONE)

        staged: list[tuple[SourceFile, Path]] = []
        for i, file in enumerate(files, start=1):
            self._check_cancelled(job_id)
            failed = job.files_failed
            try:
                path = await source.download(file, staging)
                staged.append((file, path))
            except (DocumentSourceError, OSError) as e:
                failed += 1
                log.warning("Download failed", file=file.name, error=str(e))

            job = await self._update(
                job_id,
                files_failed=failed,
                progress=_band(SCAN_DONE, DOWNLOAD_DONE, i, len(files)),
            )

        log.info("Downloaded files", staged=len(staged), failed=len(files) - len(staged))
        return staged

    async def _upload(
        self,
        job_id: str,
        engine: ExtractionEngine,
        staged: list[tuple[SourceFile, Path]],
        incremental: bool,
        log: Any,
    ) -> list[UploadedDocument]:
        job = await self._update(job_id, status=SyncStatus.UPLOADING, progress=DOWNLOAD_DONE)

        uploaded: list[UploadedDocument] = []
        for i, (file, path) in enumerate(staged, start=1):
            self._check_cancelled(job_id)
            processed, failed = job.files_processed, job.files_failed
            try:
                if incremental:
                    await self._delete_previous(engine, file, log)
                document = await engine.upload_file(
                    path,
                    display_name=file.name,
                    metadata={"sourceFileId": file.id, "mimeType": file.mime_type},
                    mime_type=file.mime_type,
                )
                uploaded.append(document)
                self.sync_cache.record(file, document.name)
                processed += 1
            except ExtractionEngineError as e:
                failed += 1
                log.warning("Upload failed", file=file.name, kind=e.kind, error=e.message)
            finally:
                discard(path)

            job = await self._update(
                job_id,
                files_processed=processed,
                files_failed=failed,
                progress=_band(DOWNLOAD_DONE, UPLOAD_DONE, i, len(staged)),
            )

        log.info("Uploaded files", uploaded=len(uploaded), failed=len(staged) - len(uploaded))
        return uploaded

    async def _delete_previous(self, engine: ExtractionEngine, file: SourceFile, log: Any) -> None:
        previous = self.sync_cache.previous_handle(file.id)
        if previous is None:
            return
        try:
            await engine.delete_file(previous)
        except ExtractionEngineError as e:
            log.warning("Could not delete superseded file", handle=previous, error=e.message)

    async def _index(
        self,
        job_id: str,
        engine: ExtractionEngine,
        uploaded: list[UploadedDocument],
        log: Any,
    ) -> None:
        await self._update(job_id, status=SyncStatus.INDEXING, progress=UPLOAD_DONE)

        active = 0
        for document in uploaded:
            self._check_cancelled(job_id)
            if document.state != DocumentState.PROCESSING:
                final = document
            else:
                try:
                    final = await engine.wait_for_processing(
                        document.name,
                        timeout=self.indexing_timeout,
                        poll_interval=self.poll_interval,
                    )
                except IndexingTimeoutError as e:
                    log.warning("Indexing timed out", file=document.display_name, error=e.message)
                    continue
                except ExtractionEngineError as e:
                    log.warning("Indexing check failed", file=document.display_name, error=e.message)
                    continue

            if final.state == DocumentState.FAILED:
                log.warning("Indexing failed", file=document.display_name)
            else:
                active += 1

        log.info("Indexed files", active=active, total=len(uploaded))
