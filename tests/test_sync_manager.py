"""Tests for the sync job pipeline, end to end over fake source and engine."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from core.config import ConfigurationError
from pipelines.store import FileJobStore, MemoryJobStore
from pipelines.sync import SyncJobManager
from pipelines.sync_cache import SyncCache
from schemas.documents import DocumentState
from schemas.sync_job import SyncStatus
from sources.base import DocumentSourceError

from fakes import FakeEngine, FakeSource, source_file

MODIFIED = datetime(2026, 3, 1, tzinfo=timezone.utc)


class RecordingStore(MemoryJobStore):
    """Keeps every saved snapshot and the thread that wrote it."""

    def __init__(self):
        super().__init__()
        self.history = []
        self.threads = []

    def _save(self, job):
        self.history.append(job)
        self.threads.append(threading.get_ident())
        super()._save(job)


def drive_files():
    return FakeSource(
        [
            (source_file("1", "clients.csv", "text/csv", modified_time=MODIFIED), b"a,b\n"),
            (source_file("2", "proposal.pdf", "application/pdf", modified_time=MODIFIED), b"%PDF"),
            (source_file("3", "notes.txt", modified_time=MODIFIED), b"Company: Acme"),
            (source_file("4", "photo.png", "image/png", modified_time=MODIFIED), b"\x89PNG"),
        ]
    )


def make_manager(settings, source, engine, store=None, cache=None, folder_id="root-folder"):
    return SyncJobManager(
        store=store or MemoryJobStore(),
        source_factory=lambda _: source,
        engine_factory=lambda: engine,
        staging_dir=settings.staging_dir,
        sync_cache=cache,
        default_folder_id=folder_id,
        indexing_timeout=settings.indexing_timeout,
        poll_interval=settings.indexing_poll_interval,
    )


def assert_counts_consistent(job):
    assert job.files_processed + job.files_failed <= job.files_found


# =========================================================================
# Happy path
# =========================================================================


class TestSync:

    async def test_full_sync(self, settings):
        source, engine = drive_files(), FakeEngine()
        manager = make_manager(settings, source, engine)

        job_id = manager.start_sync(max_documents=100)
        job = await manager.wait(job_id)

        assert job.status == SyncStatus.COMPLETED
        assert job.files_found == 3
        assert job.files_processed == 3
        assert job.files_failed == 0
        assert job.progress == 100
        assert job.completed_at is not None
        assert job.error is None
        assert job.folder_id == "root-folder"

        assert sorted(d.display_name for d in engine.documents.values()) == [
            "clients.csv",
            "notes.txt",
            "proposal.pdf",
        ]
        assert all(d.state == DocumentState.ACTIVE for d in engine.documents.values())

    async def test_metadata_and_cleanup(self, settings, tmp_path):
        source, engine = drive_files(), FakeEngine()
        manager = make_manager(settings, source, engine)

        job_id = manager.start_sync()
        await manager.wait(job_id)

        document = next(d for d in engine.documents.values() if d.display_name == "clients.csv")
        assert document.metadata == {"sourceFileId": "1", "mimeType": "text/csv"}
        assert all(not path.exists() for path in engine.uploaded_paths)
        assert not (tmp_path / "staging" / job_id).exists()
        assert source.closed
        assert engine.closed

    async def test_zero_documents(self, settings):
        source, engine = drive_files(), FakeEngine()
        manager = make_manager(settings, source, engine)

        job = await manager.wait(manager.start_sync(max_documents=0))

        assert job.status == SyncStatus.COMPLETED
        assert job.files_found == 0
        assert job.progress == 100
        assert source.downloaded == []

    async def test_max_documents_limits_scan(self, settings):
        manager = make_manager(settings, drive_files(), FakeEngine())
        job = await manager.wait(manager.start_sync(max_documents=2))
        assert job.files_found == 2
        assert job.files_processed == 2

    async def test_explicit_folder(self, settings):
        seen = []
        source = drive_files()
        manager = make_manager(settings, source, FakeEngine())
        manager.source_factory = lambda folder_id: seen.append(folder_id) or source

        job = await manager.wait(manager.start_sync(folder_id="other-folder"))

        assert job.folder_id == "other-folder"
        assert seen == ["other-folder"]

    async def test_progress_is_monotonic(self, settings):
        store = RecordingStore()
        manager = make_manager(settings, drive_files(), FakeEngine(), store=store)

        await manager.wait(manager.start_sync())

        progress = [job.progress for job in store.history]
        assert progress == sorted(progress)
        assert progress[-1] == 100
        statuses = [job.status for job in store.history]
        assert statuses[0] == SyncStatus.SCANNING
        assert statuses.index(SyncStatus.DOWNLOADING) < statuses.index(SyncStatus.UPLOADING)
        assert statuses.index(SyncStatus.UPLOADING) < statuses.index(SyncStatus.INDEXING)
        for job in store.history:
            assert_counts_consistent(job)

    async def test_uploads_with_declared_mime_type(self, settings):
        source = FakeSource([(source_file("1", "Q3 Report", "application/pdf"), b"%PDF")])
        engine = FakeEngine()
        manager = make_manager(settings, source, engine)

        job = await manager.wait(manager.start_sync())

        assert job.files_processed == 1
        assert [d.mime_type for d in engine.documents.values()] == ["application/pdf"]

    async def test_job_writes_run_off_the_event_loop(self, settings):
        store = RecordingStore()
        manager = make_manager(settings, drive_files(), FakeEngine(), store=store)
        loop_thread = threading.get_ident()

        await manager.wait(manager.start_sync())

        # the first save is the synchronous create in start_sync
        assert store.threads[0] == loop_thread
        assert len(store.threads) > 1
        assert all(thread != loop_thread for thread in store.threads[1:])

    async def test_file_store_job_completes(self, settings, tmp_path):
        store = FileJobStore(tmp_path / "jobs")
        manager = make_manager(settings, drive_files(), FakeEngine(), store=store)

        job_id = manager.start_sync()
        await manager.wait(job_id)

        reloaded = FileJobStore(tmp_path / "jobs").get(job_id)
        assert reloaded.status == SyncStatus.COMPLETED
        assert reloaded.files_processed == 3
        assert not list((tmp_path / "jobs").glob("*.tmp"))

    async def test_list_and_get_jobs(self, settings):
        manager = make_manager(settings, drive_files(), FakeEngine())
        first = manager.start_sync(max_documents=0)
        await manager.wait(first)
        second = manager.start_sync(max_documents=0)
        await manager.wait(second)

        assert manager.get_job(first).job_id == first
        assert manager.get_job("missing") is None
        assert {job.job_id for job in manager.list_jobs()} == {first, second}


# =========================================================================
# Failures
# =========================================================================


class TestFailures:

    async def test_partial_failures_still_complete(self, settings):
        source = drive_files()
        source.failing = {"2"}
        engine = FakeEngine(failing_uploads={"notes.txt"})
        manager = make_manager(settings, source, engine)

        job = await manager.wait(manager.start_sync())

        assert job.status == SyncStatus.COMPLETED
        assert job.files_found == 3
        assert job.files_processed == 1
        assert job.files_failed == 2
        assert_counts_consistent(job)

    async def test_indexing_problems_do_not_fail_job(self, settings):
        engine = FakeEngine(failed_processing={"clients.csv"}, stuck={"notes.txt"})
        manager = make_manager(settings, drive_files(), engine)

        job = await manager.wait(manager.start_sync())

        assert job.status == SyncStatus.COMPLETED
        assert job.files_processed == 3
        states = {d.display_name: d.state for d in engine.documents.values()}
        assert states["clients.csv"] == DocumentState.FAILED
        assert states["notes.txt"] == DocumentState.PROCESSING

    async def test_listing_failure_fails_job(self, settings):
        source = FakeSource(list_error=DocumentSourceError("Failed to list folder: HTTP 404"))
        manager = make_manager(settings, source, FakeEngine())

        job = await manager.wait(manager.start_sync())

        assert job.status == SyncStatus.FAILED
        assert job.error == "Failed to list folder: HTTP 404"
        assert job.completed_at is not None
        assert source.closed

    async def test_client_construction_failure(self, settings):
        manager = make_manager(settings, drive_files(), FakeEngine())

        def no_engine():
            raise ConfigurationError("Missing GOOGLE_GENERATIVE_AI_API_KEY environment variable")

        manager.engine_factory = no_engine
        job = await manager.wait(manager.start_sync())

        assert job.status == SyncStatus.FAILED
        assert "GOOGLE_GENERATIVE_AI_API_KEY" in job.error

    async def test_folder_required(self, settings):
        manager = make_manager(settings, drive_files(), FakeEngine(), folder_id="")
        with pytest.raises(ConfigurationError):
            manager.start_sync()
        assert manager.list_jobs() == []


# =========================================================================
# Cancellation
# =========================================================================


class TestCancel:

    async def test_cancel_running_job(self, settings):
        source, engine = drive_files(), FakeEngine()
        manager = make_manager(settings, source, engine)

        job_id = manager.start_sync()
        assert manager.cancel(job_id) is True
        job = await manager.wait(job_id)

        assert job.status == SyncStatus.FAILED
        assert job.error == "Sync cancelled"
        assert engine.documents == {}
        assert source.closed

    async def test_cancel_unknown_or_finished(self, settings):
        manager = make_manager(settings, drive_files(), FakeEngine())
        assert manager.cancel("missing") is False

        job_id = manager.start_sync(max_documents=0)
        await manager.wait(job_id)
        assert manager.cancel(job_id) is False


# =========================================================================
# Incremental
# =========================================================================


class TestIncremental:

    async def test_skips_unchanged_files(self, settings):
        source, engine = drive_files(), FakeEngine()
        manager = make_manager(settings, source, engine, cache=SyncCache())

        await manager.wait(manager.start_sync())
        first_handles = {d.display_name: d.name for d in engine.documents.values()}

        source.files[0] = source.files[0].model_copy(
            update={"modified_time": MODIFIED + timedelta(days=1)}
        )
        job = await manager.wait(manager.start_sync(incremental=True))

        assert job.status == SyncStatus.COMPLETED
        assert job.incremental is True
        assert job.files_found == 3
        assert job.files_processed == 1
        assert engine.deleted == [first_handles["clients.csv"]]
        assert len(engine.documents) == 3

    async def test_cache_persisted(self, settings):
        cache = SyncCache(settings.sync_cache_path)
        manager = make_manager(settings, drive_files(), FakeEngine(), cache=cache)

        await manager.wait(manager.start_sync())

        reloaded = SyncCache(settings.sync_cache_path)
        assert reloaded.data.last_sync is not None
        assert set(reloaded.data.synced_files) == {"1", "2", "3"}


def test_from_settings_uses_file_store(settings):
    settings = settings.model_copy(update={"job_store": "file"})
    manager = SyncJobManager.from_settings(settings, lambda _: drive_files(), FakeEngine)

    assert isinstance(manager.store, FileJobStore)
    assert manager.default_folder_id == "root-folder"
    assert manager.indexing_timeout == 0.2
