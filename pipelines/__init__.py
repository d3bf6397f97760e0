"""
Sync pipeline: moves documents from the source folder into the extraction engine.

Stages:
1. Scan - List supported files under the folder tree
2. Download - Stage file bytes locally
3. Upload - Transfer staged files to the engine
4. Index - Wait for the engine to finish processing
"""

from pipelines.store import FileJobStore, JobStore, MemoryJobStore, create_job_store
from pipelines.sync import JobCancelled, SyncJobManager
from pipelines.sync_cache import SyncCache

__all__ = [
    "FileJobStore",
    "JobCancelled",
    "JobStore",
    "MemoryJobStore",
    "SyncCache",
    "SyncJobManager",
    "create_job_store",
]
