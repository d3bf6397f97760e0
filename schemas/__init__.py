"""
Pydantic schemas for the lead extraction service.

Contract-first design: these schemas define the data contracts
between all system components.
"""

from .documents import DocumentState, SourceFile, UploadedDocument
from .lead import Company, Contact, Lead, LeadMetadata
from .sync_job import STATUS_MESSAGES, SyncJob, SyncStatus

__all__ = [
    # Leads
    "Company",
    "Contact",
    "Lead",
    "LeadMetadata",
    # Documents
    "DocumentState",
    "SourceFile",
    "UploadedDocument",
    # Sync jobs
    "STATUS_MESSAGES",
    "SyncJob",
    "SyncStatus",
]
