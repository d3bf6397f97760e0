"""Document source interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from schemas.documents import SourceFile


class DocumentSourceError(Exception):
    """Raised when the document source cannot be listed or read."""


class DocumentSource(ABC):
    """Abstract source of documents (e.g. a Drive folder tree)."""

    @abstractmethod
    async def list_all(self, limit: int | None = None) -> list[SourceFile]:
        """Recursively list supported files under the configured root folder.

        Folders are traversed but never returned. Stops early once
        ``limit`` files have been collected.
        """

    @abstractmethod
    async def download(self, file: SourceFile, dest_dir: Path) -> Path:
        """Download a file into ``dest_dir`` and return the local path."""

    @abstractmethod
    async def get_metadata(self, file_id: str) -> SourceFile:
        """Fetch metadata for a single file."""

    async def check_access(self) -> bool:
        """Whether the root folder is reachable. Sources override when they can tell."""
        return True

    async def aclose(self) -> None:
        """Release network resources."""
