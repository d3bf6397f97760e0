"""Transfer strategies: how document content reaches the extraction engine.

Both strategies share one contract: ``prepare(query)`` returns the content
to submit alongside the prompt, or raises NoDocumentsAvailable.
"""

from __future__ import annotations

import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from engine.base import FileReferences, GenerationContent, InlineText
from schemas.documents import UploadedDocument
from sources.base import DocumentSource, DocumentSourceError
from sources.filetypes import is_text_document

logger = structlog.get_logger(__name__)

# Files larger than this multiple of the char budget are read from the head only
_LARGE_FILE_FACTOR = 10
_MIN_RELEVANT_WORD = 4


class NoDocumentsAvailable(Exception):
    """No documents can be submitted for extraction."""

    def __init__(
        self,
        message: str = "No documents available for search. Please sync your Google Drive first.",
    ) -> None:
        super().__init__(message)
        self.message = message


def read_text_head(path: Path, max_chars: int) -> str:
    """Read up to ``max_chars`` characters of a text file."""
    if path.stat().st_size > max_chars * _LARGE_FILE_FACTOR:
        with open(path, "rb") as f:
            return f.read(max_chars).decode("utf-8", errors="replace")

    return path.read_text(encoding="utf-8", errors="replace")[:max_chars]


def select_relevant_files(
    query: str | None, files: list[UploadedDocument], limit: int
) -> list[UploadedDocument]:
    """Pick at most ``limit`` files, preferring names that share words with the query.

    Falls back to the first ``limit`` files when nothing matches.
    """
    if len(files) <= limit:
        return list(files)

    words = [w for w in (query or "").lower().split() if len(w) >= _MIN_RELEVANT_WORD]
    relevant = [f for f in files if any(w in f.display_name.lower() for w in words)]
    return (relevant or files)[:limit]


class TransferStrategy(ABC):
    """Produces the document content for one extraction request."""

    name: str = "base"

    @abstractmethod
    async def prepare(self, query: str | None = None) -> GenerationContent:
        """Build the content to submit with the prompt."""


class InlineTextStrategy(TransferStrategy):
    """Download readable documents from the source and submit their text inline."""

    name = "inline_text"

    def __init__(
        self,
        source: DocumentSource,
        max_files: int = 10,
        max_chars: int = 50_000,
    ) -> None:
        self.source = source
        self.max_files = max_files
        self.max_chars = max_chars

    async def prepare(self, query: str | None = None) -> InlineText:
        files = await self.source.list_all()
        readable = [f for f in files if is_text_document(f.name, f.mime_type)]
        logger.info(
            "Inline text candidates",
            found=len(files),
            readable=len(readable),
            max_files=self.max_files,
        )

        sections: list[str] = []
        with tempfile.TemporaryDirectory(prefix="lead-extract-") as tmp:
            for file in readable[: self.max_files]:
                try:
                    path = await self.source.download(file, Path(tmp))
                    content = read_text_head(path, self.max_chars)
                    path.unlink(missing_ok=True)
                except (DocumentSourceError, OSError) as e:
                    logger.warning("Skipping unreadable document", file=file.name, error=str(e))
                    continue
                sections.append(f"=== File: {file.name} ===\n{content}\n")

        if not sections:
            raise NoDocumentsAvailable(
                "No file content could be read. Please check file formats (CSV, TXT supported)."
            )

        combined = "\n\n".join(sections)
        logger.info("Combined document content", files=len(sections), chars=len(combined))
        return InlineText(
            text=combined,
            source_name=f"{len(sections)} files from Google Drive",
        )


class RemoteReferenceStrategy(TransferStrategy):
    """Reference already-uploaded ACTIVE engine files."""

    name = "remote_reference"

    def __init__(self, documents: list[UploadedDocument], max_files_per_request: int = 1) -> None:
        self.documents = [d for d in documents if d.is_active]
        self.max_files_per_request = max_files_per_request

    async def prepare(self, query: str | None = None) -> FileReferences:
        if not self.documents:
            raise NoDocumentsAvailable()

        selected = select_relevant_files(query, self.documents, self.max_files_per_request)
        if len(selected) < len(self.documents):
            logger.warning(
                "Reference limit below active set, using a subset",
                active=len(self.documents),
                selected=[d.display_name for d in selected],
            )
        return FileReferences(files=selected)
