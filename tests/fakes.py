"""In-memory fakes for the document source and extraction engine."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from pathlib import Path

from engine.base import ExtractionEngine, GenerationContent, GenerationOptions, GenerationResult
from engine.errors import EngineFileError, EngineQuotaError
from schemas.documents import DocumentState, SourceFile, UploadedDocument
from sources.base import DocumentSource, DocumentSourceError
from sources.filetypes import upload_mime_type


def source_file(file_id: str, name: str, mime_type: str = "text/plain", **kwargs) -> SourceFile:
    return SourceFile(id=file_id, name=name, mime_type=mime_type, **kwargs)


class FakeSource(DocumentSource):
    def __init__(
        self,
        files: list[tuple[SourceFile, bytes]] | None = None,
        failing: set[str] | None = None,
        list_error: Exception | None = None,
    ) -> None:
        self.files = [f for f, _ in files or []]
        self.contents = {f.id: data for f, data in files or []}
        self.failing = failing or set()
        self.list_error = list_error
        self.downloaded: list[str] = []
        self.closed = False

    async def list_all(self, limit: int | None = None) -> list[SourceFile]:
        if self.list_error is not None:
            raise self.list_error
        listed = list(self.files)
        return listed[:limit] if limit is not None else listed

    async def download(self, file: SourceFile, dest_dir: Path) -> Path:
        if file.id in self.failing:
            raise DocumentSourceError(f"Failed to download {file.name}: HTTP 500")
        dest_dir.mkdir(parents=True, exist_ok=True)
        path = dest_dir / f"{file.id}_{file.name}"
        path.write_bytes(self.contents[file.id])
        self.downloaded.append(file.id)
        return path

    async def get_metadata(self, file_id: str) -> SourceFile:
        for file in self.files:
            if file.id == file_id:
                return file
        raise DocumentSourceError(f"Unknown file {file_id}")

    async def aclose(self) -> None:
        self.closed = True


class FakeEngine(ExtractionEngine):
    """Uploaded files become ACTIVE after ``polls_until_active`` status polls."""

    def __init__(
        self,
        responses: list[str] | None = None,
        documents: list[UploadedDocument] | None = None,
        failing_uploads: set[str] | None = None,
        failed_processing: set[str] | None = None,
        stuck: set[str] | None = None,
        polls_until_active: int = 1,
        generate_error: Exception | None = None,
    ) -> None:
        self.responses = list(responses or [])
        self.documents = {d.name: d for d in documents or []}
        self.failing_uploads = failing_uploads or set()
        self.failed_processing = failed_processing or set()
        self.stuck = stuck or set()
        self.polls_until_active = polls_until_active
        self.generate_error = generate_error

        self._ids = itertools.count(1)
        self.polls: dict[str, int] = {}
        self.uploaded_paths: list[Path] = []
        self.deleted: list[str] = []
        self.requests: list[tuple[str, GenerationContent | None, GenerationOptions | None]] = []
        self.closed = False

    async def upload_file(
        self, local_path, display_name=None, metadata=None, mime_type=None
    ) -> UploadedDocument:
        name = display_name or local_path.name
        if name in self.failing_uploads:
            raise EngineQuotaError("API quota exceeded or rate limit reached. Please try again later.")
        self.uploaded_paths.append(local_path)
        document = UploadedDocument(
            name=f"files/{next(self._ids)}",
            display_name=name,
            mime_type=upload_mime_type(name, mime_type),
            size_bytes=local_path.stat().st_size,
            state=DocumentState.PROCESSING,
            create_time=datetime.now(timezone.utc),
            metadata=metadata or {},
        )
        self.documents[document.name] = document
        return document

    async def list_files(self) -> list[UploadedDocument]:
        return list(self.documents.values())

    async def get_file(self, name: str) -> UploadedDocument:
        if name not in self.documents:
            raise EngineFileError(f"File processing error: {name} not found")
        document = self.documents[name]
        if document.state != DocumentState.PROCESSING or document.display_name in self.stuck:
            return document

        self.polls[name] = self.polls.get(name, 0) + 1
        if self.polls[name] >= self.polls_until_active:
            state = (
                DocumentState.FAILED
                if document.display_name in self.failed_processing
                else DocumentState.ACTIVE
            )
            document = document.model_copy(update={"state": state})
            self.documents[name] = document
        return document

    async def delete_file(self, name: str) -> None:
        self.deleted.append(name)
        self.documents.pop(name, None)

    async def generate(self, prompt, content=None, options=None) -> GenerationResult:
        self.requests.append((prompt, content, options))
        if self.generate_error is not None:
            raise self.generate_error
        text = self.responses.pop(0) if self.responses else ""
        return GenerationResult(text=text)

    async def aclose(self) -> None:
        self.closed = True


def active_document(name: str, display_name: str) -> UploadedDocument:
    return UploadedDocument(
        name=name,
        display_name=display_name,
        mime_type="application/pdf",
        state=DocumentState.ACTIVE,
    )
