"""Extraction engine interface and request/response types."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, Field

from engine.errors import IndexingTimeoutError
from schemas.documents import DocumentState, UploadedDocument


class InlineText(BaseModel):
    """Document content submitted as prompt text."""

    text: str
    source_name: str | None = None  # Reported back as the citation source


class FileReferences(BaseModel):
    """Engine-side files submitted by reference."""

    files: list[UploadedDocument] = Field(default_factory=list)


GenerationContent = InlineText | FileReferences


class GenerationOptions(BaseModel):
    """Generation parameters for a single completion."""

    temperature: float = 0.4
    max_output_tokens: int = 8192
    system_instruction: str | None = None
    json_output: bool = True


class Citation(BaseModel):
    """Where part of a completion came from."""

    source: str
    start_index: int = 0
    end_index: int = 0


class GenerationResult(BaseModel):
    """A single text completion."""

    text: str
    citations: list[Citation] = Field(default_factory=list)


class ExtractionEngine(ABC):
    """Abstract hosted-LLM engine: file transfer plus text generation.

    Implementations raise ``engine.errors.ExtractionEngineError`` subclasses only.
    """

    @abstractmethod
    async def upload_file(
        self,
        local_path: Path,
        display_name: str | None = None,
        metadata: dict[str, str | int | float] | None = None,
        mime_type: str | None = None,
    ) -> UploadedDocument:
        """Upload a local file. Safe to retry.

        ``mime_type`` is the type the source declared; without one it is
        guessed from the display name.
        """

    @abstractmethod
    async def list_files(self) -> list[UploadedDocument]:
        """Every uploaded file, across all pages."""

    @abstractmethod
    async def get_file(self, name: str) -> UploadedDocument:
        """Current state of one uploaded file."""

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        """Delete an uploaded file."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        content: GenerationContent | None = None,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Run one completion over the prompt and optional document content."""

    async def list_active_files(self) -> list[UploadedDocument]:
        return [f for f in await self.list_files() if f.is_active]

    async def wait_for_processing(
        self,
        name: str,
        timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> UploadedDocument:
        """Poll until the file leaves PROCESSING.

        Returns the final document (ACTIVE or FAILED).

        Raises:
            IndexingTimeoutError: If the file is still PROCESSING after ``timeout`` seconds
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            document = await self.get_file(name)
            if document.state != DocumentState.PROCESSING:
                return document
            if loop.time() >= deadline:
                raise IndexingTimeoutError(f"Timeout waiting for file processing: {name}")
            await asyncio.sleep(poll_interval)

    async def aclose(self) -> None:
        """Release network resources."""
