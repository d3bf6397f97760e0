"""Gemini extraction engine.

File management goes through the google-genai Files API; completions go
through litellm so the provider stays swappable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import litellm  # type: ignore[import-untyped]
import structlog
from google import genai
from google.genai import types

from core.config import ConfigurationError, Settings
from engine.base import (
    Citation,
    ExtractionEngine,
    FileReferences,
    GenerationContent,
    GenerationOptions,
    GenerationResult,
    InlineText,
)
from engine.errors import EngineFileError, classify_error
from engine.retry import RetryPolicy
from schemas.documents import DocumentState, UploadedDocument
from sources.filetypes import upload_mime_type

logger = structlog.get_logger(__name__)

FILES_API = "https://generativelanguage.googleapis.com/v1beta"

_INLINE_PROMPT = """\
{prompt}

--- Document Content ---
{content}
--- End of Document Content ---

Please analyze the above document content and respond according to the query.
"""


def _to_document(
    file: Any, metadata: dict[str, str | int | float] | None = None
) -> UploadedDocument:
    """Convert a google-genai File into an UploadedDocument."""
    raw_state = getattr(file.state, "value", file.state)
    try:
        state = DocumentState(str(raw_state))
    except ValueError:
        # STATE_UNSPECIFIED and friends
        state = DocumentState.PROCESSING

    return UploadedDocument(
        name=file.name,
        display_name=file.display_name or file.name,
        mime_type=file.mime_type or "application/octet-stream",
        size_bytes=int(file.size_bytes or 0),
        state=state,
        create_time=file.create_time,
        uri=getattr(file, "uri", None),
        metadata=metadata or {},
    )


class GeminiEngine(ExtractionEngine):
    """ExtractionEngine backed by Gemini."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-pro",
        retry_policy: RetryPolicy | None = None,
        client: genai.Client | None = None,
        page_size: int = 100,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy.fixed(3, 2.0)
        self.page_size = page_size
        self._client = client or genai.Client(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiEngine:
        """Create an engine from settings.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not settings.has_engine:
            raise ConfigurationError("Missing GOOGLE_GENERATIVE_AI_API_KEY environment variable")
        return cls(
            api_key=settings.engine_api_key,
            model=settings.gemini_model,
            retry_policy=RetryPolicy.fixed(
                settings.upload_max_attempts, settings.upload_retry_delay
            ),
        )

    @property
    def litellm_model(self) -> str:
        return self.model if "/" in self.model else f"gemini/{self.model}"

    # -- files ------------------------------------------------------------

    async def upload_file(
        self,
        local_path: Path,
        display_name: str | None = None,
        metadata: dict[str, str | int | float] | None = None,
        mime_type: str | None = None,
    ) -> UploadedDocument:
        name = display_name or local_path.name
        config = types.UploadFileConfig(
            display_name=name, mime_type=upload_mime_type(name, mime_type)
        )

        async def _upload() -> Any:
            return await self._client.aio.files.upload(file=str(local_path), config=config)

        try:
            file = await self.retry_policy.call(_upload)
        except Exception as e:
            logger.error(
                "Upload failed",
                file=name,
                attempts=self.retry_policy.max_attempts,
                error=str(e),
            )
            raise classify_error(e, f"upload {name}") from e

        document = _to_document(file, metadata)
        logger.info("Uploaded file", file=name, handle=document.name, state=document.state)
        return document

    async def list_files(self) -> list[UploadedDocument]:
        try:
            pager = await self._client.aio.files.list(
                config=types.ListFilesConfig(page_size=self.page_size)
            )
            return [_to_document(f) async for f in pager]
        except Exception as e:
            raise classify_error(e, "list files") from e

    async def get_file(self, name: str) -> UploadedDocument:
        try:
            file = await self._client.aio.files.get(name=name)
        except Exception as e:
            raise classify_error(e, f"get file {name}") from e
        return _to_document(file)

    async def delete_file(self, name: str) -> None:
        try:
            await self._client.aio.files.delete(name=name)
        except Exception as e:
            raise classify_error(e, f"delete file {name}") from e
        logger.info("Deleted file", handle=name)

    # -- generation -------------------------------------------------------

    def _build_messages(
        self,
        prompt: str,
        content: GenerationContent | None,
        system_instruction: str | None,
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})

        if isinstance(content, InlineText):
            user_content: Any = _INLINE_PROMPT.format(prompt=prompt, content=content.text)
        elif isinstance(content, FileReferences):
            parts: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
            for file in content.files:
                parts.append(
                    {
                        "type": "file",
                        "file": {
                            "file_id": file.uri or f"{FILES_API}/{file.name}",
                            "format": file.mime_type,
                        },
                    }
                )
            user_content = parts
        else:
            user_content = prompt

        messages.append({"role": "user", "content": user_content})
        return messages

    async def generate(
        self,
        prompt: str,
        content: GenerationContent | None = None,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        options = options or GenerationOptions()

        if isinstance(content, FileReferences):
            inactive = [f.name for f in content.files if not f.is_active]
            if not content.files or inactive:
                raise EngineFileError(
                    "No active files available. Please wait for files to finish processing."
                )

        messages = self._build_messages(prompt, content, options.system_instruction)
        params: dict[str, Any] = {
            "model": self.litellm_model,
            "messages": messages,
            "api_key": self.api_key,
            "temperature": options.temperature,
            "max_tokens": options.max_output_tokens,
        }
        if options.json_output:
            params["response_format"] = {"type": "json_object"}

        logger.info(
            "Generation request",
            model=self.litellm_model,
            mode=type(content).__name__ if content else "prompt_only",
            prompt_chars=len(prompt),
        )

        try:
            response = await litellm.acompletion(**params)
        except Exception as e:
            raise classify_error(e, "query documents") from e

        text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
        logger.info("Generation response", chars=len(text))

        return GenerationResult(text=text, citations=self._citations(content))

    @staticmethod
    def _citations(content: GenerationContent | None) -> list[Citation]:
        if isinstance(content, InlineText) and content.source_name:
            return [Citation(source=content.source_name)]
        if isinstance(content, FileReferences):
            return [Citation(source=f.display_name) for f in content.files]
        return []
