"""Lead extraction orchestration: strategy choice, generation, parsing, filtering."""

from __future__ import annotations

import time

import structlog
from pydantic import Field

from core.config import Settings
from engine.base import ExtractionEngine, GenerationOptions
from orchestration.metrics import average_confidence
from orchestration.strategies import (
    InlineTextStrategy,
    NoDocumentsAvailable,
    RemoteReferenceStrategy,
    TransferStrategy,
)
from parsing.parser import ResultParser
from parsing.prompts import LEAD_EXTRACTION_SYSTEM_INSTRUCTION, build_prompt
from schemas.base import BaseSchema
from schemas.documents import UploadedDocument
from schemas.lead import Lead
from sources.base import DocumentSource

logger = structlog.get_logger(__name__)


class ExtractionResult(BaseSchema):
    """Leads surviving the confidence filter and cap, plus the raw completion."""

    leads: list[Lead] = Field(default_factory=list)
    raw_response: str = ""
    average_confidence: float = 0.0
    strategy: str = ""


class LeadExtractionOrchestrator:
    """Runs one lead query against the extraction engine.

    Inline-text mode is used whenever a document source is available;
    otherwise the already-uploaded ACTIVE engine files are referenced.
    """

    def __init__(
        self,
        engine: ExtractionEngine,
        source: DocumentSource | None = None,
        parser: ResultParser | None = None,
        *,
        inline_max_files: int = 10,
        inline_max_chars: int = 50_000,
        max_files_per_request: int = 1,
        temperature: float = 0.2,
        max_output_tokens: int = 8192,
    ) -> None:
        self.engine = engine
        self.source = source
        self.parser = parser or ResultParser()
        self.inline_max_files = inline_max_files
        self.inline_max_chars = inline_max_chars
        self.max_files_per_request = max_files_per_request
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        engine: ExtractionEngine,
        source: DocumentSource | None = None,
    ) -> LeadExtractionOrchestrator:
        return cls(
            engine,
            source,
            inline_max_files=settings.inline_max_files,
            inline_max_chars=settings.inline_max_chars,
            max_files_per_request=settings.max_files_per_request,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    def select_strategy(self, documents: list[UploadedDocument]) -> TransferStrategy:
        """Choose the transfer strategy for this request.

        Raises:
            NoDocumentsAvailable: No source and no ACTIVE engine files
        """
        if self.source is not None:
            return InlineTextStrategy(
                self.source,
                max_files=self.inline_max_files,
                max_chars=self.inline_max_chars,
            )

        active = [d for d in documents if d.is_active]
        if not active:
            raise NoDocumentsAvailable()
        return RemoteReferenceStrategy(active, self.max_files_per_request)

    async def extract_leads(
        self,
        documents: list[UploadedDocument],
        query: str | None = None,
        max_leads: int | None = None,
        min_confidence: float | None = None,
    ) -> ExtractionResult:
        """Extract leads from the document set.

        Args:
            documents: Engine-side files (only ACTIVE ones are used in reference mode)
            query: Optional query to target the extraction
            max_leads: Cap on returned leads
            min_confidence: Drop leads below this confidence

        Raises:
            NoDocumentsAvailable: Nothing to extract from
            ExtractionEngineError: Classified engine failure
        """
        start = time.monotonic()
        strategy = self.select_strategy(documents)
        content = await strategy.prepare(query)

        logger.info(
            "Extracting leads",
            strategy=strategy.name,
            documents=len(documents),
            query=(query or "")[:100],
        )

        result = await self.engine.generate(
            build_prompt(query),
            content,
            GenerationOptions(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                system_instruction=LEAD_EXTRACTION_SYSTEM_INSTRUCTION,
                json_output=True,
            ),
        )

        leads = self.parser.parse(result.text)
        parsed_count = len(leads)

        if min_confidence is not None:
            leads = [lead for lead in leads if lead.confidence >= min_confidence]
        if max_leads is not None:
            leads = leads[:max_leads]

        avg = average_confidence(leads)
        logger.info(
            "Lead extraction completed",
            parsed=parsed_count,
            returned=len(leads),
            average_confidence=round(avg, 3),
            duration_ms=round((time.monotonic() - start) * 1000),
        )

        return ExtractionResult(
            leads=leads,
            raw_response=result.text,
            average_confidence=avg,
            strategy=strategy.name,
        )
