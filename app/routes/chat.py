"""Chat endpoint: lead queries run extraction, anything else gets a plain completion.

The reply is streamed as plain text chunks; lead results end with a fenced
JSON payload the client can pick out.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.dependencies import Services, get_services
from app.models import ChatRequest
from core.config import ConfigurationError
from engine.base import ExtractionEngine, GenerationOptions
from engine.errors import ExtractionEngineError
from orchestration.extractor import ExtractionResult
from orchestration.strategies import NoDocumentsAvailable
from parsing.intent import wants_leads
from sources.base import DocumentSourceError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["chat"])

CHUNK_SIZE = 200

NO_DOCUMENTS_REPLY = (
    "No documents are currently available for analysis. "
    "Please sync your Google Drive first."
)
NO_LEADS_SUMMARY = (
    "No leads found matching your query. Try:\n"
    "- Using different keywords (e.g., \"회사\", \"기업\", \"업체\")\n"
    "- Being more specific about what you're looking for\n"
    "- Checking if documents are properly synced"
)


def format_lead_reply(result: ExtractionResult) -> str:
    if result.leads:
        summary = (
            f"Found {len(result.leads)} leads with average confidence of "
            f"{result.average_confidence * 100:.1f}%"
        )
    else:
        summary = NO_LEADS_SUMMARY

    payload = {
        "leads": [lead.to_wire() for lead in result.leads],
        "summary": summary,
    }
    return f"{summary}\n\n```json\n{json.dumps(payload, indent=2, ensure_ascii=False)}\n```"


async def _lead_reply(message: str, services: Services, engine: ExtractionEngine) -> str:
    source = services.source_factory()
    try:
        active = await engine.list_active_files()
        if not active and source is None:
            return NO_DOCUMENTS_REPLY

        settings = services.settings
        result = await services.orchestrator(engine, source).extract_leads(
            active,
            query=message,
            max_leads=settings.default_max_leads,
            min_confidence=settings.default_min_confidence,
        )
        return format_lead_reply(result)
    finally:
        if source is not None:
            await source.aclose()


async def _plain_reply(message: str, engine: ExtractionEngine) -> str:
    result = await engine.generate(message, options=GenerationOptions(json_output=False))
    return result.text


async def build_reply(message: str, services: Services) -> str:
    """Full reply text for one chat message. Failures become an error reply."""
    try:
        engine = services.engine_factory()
    except ConfigurationError as e:
        return f"Error: {e}"

    is_lead_query = wants_leads(message)
    logger.info("Chat message", lead_query=is_lead_query, chars=len(message))
    try:
        if is_lead_query:
            return await _lead_reply(message, services, engine)
        return await _plain_reply(message, engine)
    except NoDocumentsAvailable as e:
        return e.message
    except (ExtractionEngineError, DocumentSourceError, ConfigurationError) as e:
        logger.error("Chat reply failed", error=str(e))
        return f"Error during lead extraction: {e}"
    finally:
        await engine.aclose()


async def _stream(text: str) -> AsyncIterator[str]:
    for start in range(0, len(text), CHUNK_SIZE):
        yield text[start : start + CHUNK_SIZE]


@router.post("/chat")
async def chat(body: ChatRequest, services: Services = Depends(get_services)) -> StreamingResponse:
    reply = await build_reply(body.last_user_text, services)
    return StreamingResponse(_stream(reply), media_type="text/plain; charset=utf-8")
