"""Lead search and export endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from app.dependencies import Services, get_services
from app.export import export_filename, leads_to_csv, leads_to_json
from app.models import ExportFormat, LeadExportRequest, LeadSearchRequest
from core.config import ConfigurationError
from engine.base import ExtractionEngine
from engine.errors import ExtractionEngineError
from orchestration.metrics import calculate_accuracy_metrics
from orchestration.strategies import NoDocumentsAvailable
from sources.base import DocumentSource, DocumentSourceError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])

NO_DOCUMENTS_MESSAGE = "No documents available. Please sync documents from Google Drive first."


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """Search error body; always carries an empty leads list."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "leads": [], **extra},
    )


async def _search(
    body: LeadSearchRequest,
    services: Services,
    engine: ExtractionEngine,
    source: DocumentSource | None,
) -> dict[str, Any] | JSONResponse:
    active = await engine.list_active_files()
    if not active:
        return _error(400, NO_DOCUMENTS_MESSAGE)

    result = await services.orchestrator(engine, source).extract_leads(
        active,
        query=body.query,
        max_leads=body.max_leads,
        min_confidence=body.min_confidence,
    )
    metrics = calculate_accuracy_metrics(result.leads)

    return {
        "success": True,
        "leads": [lead.to_wire() for lead in result.leads],
        "metadata": {
            "totalDocuments": len(active),
            "averageConfidence": result.average_confidence,
            "estimatedAccuracy": metrics.estimated_accuracy,
            "lowConfidenceCount": metrics.low_confidence_count,
            "strategy": result.strategy,
            "extractedAt": datetime.now(timezone.utc).isoformat(),
        },
    }


@router.post("/search", response_model=None)
async def search_leads(
    body: LeadSearchRequest,
    services: Services = Depends(get_services),
) -> dict[str, Any] | JSONResponse:
    """Extract leads matching a query from the synced documents."""
    try:
        engine = services.engine_factory()
    except ConfigurationError as e:
        return _error(503, str(e))
    try:
        source = services.source_factory()
    except ConfigurationError as e:
        await engine.aclose()
        return _error(503, str(e))

    try:
        return await _search(body, services, engine, source)
    except NoDocumentsAvailable as e:
        return _error(400, e.message)
    except ExtractionEngineError as e:
        logger.error("Lead search failed", kind=e.kind, error=e.original_message)
        return _error(e.status_code, e.message, kind=e.kind)
    except DocumentSourceError as e:
        logger.error("Lead search failed reading documents", error=str(e))
        return _error(502, str(e))
    except Exception as e:
        logger.exception("Lead search failed unexpectedly", error=str(e))
        return _error(500, str(e) or "Lead search failed")
    finally:
        await engine.aclose()
        if source is not None:
            await source.aclose()


@router.post("/export")
async def export_leads(body: LeadExportRequest) -> Response:
    """Download leads as CSV (one row per contact) or JSON."""
    if body.format == ExportFormat.CSV:
        content, media_type = leads_to_csv(body.leads), "text/csv"
    else:
        content, media_type = leads_to_json(body.leads), "application/json"

    filename = export_filename(body.format.value)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
