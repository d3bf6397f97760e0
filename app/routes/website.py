"""Website lead analysis endpoint."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import Services, get_services
from app.models import WebsiteAnalysisRequest
from core.config import ConfigurationError
from engine.errors import ExtractionEngineError
from orchestration.website import WebsiteFetchError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["website"])


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


@router.post("/analyze-website", response_model=None)
async def analyze_website(
    body: WebsiteAnalysisRequest,
    services: Services = Depends(get_services),
) -> dict[str, Any] | JSONResponse:
    """Extract leads and outreach talking points from a public web page."""
    try:
        engine = services.engine_factory()
    except ConfigurationError as e:
        return _error(503, str(e))

    client = services.http_client()
    try:
        analysis = await services.website_analyzer(engine, client).analyze(body.url)
    except WebsiteFetchError as e:
        logger.warning("Website fetch failed", url=e.url, error=e.details)
        return _error(502, "Failed to fetch website content", details=e.details)
    except ExtractionEngineError as e:
        logger.error("Website analysis failed", kind=e.kind, error=e.original_message)
        return _error(e.status_code, e.message, kind=e.kind)
    except Exception as e:
        logger.exception("Website analysis failed unexpectedly", url=body.url)
        return _error(500, "Failed to analyze website", details=str(e))
    finally:
        await client.aclose()
        await engine.aclose()

    wire = analysis.to_wire()
    return {
        "success": True,
        "data": {
            "leads": wire["leads"],
            "outreachSuggestions": wire["outreachSuggestions"],
        },
        "rawText": analysis.raw_text,
    }
