"""Health endpoint: configuration, engine file counts and folder access."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import Services, get_services
from core.config import ConfigurationError
from engine.errors import ExtractionEngineError
from schemas.documents import DocumentState

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


async def _engine_status(services: Services) -> dict[str, Any]:
    status: dict[str, Any] = {
        "connected": False,
        "totalFiles": 0,
        "activeFiles": 0,
        "processingFiles": 0,
        "failedFiles": 0,
    }
    engine = services.engine_factory()
    try:
        files = await engine.list_files()
    finally:
        await engine.aclose()

    status["connected"] = True
    status["totalFiles"] = len(files)
    status["activeFiles"] = sum(1 for f in files if f.state == DocumentState.ACTIVE)
    status["processingFiles"] = sum(1 for f in files if f.state == DocumentState.PROCESSING)
    status["failedFiles"] = sum(1 for f in files if f.state == DocumentState.FAILED)
    if files:
        status["files"] = [
            {
                "name": f.display_name,
                "state": f.state,
                "uri": f.name,
                "mimeType": f.mime_type,
                "sizeBytes": f.size_bytes,
            }
            for f in files
        ]
    return status


async def _drive_access(services: Services) -> bool | None:
    source = services.source_factory()
    if source is None:
        return None
    try:
        return await source.check_access()
    finally:
        await source.aclose()


@router.get("/health")
async def health(services: Services = Depends(get_services)) -> JSONResponse:
    """Report configuration, engine connectivity and file counts by state.

    Returns 503 when the engine is configured but unreachable.
    """
    settings = services.settings
    body: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": {
            "hasGeminiApiKey": settings.has_engine,
            "hasDriveConfig": settings.has_drive,
            "hasDriveFolderId": bool(settings.drive_folder_id),
        },
    }

    engine_status: dict[str, Any] = {"connected": False, "activeFiles": 0}
    if settings.has_engine:
        try:
            engine_status = await _engine_status(services)
        except (ExtractionEngineError, ConfigurationError) as e:
            logger.warning("Engine health check failed", error=str(e))
            engine_status["error"] = str(e)
            body["status"] = "degraded"
    body["engine"] = engine_status

    drive_access = await _drive_access(services)
    body["drive"] = {"configured": drive_access is not None, "accessible": bool(drive_access)}

    issues: list[str] = []
    if not settings.has_engine:
        issues.append("Missing GOOGLE_GENERATIVE_AI_API_KEY")
    if not settings.has_drive:
        issues.append("Missing Google Drive service account configuration")
    if not settings.drive_folder_id:
        issues.append("Missing GOOGLE_DRIVE_FOLDER_ID")
    if drive_access is False:
        issues.append("Cannot access Google Drive folder")
    if not engine_status["connected"]:
        issues.append("Cannot connect to the extraction engine")
    elif engine_status["activeFiles"] == 0:
        issues.append("No active files available for search")

    if issues:
        body["issues"] = issues
        if body["status"] != "degraded":
            body["status"] = "warning"

    return JSONResponse(body, status_code=503 if body["status"] == "degraded" else 200)
