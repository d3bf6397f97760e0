"""Sync job endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import Services, get_services
from app.models import SyncRequest
from core.config import ConfigurationError
from schemas.sync_job import SyncStatus

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("")
async def start_sync(
    body: SyncRequest | None = None,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Start a folder sync; poll /sync/status/{jobId} for progress."""
    body = body or SyncRequest()
    try:
        job_id = services.manager.start_sync(
            folder_id=body.folder_id,
            max_documents=body.max_documents,
            incremental=body.incremental,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return {
        "jobId": job_id,
        "status": SyncStatus.SCANNING,
        "message": f"Drive sync initiated. Use /sync/status/{job_id} to check progress.",
    }


@router.get("")
async def list_jobs(services: Services = Depends(get_services)) -> dict[str, Any]:
    return {"jobs": [job.to_wire() for job in services.manager.list_jobs()]}


@router.get("/status/{job_id}")
async def job_status(job_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    job = services.manager.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"job": job.to_wire(), "message": job.status_message}


@router.delete("/{job_id}")
async def cancel_job(job_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    """Request cooperative cancellation of a running job."""
    job = services.manager.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if not services.manager.cancel(job_id):
        raise HTTPException(status_code=409, detail=f"Job already {job.status}")
    return {"jobId": job_id, "cancelRequested": True}
