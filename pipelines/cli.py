"""Command-line entry points: run a sync, list engine files, extract leads, show settings."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from core.config import ConfigurationError, Settings, load_settings, snapshot_settings
from core.logging import configure_logging
from engine.errors import ExtractionEngineError
from engine.gemini import GeminiEngine
from orchestration.extractor import LeadExtractionOrchestrator
from orchestration.metrics import calculate_accuracy_metrics
from orchestration.strategies import NoDocumentsAvailable
from pipelines.sync import SyncJobManager
from schemas.sync_job import SyncStatus
from sources.base import DocumentSourceError
from sources.google_drive import GoogleDriveSource

logger = structlog.get_logger(__name__)


async def run_sync(
    settings: Settings, folder_id: str | None, max_documents: int, incremental: bool
) -> int:
    manager = SyncJobManager.from_settings(
        settings,
        source_factory=lambda fid: GoogleDriveSource.from_settings(settings, fid),
        engine_factory=lambda: GeminiEngine.from_settings(settings),
    )
    job_id = manager.start_sync(folder_id, max_documents, incremental)
    job = await manager.wait(job_id)

    if job is None:
        return 1
    print(json.dumps(job.to_wire(), indent=2))
    return 0 if job.status == SyncStatus.COMPLETED else 1


async def list_files(settings: Settings) -> int:
    engine = GeminiEngine.from_settings(settings)
    files = await engine.list_files()
    for f in files:
        print(f"{f.state:<11} {f.name:<24} {f.display_name}")
    print(f"{len(files)} files, {sum(1 for f in files if f.is_active)} active")
    return 0


async def extract(settings: Settings, query: str | None, max_leads: int, min_confidence: float) -> int:
    engine = GeminiEngine.from_settings(settings)
    source = GoogleDriveSource.from_settings(settings) if settings.has_drive else None
    try:
        active = await engine.list_active_files()
        result = await LeadExtractionOrchestrator.from_settings(
            settings, engine, source
        ).extract_leads(
            active, query=query, max_leads=max_leads, min_confidence=min_confidence
        )
    finally:
        if source is not None:
            await source.aclose()

    metrics = calculate_accuracy_metrics(result.leads)
    print(
        json.dumps(
            {
                "leads": [lead.to_wire() for lead in result.leads],
                "metrics": metrics.to_wire(),
            },
            indent=2,
            ensure_ascii=False,
        )
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lead-sync", description=__doc__)
    parser.add_argument("--config", type=Path, help="YAML file overriding settings")

    commands = parser.add_subparsers(dest="command", required=True)

    sync = commands.add_parser("sync", help="Sync a Drive folder into the extraction engine")
    sync.add_argument("--folder-id", help="Drive folder (defaults to GOOGLE_DRIVE_FOLDER_ID)")
    sync.add_argument("--max-documents", type=int)
    sync.add_argument("--incremental", action="store_true", help="Only new or modified files")

    commands.add_parser("files", help="List files held by the extraction engine")
    commands.add_parser("config", help="Print the effective settings with secrets redacted")

    ext = commands.add_parser("extract", help="Extract leads from synced documents")
    ext.add_argument("query", nargs="?", help="Optional query to target the extraction")
    ext.add_argument("--max-leads", type=int)
    ext.add_argument("--min-confidence", type=float)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the lead-sync command."""
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    configure_logging(settings.log_level, settings.log_json)

    try:
        if args.command == "sync":
            max_documents = (
                args.max_documents
                if args.max_documents is not None
                else settings.default_max_documents
            )
            return asyncio.run(run_sync(settings, args.folder_id, max_documents, args.incremental))
        if args.command == "config":
            print(json.dumps(snapshot_settings(settings), indent=2))
            return 0
        if args.command == "files":
            return asyncio.run(list_files(settings))
        return asyncio.run(
            extract(
                settings,
                args.query,
                args.max_leads or settings.default_max_leads,
                args.min_confidence
                if args.min_confidence is not None
                else settings.default_min_confidence,
            )
        )
    except (ConfigurationError, NoDocumentsAvailable, DocumentSourceError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        return 1
    except ExtractionEngineError as e:
        logger.error("Command failed", command=args.command, kind=e.kind, error=e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
