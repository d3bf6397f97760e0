"""Service container shared by the HTTP routes."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx
from fastapi import Request

from core.config import Settings
from engine.base import ExtractionEngine
from engine.gemini import GeminiEngine
from orchestration.extractor import LeadExtractionOrchestrator
from orchestration.website import WebsiteAnalyzer, website_client
from pipelines.sync import SyncJobManager
from sources.base import DocumentSource
from sources.google_drive import GoogleDriveSource


@dataclass
class Services:
    """Long-lived components plus factories for per-request clients.

    ``source_factory`` returns None when no document source is configured.
    ``http_client_factory`` builds the client used to fetch web pages; by
    default one with the configured fetch timeout.
    """

    settings: Settings
    manager: SyncJobManager
    engine_factory: Callable[[], ExtractionEngine]
    source_factory: Callable[[], DocumentSource | None]
    http_client_factory: Callable[[], httpx.AsyncClient] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Services:
        def engine_factory() -> ExtractionEngine:
            return GeminiEngine.from_settings(settings)

        def source_factory() -> DocumentSource | None:
            if not settings.has_drive or not settings.drive_folder_id:
                return None
            return GoogleDriveSource.from_settings(settings)

        manager = SyncJobManager.from_settings(
            settings,
            source_factory=lambda folder_id: GoogleDriveSource.from_settings(settings, folder_id),
            engine_factory=engine_factory,
        )
        return cls(
            settings=settings,
            manager=manager,
            engine_factory=engine_factory,
            source_factory=source_factory,
        )

    def orchestrator(
        self, engine: ExtractionEngine, source: DocumentSource | None
    ) -> LeadExtractionOrchestrator:
        return LeadExtractionOrchestrator.from_settings(self.settings, engine, source)

    def http_client(self) -> httpx.AsyncClient:
        if self.http_client_factory is not None:
            return self.http_client_factory()
        return website_client(self.settings.website_fetch_timeout)

    def website_analyzer(
        self, engine: ExtractionEngine, client: httpx.AsyncClient
    ) -> WebsiteAnalyzer:
        return WebsiteAnalyzer.from_settings(self.settings, engine, client)


def get_services(request: Request) -> Services:
    return request.app.state.services
