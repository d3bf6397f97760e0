"""FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.dependencies import Services
from app.routes import chat, health, leads, sync, website
from core.config import load_settings
from core.logging import configure_logging


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API. Services default to ones built from the environment."""
    if services is None:
        settings = load_settings()
        configure_logging(settings.log_level, settings.log_json)
        services = Services.from_settings(settings)

    app = FastAPI(
        title="Lead Sync API",
        description="Drive document sync and lead extraction",
        version="0.1.0",
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sync.router)
    app.include_router(leads.router)
    app.include_router(health.router)
    app.include_router(chat.router)
    app.include_router(website.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Lead Sync API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
