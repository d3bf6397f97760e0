"""HTTP routes."""

from app.routes import chat, health, leads, sync, website

__all__ = ["chat", "health", "leads", "sync", "website"]
