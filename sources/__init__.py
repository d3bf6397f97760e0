"""
Document sources for the lead extraction service.

A source lists supported files under a root folder and downloads
them to local staging for transfer to the extraction engine.
"""

from sources.base import DocumentSource, DocumentSourceError
from sources.filetypes import FileTypeFilter, guess_mime_type, is_text_document, upload_mime_type

__all__ = [
    "DocumentSource",
    "DocumentSourceError",
    "FileTypeFilter",
    "guess_mime_type",
    "is_text_document",
    "upload_mime_type",
]
