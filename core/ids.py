"""ID generation and naming utilities."""

from __future__ import annotations

import re
import uuid
from pathlib import PurePath


def generate_job_id() -> str:
    """Generate a unique sync job ID (UUID4)."""
    return str(uuid.uuid4())


def safe_filename(name: str, max_length: int = 120) -> str:
    """Make a remote file name safe to use as a local file name.

    Keeps the extension so MIME detection still works on the staged copy.
    """
    base = PurePath(name).name or "document"
    base = re.sub(r"[^\w.\- ]", "_", base).strip() or "document"
    if len(base) <= max_length:
        return base

    suffix = PurePath(base).suffix[:10]
    return base[: max_length - len(suffix)] + suffix
