"""Local staging area for downloaded documents."""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


@contextmanager
def staging_area(base_dir: str | Path, job_id: str) -> Iterator[Path]:
    """Per-job staging directory, removed on exit whatever the outcome."""
    path = Path(base_dir) / job_id
    path.mkdir(parents=True, exist_ok=True)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def discard(path: Path) -> None:
    """Delete a staged file."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not delete staged file", path=str(path), error=str(e))
