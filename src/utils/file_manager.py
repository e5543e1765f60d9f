#!/usr/bin/env python3
"""FileManager.

Owns the temporary directory attachments pass through on their way from
Jira to OpenProject. Every temporary file is handed out through a context
manager and removed when the block exits, whether the transfer worked or not.
"""

from __future__ import annotations

import re
import shutil
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from src import config

logger = config.logger

_UNSAFE_CHARS = re.compile(r"[^\w.\- ]")


def safe_filename(name: str) -> str:
    """Reduce an attachment name to something safe to create on disk."""
    cleaned = _UNSAFE_CHARS.sub("_", Path(name).name).strip(" .")
    return cleaned or "attachment"


class FileManager:
    """Scoped temporary files for attachment transfer."""

    def __init__(self, temp_dir: Path | None = None) -> None:
        self.temp_dir: Path = temp_dir or config.get_path("temp") / "attachments"
        self.temp_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def temporary_file(self, filename: str) -> Iterator[Path]:
        """Yield a fresh path for ``filename``; the file is deleted on exit.

        Each call gets its own subdirectory so two attachments with the same
        name never collide, and the original file name is kept for upload.
        """
        slot = self.temp_dir / uuid.uuid4().hex
        slot.mkdir(parents=True)
        path = slot / safe_filename(filename)
        try:
            yield path
        finally:
            shutil.rmtree(slot, ignore_errors=True)
            logger.debug("Removed temporary file %s", path)

    def cleanup(self) -> None:
        """Remove the whole temporary directory."""
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir, ignore_errors=True)
            logger.debug("Removed temporary directory %s", self.temp_dir)
