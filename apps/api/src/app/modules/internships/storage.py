"""
Diary file storage.

Files are written under ``settings.diary_storage_dir`` with a generated
name; the original file name is kept only on the diary row.
"""

import asyncio
import logging
import uuid
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)


class DiaryFileStore:
    """Local-disk store for uploaded diary files."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or settings.diary_storage_dir)

    async def save(self, application_id: int, content: bytes) -> str:
        """Write ``content`` and return its storage path."""
        path = self.root / str(application_id) / f"{uuid.uuid4().hex}.pdf"
        await asyncio.to_thread(self._write, path, content)
        logger.info(f"Stored diary file for application {application_id} ({len(content)} bytes)")
        return str(path)

    async def delete(self, file_path: str) -> None:
        """Remove a stored file; a missing file is ignored."""
        await asyncio.to_thread(Path(file_path).unlink, missing_ok=True)

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
