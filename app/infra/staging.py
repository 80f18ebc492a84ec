"""
Upload Staging

Persists uploaded files to a local directory for the duration of one
request. Files are stored as ``{epoch_millis}-{original_name}`` so that
concurrent uploads of the same file do not collide, and deleted once the
message that references them has been sent.
"""

import asyncio
import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional, Protocol, Union

from app.core.errors import StagingError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "upload"


class Upload(Protocol):
    """What the stager needs from an upload (FastAPI's UploadFile fits)."""

    filename: Optional[str]
    file: BinaryIO
    content_type: Optional[str]


@dataclass
class StagedFile:
    """An uploaded file persisted to the staging directory."""

    original_name: str
    stored_path: Path
    content_type: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def stored_name(self) -> str:
        """File name on disk (timestamp-prefixed)."""
        return self.stored_path.name


class FileStager:
    """Writes uploads to disk and removes them after use."""

    def __init__(self, root: Union[str, os.PathLike]):
        """Initialize stager.

        Args:
            root: Staging directory, created if missing
        """
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    async def stage(self, upload: Upload) -> StagedFile:
        """Persist an upload.

        Args:
            upload: Uploaded file (name, stream, content type)

        Returns:
            StagedFile describing where the bytes were written

        Raises:
            StagingError: If the file cannot be written
        """
        # Keep only the final path component of whatever the client sent.
        original_name = Path(upload.filename or "").name or DEFAULT_FILENAME

        try:
            stored_path = await asyncio.to_thread(self._write, upload.file, original_name)
        except OSError as e:
            logger.error(f"Failed to stage upload {original_name}: {e}")
            raise StagingError("Failed to store uploaded file") from e

        logger.debug(f"Staged upload {original_name} at {stored_path}")
        return StagedFile(
            original_name=original_name,
            stored_path=stored_path,
            content_type=upload.content_type,
        )

    def _write(self, source: BinaryIO, original_name: str) -> Path:
        millis = int(time.time() * 1000)
        while True:
            destination = self.root / f"{millis}-{original_name}"
            try:
                buffer = open(destination, "xb")
            except FileExistsError:
                # Same name staged within the same millisecond.
                millis += 1
                continue
            break

        source.seek(0)
        with buffer:
            shutil.copyfileobj(source, buffer)
        return destination

    async def unstage(self, staged: StagedFile) -> bool:
        """Delete a staged file.

        Best-effort: failures are logged and reported, never raised.

        Returns:
            True if the file was deleted
        """
        try:
            await asyncio.to_thread(os.remove, staged.stored_path)
        except OSError as e:
            logger.error(f"Error deleting file {staged.stored_path}: {e}")
            return False

        logger.info(f"File deleted successfully: {staged.stored_path}")
        return True

    def exists(self, staged: StagedFile) -> bool:
        """Check whether the staged file is still on disk."""
        return staged.stored_path.exists()
