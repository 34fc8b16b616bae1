"""Temporary storage for uploaded statement files"""

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import UploadFile

from statement_analyzer.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(Exception):
    """Uploaded file exceeds the configured size limit"""

    def __init__(self, max_bytes: int):
        super().__init__(f"File exceeds the {max_bytes} byte limit")
        self.max_bytes = max_bytes


class UploadStore:
    """Writes uploads to a scratch directory and removes them when done"""

    def __init__(self, directory: str | Path | None = None, max_bytes: int | None = None):
        self.directory = Path(directory or settings.upload_dir)
        self.max_bytes = max_bytes or settings.max_upload_bytes

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    async def save(self, upload: UploadFile) -> Path:
        """
        Stream an upload to disk under a random name.

        Raises:
            UploadTooLargeError: If the upload is larger than max_bytes; the
                partial file is removed
        """
        self.ensure_directory()
        path = self.directory / uuid.uuid4().hex
        written = 0

        try:
            with path.open("wb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadTooLargeError(self.max_bytes)
                    out.write(chunk)
        except BaseException:
            self.remove(path)
            raise

        return path

    def remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary upload {path}: {e}")

    @asynccontextmanager
    async def stored(self, upload: UploadFile) -> AsyncIterator[Path]:
        """Save an upload for the duration of the block; it is deleted on every exit path"""
        path = await self.save(upload)
        try:
            yield path
        finally:
            self.remove(path)
