"""Local filesystem storage for inventory attachments.

Attachments are stored under a generated name ``<epoch_millis>-<original
filename>`` and served back read-only under the public uploads path. No
content-type or size validation happens here.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
import threading
import time
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING, Protocol

import structlog
from anyio import to_thread

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger()

# Owner-only directory permissions for attachment storage.
_UPLOAD_DIR_MODE = 0o700

_FALLBACK_NAME = "upload"


class AttachmentStorage(Protocol):
    """Protocol for persisting uploaded attachments."""

    async def save(self, original_filename: str, chunks: AsyncIterator[bytes]) -> str: ...


def _basename(filename: str) -> str:
    """Strip any client-supplied directory components (POSIX or Windows style)."""
    name = PureWindowsPath(PurePosixPath(filename).name).name
    if name in {"", ".", ".."}:
        return _FALLBACK_NAME
    return name


class LocalAttachmentStorage:
    """Writes attachments into a single local directory.

    The directory is created lazily on first write. Each file is written to a
    temp file first and renamed into place, so the public path never exposes
    a partially written upload.
    """

    def __init__(self, upload_dir: str | Path) -> None:
        self._upload_dir = Path(upload_dir).resolve()
        self._last_stamp = 0
        self._stamp_lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._upload_dir

    def ensure_directory(self) -> Path:
        self._upload_dir.mkdir(mode=_UPLOAD_DIR_MODE, parents=True, exist_ok=True)
        return self._upload_dir

    def generate_name(self, original_filename: str) -> str:
        """Build ``<millis>-<basename>``.

        Stamps are strictly increasing within this instance, so two uploads
        in the same millisecond still get different names.
        """
        with self._stamp_lock:
            stamp = max(time.time_ns() // 1_000_000, self._last_stamp + 1)
            self._last_stamp = stamp
        return f"{stamp}-{_basename(original_filename)}"

    async def save(self, original_filename: str, chunks: AsyncIterator[bytes]) -> str:
        """Stream ``chunks`` to disk and return the generated attachment name."""
        name = self.generate_name(original_filename)
        target = (self._upload_dir / name).resolve()
        if not target.is_relative_to(self._upload_dir):
            raise ValueError(f"Path traversal rejected: '{original_filename}' resolves outside upload directory")

        await to_thread.run_sync(self.ensure_directory)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._upload_dir), suffix=".tmp", prefix=".upload_")
        size = 0
        try:
            with os.fdopen(fd, "wb") as f:
                async for chunk in chunks:
                    size += len(chunk)
                    await to_thread.run_sync(f.write, chunk)
                await to_thread.run_sync(f.flush)
            Path(tmp_path).replace(target)
        except BaseException:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise
        logger.info("stored attachment", attachment=name, size=size)
        return name
