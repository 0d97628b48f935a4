"""Blob store for uploaded media, keyed by generated id and addressable by URL."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol

from clipvault.shared.exceptions import StorageException, ValidationException

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


@dataclass(slots=True)
class IncomingFile:
    """Uploaded file as received from the HTTP layer."""

    filename: str
    content_type: str
    stream: BinaryIO
    declared_size: int | None = None


class BlobTooLargeException(ValidationException):
    """Raised while streaming when the upload exceeds the size cap."""


class BlobStore(Protocol):
    """Create-by-id / delete-by-id storage with public URLs."""

    def public_url(self, blob_id: str) -> str:
        """Return URL under which the blob is served."""

    async def save(self, blob_id: str, stream: BinaryIO, *, max_bytes: int) -> int:
        """Persist stream under ``blob_id`` and return the number of bytes written."""

    async def delete(self, blob_id: str) -> None:
        """Remove blob; missing blobs are not an error."""


class LocalBlobStore:
    """Blob store writing files into a local directory."""

    def __init__(self, root: str | Path, public_url_prefix: str) -> None:
        self.root = Path(root)
        self.public_url_prefix = public_url_prefix.rstrip("/")

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, blob_id: str) -> Path:
        if not blob_id or Path(blob_id).name != blob_id:
            raise ValueError(f"Invalid blob id: {blob_id!r}")
        return self.root / blob_id

    def public_url(self, blob_id: str) -> str:
        return f"{self.public_url_prefix}/{blob_id}"

    @staticmethod
    def _write(path: Path, stream: BinaryIO, max_bytes: int) -> int:
        written = 0
        with path.open("xb") as target:
            try:
                while chunk := stream.read(_CHUNK_SIZE):
                    written += len(chunk)
                    if written > max_bytes:
                        raise BlobTooLargeException(
                            f"File size exceeds the limit of {max_bytes} bytes",
                        )
                    target.write(chunk)
            except Exception:
                target.close()
                path.unlink(missing_ok=True)
                raise
        return written

    async def save(self, blob_id: str, stream: BinaryIO, *, max_bytes: int) -> int:
        path = self._path_for(blob_id)
        try:
            return await asyncio.to_thread(self._write, path, stream, max_bytes)
        except OSError as exc:
            raise StorageException(f"Failed to write blob {blob_id}: {exc}") from exc

    async def delete(self, blob_id: str) -> None:
        path = self._path_for(blob_id)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise StorageException(f"Failed to delete blob {blob_id}: {exc}") from exc


async def discard_blob(blob_store: BlobStore, blob_id: str) -> None:
    """Best-effort removal; an orphaned blob is tolerated and only logged."""
    try:
        await blob_store.delete(blob_id)
    except StorageException:
        logger.warning("Orphaned blob left behind: %s", blob_id, exc_info=True)
