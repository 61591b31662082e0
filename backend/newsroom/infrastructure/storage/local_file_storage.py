"""Local filesystem storage for article documents.

Storage layout:
    <upload_dir>/documents/<stem>_<YYYYMMDD_HHmmss>_<token>.<ext>

The handle of a stored blob is its path relative to ``upload_dir``; the public
URL is ``<public_base_url>/uploads/<handle>``.
"""

import logging
import mimetypes
import re
import secrets
from datetime import datetime, timezone
from pathlib import Path

from newsroom.application.interfaces import BlobStore, StoredBlob
from newsroom.domain.exceptions import DependencyFailureError, EntityNotFoundError

logger = logging.getLogger(__name__)

DOCUMENTS_DIR = "documents"


def _datetime_stamp() -> str:
    """Return a UTC datetime stamp suitable for filenames: YYYYMMDD_HHmmss."""
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _sanitise(name: str, max_len: int = 80) -> str:
    """Replace non-word characters with underscores and truncate."""
    return re.sub(r"[^\w\-]", "_", name)[:max_len].strip("_") or "document"


class LocalBlobStore(BlobStore):
    """Infrastructure adapter that keeps documents on local disk."""

    def __init__(self, upload_dir: str, public_base_url: str):
        self._upload_dir = Path(upload_dir)
        self._public_base_url = public_base_url.rstrip("/")

    # ── Blob Storage ────────────────────────────────────────────────

    async def put(self, content: bytes, content_type: str, filename: str = "") -> StoredBlob:
        """Write ``content`` under ``<upload_dir>/documents/``.

        A datetime stamp plus a short random token keeps two uploads of the
        same filename within one second from colliding.
        """
        suffix = Path(filename).suffix or mimetypes.guess_extension(content_type) or ""
        stem = _sanitise(Path(filename).stem) if filename else "document"
        stamped_name = f"{stem}_{_datetime_stamp()}_{secrets.token_hex(4)}{suffix}"
        handle = f"{DOCUMENTS_DIR}/{stamped_name}"

        dest_path = self._upload_dir / handle
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            dest_path.write_bytes(content)
        except OSError as exc:
            raise DependencyFailureError("blob_store", f"Could not write {handle}: {exc}") from exc

        logger.info("Stored document: %s (%d bytes)", dest_path, len(content))

        return StoredBlob(
            url=f"{self._public_base_url}/uploads/{handle}",
            handle=handle,
            content_type=content_type,
            size=len(content),
        )

    async def delete(self, handle: str) -> None:
        """Delete a stored document.

        Raises ``EntityNotFoundError`` when nothing is stored under ``handle``.
        Handles that point outside the upload directory are treated as unknown.
        """
        file_path = self._resolve(handle)
        if file_path is None or not file_path.is_file():
            raise EntityNotFoundError("Blob", handle)

        try:
            file_path.unlink()
        except FileNotFoundError as exc:
            raise EntityNotFoundError("Blob", handle) from exc
        except OSError as exc:
            raise DependencyFailureError("blob_store", f"Could not delete {handle}: {exc}") from exc
        logger.info("Deleted document from disk: %s", file_path)

    # ── Utilities ───────────────────────────────────────────────────

    def _resolve(self, handle: str) -> Path | None:
        root = self._upload_dir.resolve()
        candidate = (root / handle).resolve()
        if root not in candidate.parents:
            return None
        return candidate
