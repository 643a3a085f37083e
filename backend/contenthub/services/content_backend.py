"""
Content backends: where the bytes or text of a snapshot actually live.

Both backends expose the same capability set (store, fetch, remove, is_empty)
so that lineage operations never need to know which kind of item they handle.
"""
import asyncio
import hashlib
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Protocol

import aiofiles
import aiofiles.os

from ..core.errors import ContentIOError, InvalidInputError
from ..models.lineage import ContentSnapshot

logger = logging.getLogger(__name__)

GENERIC_CONTENT_TYPE = "application/octet-stream"
TEXT_EXTENSIONS = ('.txt', '.cfg', '.conf', '.log', '.md', '.csv')
PARTIAL_SUFFIX = ".part"


class ContentBackend(Protocol):
    async def store(
        self,
        project_id: str,
        name: str,
        payload,
        content_type: Optional[str] = None,
    ) -> ContentSnapshot: ...

    async def fetch(self, ref: str): ...

    async def remove(self, ref: str) -> None: ...

    def is_empty(self, snapshot: ContentSnapshot) -> bool: ...


def calculate_file_hash(file_content: bytes) -> str:
    """Calculate SHA-256 hash of file content"""
    return hashlib.sha256(file_content).hexdigest()


def file_extension(filename: str) -> str:
    """Return the extension a stored blob keeps, e.g. "report.pdf" -> ".pdf"."""
    suffix = Path(filename).suffix
    if not suffix or suffix == ".":
        raise InvalidInputError(f"Cannot determine file extension of '{filename}'")
    return suffix


def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
    """Prefer the caller's content type; fall back to the file extension."""
    if content_type and content_type != GENERIC_CONTENT_TYPE:
        return content_type
    # Check file extension for common text/config file types
    if filename.lower().endswith(TEXT_EXTENSIONS):
        return "text/plain"
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or GENERIC_CONTENT_TYPE


class BlobBackend:
    """Path-addressable blob area on the local filesystem.

    Layout: {root}/{project_id}/{uuid4 hex}{original extension}. References
    stored in MongoDB are relative to root so the area can be relocated.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def resolve(self, ref: str) -> Path:
        # Use absolute path to avoid permission issues
        return self.root.resolve() / ref

    async def store(
        self,
        project_id: str,
        name: str,
        payload: bytes,
        content_type: Optional[str] = None,
    ) -> ContentSnapshot:
        if not isinstance(payload, (bytes, bytearray)):
            raise InvalidInputError("File content must be bytes")
        ext = file_extension(name)
        ref = f"{project_id}/{uuid.uuid4().hex}{ext}"
        file_path = self.resolve(ref)
        partial_path = file_path.with_name(file_path.name + PARTIAL_SUFFIX)

        # Write next to the target, then rename: the final path either holds
        # the complete blob or does not exist.
        try:
            await aiofiles.os.makedirs(file_path.parent, exist_ok=True)
            async with aiofiles.open(partial_path, 'wb') as f:
                await f.write(payload)
            await aiofiles.os.replace(partial_path, file_path)
        except OSError as e:
            _drop_partial(partial_path)
            raise ContentIOError(f"Failed to save file {name}: {e}") from e
        except asyncio.CancelledError:
            _drop_partial(partial_path)
            raise

        logger.debug("blob_stored ref=%s size=%s", ref, len(payload))
        return ContentSnapshot(
            ref=ref,
            content_type=resolve_content_type(name, content_type),
            size=len(payload),
            checksum=calculate_file_hash(bytes(payload)),
        )

    async def fetch(self, ref: str) -> bytes:
        file_path = self.resolve(ref)
        try:
            async with aiofiles.open(file_path, 'rb') as f:
                return await f.read()
        except FileNotFoundError as e:
            raise ContentIOError(f"Stored file is missing: {ref}") from e
        except OSError as e:
            raise ContentIOError(f"Failed to read stored file {ref}: {e}") from e

    async def remove(self, ref: str) -> None:
        """Delete the blob. Removing an already-absent path is not an error."""
        if not ref:
            return
        try:
            await aiofiles.os.remove(self.resolve(ref))
        except FileNotFoundError:
            logger.debug("blob_remove already_absent ref=%s", ref)
        except OSError as e:
            raise ContentIOError(f"Failed to remove stored file {ref}: {e}") from e

    def is_empty(self, snapshot: ContentSnapshot) -> bool:
        # No blob was ever written for this snapshot
        return snapshot.ref == ""


class InlineBackend:
    """Text kept directly in the record; nothing external to manage."""

    async def store(
        self,
        project_id: str,
        name: str,
        payload: str,
        content_type: Optional[str] = None,
    ) -> ContentSnapshot:
        if not isinstance(payload, str):
            raise InvalidInputError("Document content must be text")
        return ContentSnapshot(ref=payload)

    async def fetch(self, ref: str) -> str:
        return ref

    async def remove(self, ref: str) -> None:
        return None

    def is_empty(self, snapshot: ContentSnapshot) -> bool:
        return snapshot.ref == ""


def _drop_partial(partial_path: Path) -> None:
    try:
        partial_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("blob_partial_cleanup_failed path=%s error=%s", partial_path, e)
