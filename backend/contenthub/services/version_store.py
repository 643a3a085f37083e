"""Append-only version ledger, one collection per item kind."""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from ..core.errors import ConflictingVersionWriteError, NotFoundError
from ..core.settings import settings
from ..db.mongo import db
from ..models.lineage import ContentSnapshot, VersionInDB

logger = logging.getLogger(__name__)


class VersionStore:
    def __init__(self, collection: str):
        self.collection = collection

    def _versions(self):
        return db()[self.collection]

    async def next_version_number(self, item_id: str) -> int:
        """max(existing version numbers for the item, default 0) + 1"""
        latest = await self._versions().find_one(
            {"item_id": item_id},
            sort=[("version_number", -1)]
        )
        return (latest["version_number"] if latest else 0) + 1

    async def append(
        self,
        item_id: str,
        content: ContentSnapshot,
        author: Optional[str] = None,
        change_note: Optional[str] = None,
    ) -> VersionInDB:
        """
        Insert the next version of an item.

        The unique (item_id, version_number) index turns a racing "max + 1"
        into a DuplicateKeyError; the number is then recomputed and the insert
        retried. Raises ConflictingVersionWriteError once retries run out.
        """
        attempts = max(1, settings.VERSION_APPEND_RETRIES)
        for attempt in range(1, attempts + 1):
            version = VersionInDB(
                version_id=str(uuid.uuid4()),
                item_id=item_id,
                version_number=await self.next_version_number(item_id),
                content=content,
                author=author,
                change_note=change_note,
                created_at=datetime.now(timezone.utc),
            )
            try:
                await self._versions().insert_one(version.model_dump())
            except DuplicateKeyError:
                logger.warning(
                    "version_append collision item_id=%s version_number=%s attempt=%s",
                    item_id, version.version_number, attempt,
                )
                continue
            return version

        raise ConflictingVersionWriteError(
            f"Could not append a version to item {item_id} after {attempts} attempts; "
            "re-read the item and retry"
        )

    async def list_by_item(self, item_id: str) -> List[VersionInDB]:
        """History of an item, newest first."""
        versions = []
        async for doc in self._versions().find(
            {"item_id": item_id},
            sort=[("version_number", -1)]
        ):
            versions.append(VersionInDB.model_validate(doc))
        return versions

    async def find(self, item_id: str, version_number: int) -> VersionInDB:
        doc = await self._versions().find_one(
            {"item_id": item_id, "version_number": version_number},
            {"_id": 0}
        )
        if not doc:
            raise NotFoundError("Version not found")
        return VersionInDB.model_validate(doc)

    async def delete_all_for_item(self, item_id: str) -> int:
        result = await self._versions().delete_many({"item_id": item_id})
        return result.deleted_count

    async def discard(self, version: VersionInDB) -> None:
        """Drop the newest version when the item write that followed it failed.

        Only called while the item lock is held, so no later number exists.
        """
        await self._versions().delete_one({"version_id": version.version_id})
