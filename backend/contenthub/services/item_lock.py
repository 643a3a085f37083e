"""
Server-side per-item lock: one content-changing operation per item at a time,
shared across all workers. Lock documents live in MongoDB (unique item_id), so
the guarantee holds across processes, not just within one event loop.
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from pymongo.errors import DuplicateKeyError

from ..core.errors import ConflictingVersionWriteError
from ..core.settings import settings
from ..db.mongo import ITEM_LOCKS, db

logger = logging.getLogger(__name__)


class ItemLock:
    def __init__(self, collection: str = ITEM_LOCKS):
        self.collection = collection

    def _locks(self):
        return db()[self.collection]

    async def acquire(self, item_id: str) -> str:
        """
        Take the lock for this item and return the holder token.

        Polls while another holder has it; raises ConflictingVersionWriteError
        when ITEM_LOCK_TIMEOUT_SECONDS passes. Locks older than
        ITEM_LOCK_TTL_SECONDS are treated as stale and removed.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.ITEM_LOCK_TIMEOUT_SECONDS
        token = uuid.uuid4().hex
        locks = self._locks()

        while True:
            now = _utcnow()
            # Remove expired lock so we can take it
            await locks.delete_many({"item_id": item_id, "expires_at": {"$lt": now}})
            try:
                await locks.insert_one({
                    "item_id": item_id,
                    "token": token,
                    "acquired_at": now,
                    "expires_at": now + timedelta(seconds=settings.ITEM_LOCK_TTL_SECONDS),
                })
                logger.debug("item_lock acquired item_id=%s token=%s", item_id, token)
                return token
            except DuplicateKeyError:
                # Lock held by another request
                if loop.time() >= deadline:
                    raise ConflictingVersionWriteError(
                        f"Item {item_id} is being modified by another request; retry later"
                    )
                await asyncio.sleep(settings.ITEM_LOCK_POLL_SECONDS)

    async def release(self, item_id: str, token: str) -> None:
        """Release only our own hold. Idempotent."""
        await self._locks().delete_one({"item_id": item_id, "token": token})
        logger.debug("item_lock released item_id=%s token=%s", item_id, token)

    async def refresh(self, item_id: str, token: str) -> bool:
        """
        Push our lock's expiry another ITEM_LOCK_TTL_SECONDS ahead.

        Long-running holders call this between steps. Returns False when the
        lock is no longer ours (it expired and was reclaimed).
        """
        result = await self._locks().update_one(
            {"item_id": item_id, "token": token},
            {"$set": {"expires_at": _utcnow() + timedelta(seconds=settings.ITEM_LOCK_TTL_SECONDS)}},
        )
        if not result.matched_count:
            logger.warning("item_lock lost item_id=%s token=%s", item_id, token)
            return False
        return True

    @asynccontextmanager
    async def hold(self, item_id: str):
        token = await self.acquire(item_id)
        try:
            yield token
        finally:
            await self.release(item_id, token)


def _utcnow() -> datetime:
    # BSON dates come back naive UTC; keep both sides of "$lt" naive
    return datetime.now(timezone.utc).replace(tzinfo=None)
