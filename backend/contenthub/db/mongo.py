from motor.motor_asyncio import AsyncIOMotorClient
import asyncio
import logging
from ..core.settings import settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db = None

FILES = "files"
FILE_VERSIONS = "file_versions"
DOCUMENTS = "documents"
DOCUMENT_VERSIONS = "document_versions"
ITEM_LOCKS = "item_locks"


async def connect(max_retries: int = 10, delay: float = 2.0):
    """Connect to MongoDB on startup with retry logic and create indexes."""
    global _client, _db

    for attempt in range(max_retries):
        try:
            _client = AsyncIOMotorClient(
                settings.MONGODB_URI,
                serverSelectionTimeoutMS=5000
            )
            # Actually test the connection with a ping
            await _client.admin.command('ping')
            _db = _client[settings.MONGODB_DB_NAME]
            logger.info("mongo connected db=%s", settings.MONGODB_DB_NAME)

            await create_indexes()
            return
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(
                    "mongo connect attempt=%s failed, retrying in %ss error=%s",
                    attempt + 1, delay, e,
                )
                await asyncio.sleep(delay)
            else:
                logger.error("mongo connect failed after %s attempts error=%s", max_retries, e)
                raise


async def create_indexes():
    """Create the indexes the lineage invariants rely on.

    The unique (item_id, version_number) index is what makes a racing
    "max + 1" insert detectable, so failures here are not swallowed.
    """
    for items in (FILES, DOCUMENTS):
        await _db[items].create_index("item_id", unique=True)
        await _db[items].create_index("project_id")
        await _db[items].create_index([("project_id", 1), ("created_at", 1)])

    for versions in (FILE_VERSIONS, DOCUMENT_VERSIONS):
        await _db[versions].create_index([("item_id", 1), ("version_number", 1)], unique=True)
        await _db[versions].create_index("author")

    # One lock document per item
    await _db[ITEM_LOCKS].create_index("item_id", unique=True)

    logger.info("mongo indexes created")


async def close():
    """Close MongoDB connection on shutdown."""
    global _client
    if _client:
        _client.close()
        logger.info("mongo connection closed")


def db():
    """Return the database instance. Call after connect()."""
    if _db is None:
        raise RuntimeError("Database not connected. Call connect() first.")
    return _db
