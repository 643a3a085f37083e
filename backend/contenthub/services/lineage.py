"""
Lineage operations: create, update, restore, history, delete.

One implementation serves both files and documents; the item kind only
changes which registry/version collections and which content backend are used.

Every content-changing operation follows the same shape:

1. Stage the new content through the backend (slow I/O, no lock held).
2. Under the item lock: reload the item, append a version holding the
   pre-operation content, point the item at the staged content.
3. If anything after staging fails, remove the staged content and re-raise,
   so the item never points at content that was not fully written.
"""
import logging
from typing import Any, List, Optional, Tuple

from ..core.errors import ContentIOError, InvalidInputError
from ..models.lineage import ContentSnapshot, ItemInDB, VersionInDB
from .content_backend import ContentBackend
from .directory import find_project, resolve_author
from .item_lock import ItemLock
from .item_registry import ItemRegistry
from .version_store import VersionStore

logger = logging.getLogger(__name__)

UPDATE_NOTE = "Updated"
RESTORE_NOTE = "Restored from version {number}"


class Lineage:
    def __init__(
        self,
        kind: str,
        registry: ItemRegistry,
        versions: VersionStore,
        backend: ContentBackend,
        lock: Optional[ItemLock] = None,
    ):
        self.kind = kind
        self.registry = registry
        self.versions = versions
        self.backend = backend
        self.lock = lock or ItemLock()

    async def create(
        self,
        project_id: str,
        name: str,
        payload: Any,
        author: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ItemInDB:
        """Create an item with initial content. No version is written."""
        name = _clean_name(name)
        await find_project(project_id)
        author_id = await resolve_author(author)

        staged = await self.backend.store(project_id, name, payload, content_type)
        try:
            item = await self.registry.create(project_id, name, staged, author_id)
        except BaseException:
            await self._discard_staged(staged)
            raise

        logger.info(
            "item_created kind=%s item_id=%s project_id=%s author=%s",
            self.kind, item.item_id, project_id, author_id,
        )
        return item

    async def get(self, item_id: str, project_id: Optional[str] = None) -> ItemInDB:
        return await self.registry.get(item_id, project_id)

    async def list_by_project(self, project_id: str) -> List[ItemInDB]:
        await find_project(project_id)
        return await self.registry.list_by_project(project_id)

    async def update(
        self,
        item_id: str,
        payload: Any,
        author: Optional[str] = None,
        change_note: Optional[str] = None,
        name: Optional[str] = None,
        content_type: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> ItemInDB:
        """Replace the item's content, keeping the superseded content as a version."""
        item = await self.registry.get(item_id, project_id)
        new_name = _clean_name(name) if name is not None else None
        author_id = await resolve_author(author)

        staged = await self.backend.store(item.project_id, new_name or item.name, payload, content_type)
        try:
            async with self.lock.hold(item_id):
                current = await self.registry.get(item_id)
                version = await self._snapshot_unless_empty(
                    current, author_id, change_note or UPDATE_NOTE
                )
                updated = await self._point_at(current, staged, author_id, new_name, version)
        except BaseException:
            await self._discard_staged(staged)
            raise

        logger.info(
            "item_updated kind=%s item_id=%s snapshot_version=%s author=%s",
            self.kind, item_id, version.version_number if version else None, author_id,
        )
        return updated

    async def restore(
        self,
        item_id: str,
        version_number: int,
        author: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> ItemInDB:
        """
        Make a historical version current again.

        The state right before the restore is appended as a new version, so
        nothing is lost and numbering keeps increasing. A missing target
        raises NotFoundError before anything is touched.
        """
        item = await self.registry.get(item_id, project_id)
        target = await self.versions.find(item_id, version_number)
        author_id = await resolve_author(author)

        # Fresh copy of the target content; the version's own content stays put
        data = await self.backend.fetch(target.content.ref)
        staged = await self.backend.store(item.project_id, item.name, data, target.content.content_type)
        try:
            async with self.lock.hold(item_id):
                current = await self.registry.get(item_id)
                version = await self.versions.append(
                    item_id,
                    current.content,
                    author_id,
                    RESTORE_NOTE.format(number=version_number),
                )
                restored = await self._point_at(current, staged, author_id, None, version)
        except BaseException:
            await self._discard_staged(staged)
            raise

        logger.info(
            "item_restored kind=%s item_id=%s from_version=%s snapshot_version=%s author=%s",
            self.kind, item_id, version_number, version.version_number, author_id,
        )
        return restored

    async def history(self, item_id: str, project_id: Optional[str] = None) -> List[VersionInDB]:
        """Versions of an item, newest first. Empty history is an empty list."""
        await self.registry.get(item_id, project_id)
        return await self.versions.list_by_item(item_id)

    async def get_version(
        self,
        item_id: str,
        version_number: int,
        project_id: Optional[str] = None,
    ) -> VersionInDB:
        await self.registry.get(item_id, project_id)
        return await self.versions.find(item_id, version_number)

    async def read_content(
        self,
        item_id: str,
        version_number: Optional[int] = None,
        project_id: Optional[str] = None,
    ) -> Tuple[ItemInDB, ContentSnapshot, Any]:
        """Current content of an item, or the content of one of its versions."""
        item = await self.registry.get(item_id, project_id)
        if version_number is None:
            snapshot = item.content
        else:
            snapshot = (await self.versions.find(item_id, version_number)).content
        return item, snapshot, await self.backend.fetch(snapshot.ref)

    async def delete(self, item_id: str, project_id: Optional[str] = None) -> int:
        """
        Delete an item with its whole history.

        Content goes first, metadata last. Content removal is best effort:
        a blob that cannot be removed is logged and left behind rather than
        leaving an item that can never be deleted.
        """
        await self.registry.get(item_id, project_id)
        async with self.lock.hold(item_id) as token:
            item = await self.registry.get(item_id)
            versions = await self.versions.list_by_item(item_id)
            for version in versions:
                await self._remove_best_effort(item_id, version.content)
                # Many blobs can outlast the lock TTL
                await self.lock.refresh(item_id, token)
            removed = await self.versions.delete_all_for_item(item_id)
            await self._remove_best_effort(item_id, item.content)
            await self.registry.delete(item_id)

        logger.info("item_deleted kind=%s item_id=%s versions_removed=%s", self.kind, item_id, removed)
        return removed

    async def _snapshot_unless_empty(
        self,
        item: ItemInDB,
        author: Optional[str],
        change_note: str,
    ) -> Optional[VersionInDB]:
        # Nothing to preserve while the item still holds its empty initial state
        if self.backend.is_empty(item.content):
            logger.debug("snapshot_skipped kind=%s item_id=%s reason=empty_current", self.kind, item.item_id)
            return None
        return await self.versions.append(item.item_id, item.content, author, change_note)

    async def _point_at(
        self,
        item: ItemInDB,
        staged: ContentSnapshot,
        author: Optional[str],
        name: Optional[str],
        version: Optional[VersionInDB],
    ) -> ItemInDB:
        try:
            return await self.registry.update_current(item.item_id, staged, author, name)
        except BaseException:
            # Keep history identical to the unchanged item
            if version is not None:
                await self.versions.discard(version)
            raise

    async def _discard_staged(self, staged: ContentSnapshot) -> None:
        try:
            await self.backend.remove(staged.ref)
        except ContentIOError as e:
            logger.warning("staged_content_cleanup_failed kind=%s ref=%s error=%s", self.kind, staged.ref, e)

    async def _remove_best_effort(self, item_id: str, snapshot: ContentSnapshot) -> None:
        try:
            await self.backend.remove(snapshot.ref)
        except ContentIOError as e:
            logger.warning(
                "content_remove_failed kind=%s item_id=%s ref=%s error=%s",
                self.kind, item_id, snapshot.ref, e,
            )


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError("Name cannot be empty")
    return cleaned
