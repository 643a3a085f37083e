"""Current-state records for files and documents.

The registry only reads and writes item records. Versioning is the caller's
job (see services/lineage.py); update_current is a plain overwrite.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ReturnDocument

from ..core.errors import NotFoundError
from ..db.mongo import db
from ..models.lineage import ContentSnapshot, ItemInDB


class ItemRegistry:
    def __init__(self, collection: str, label: str):
        self.collection = collection
        self.label = label  # "File" / "Document", used in error messages

    def _items(self):
        return db()[self.collection]

    async def create(
        self,
        project_id: str,
        name: str,
        content: ContentSnapshot,
        author: Optional[str] = None,
    ) -> ItemInDB:
        now = datetime.now(timezone.utc)
        item = ItemInDB(
            item_id=str(uuid.uuid4()),
            project_id=project_id,
            name=name,
            content=content,
            created_by=author,
            updated_by=author,
            created_at=now,
            updated_at=now,
        )
        await self._items().insert_one(item.model_dump())
        return item

    async def get(self, item_id: str, project_id: Optional[str] = None) -> ItemInDB:
        query = {"item_id": item_id}
        if project_id is not None:
            query["project_id"] = project_id
        doc = await self._items().find_one(query, {"_id": 0})
        if not doc:
            raise NotFoundError(f"{self.label} not found")
        return ItemInDB.model_validate(doc)

    async def list_by_project(self, project_id: str) -> List[ItemInDB]:
        """Items of a project, oldest first; _id breaks created_at ties."""
        items = []
        async for doc in self._items().find(
            {"project_id": project_id},
            sort=[("created_at", 1), ("_id", 1)]
        ):
            items.append(ItemInDB.model_validate(doc))
        return items

    async def update_current(
        self,
        item_id: str,
        content: ContentSnapshot,
        author: Optional[str] = None,
        name: Optional[str] = None,
    ) -> ItemInDB:
        changes = {
            "content": content.model_dump(),
            "updated_by": author,
            "updated_at": datetime.now(timezone.utc),
        }
        if name is not None:
            changes["name"] = name
        doc = await self._items().find_one_and_update(
            {"item_id": item_id},
            {"$set": changes},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError(f"{self.label} not found")
        return ItemInDB.model_validate(doc)

    async def delete(self, item_id: str) -> None:
        await self._items().delete_one({"item_id": item_id})
