"""Records shared by both lineages (files and documents)"""

from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime, timezone


class ContentSnapshot(BaseModel):
    """Where an item's content lives, as returned by a content backend.

    For files ``ref`` is a storage path relative to the storage root,
    for documents it is the text itself.
    """
    model_config = ConfigDict(frozen=True)

    ref: str = ""
    content_type: str | None = None
    size: int | None = None
    checksum: str | None = None  # SHA-256 of stored bytes


class ItemInDB(BaseModel):
    """Current-state record stored in the `files` / `documents` collections"""
    model_config = ConfigDict(extra="ignore")

    item_id: str
    project_id: str
    name: str
    content: ContentSnapshot
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def stored_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class VersionInDB(BaseModel):
    """Immutable history record stored in the `*_versions` collections"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    version_id: str
    item_id: str
    version_number: int  # 1, 2, 3, ... per item, no gaps
    content: ContentSnapshot
    author: str | None = None  # Weak reference to users.username
    change_note: str | None = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def stored_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def version_label(self) -> str:
        return f"v{self.version_number}"


def as_utc(value: datetime) -> datetime:
    # BSON dates are read back naive; they are always stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
