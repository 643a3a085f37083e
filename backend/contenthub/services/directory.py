"""Lookups into collections owned by the rest of the backend (projects, users)."""
from typing import Dict, Iterable, Optional

from ..core.errors import NotFoundError
from ..db.mongo import db

SYSTEM_AUTHOR = "System"    # No author recorded
UNKNOWN_AUTHOR = "Unknown"  # Author recorded, user since deleted


async def find_project(project_id: str) -> dict:
    project = await db()["projects"].find_one({"project_id": project_id}, {"_id": 0})
    if not project:
        raise NotFoundError("Project not found")
    return project


async def find_user(identity: Optional[str]) -> Optional[dict]:
    """Find a user by username or email. Absence is not an error."""
    if not identity:
        return None
    return await db()["users"].find_one(
        {"$or": [{"username": identity}, {"email": identity}]},
        {"_id": 0}
    )


async def resolve_author(identity: Optional[str]) -> Optional[str]:
    """Username to record as author, or None when the identity does not resolve."""
    user = await find_user(identity)
    return user["username"] if user else None


async def author_labels(authors: Iterable[Optional[str]]) -> Dict[Optional[str], str]:
    """Display label for each author reference, resolved in one query."""
    usernames = {a for a in authors if a}
    labels: Dict[Optional[str], str] = {None: SYSTEM_AUTHOR}
    if usernames:
        async for user in db()["users"].find({"username": {"$in": sorted(usernames)}}):
            labels[user["username"]] = user.get("email") or user["username"]
    for username in usernames:
        labels.setdefault(username, UNKNOWN_AUTHOR)
    return labels
