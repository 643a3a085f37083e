"""Script to delete every file and document of a project, with full history"""

import asyncio
import sys

from contenthub.core.errors import ContentHubError
from contenthub.core.settings import settings
from contenthub.db.mongo import close, connect, db
from contenthub.services.lineages import document_lineage, file_lineage


async def purge_project_content(project_id: str):
    """Delete all files and documents of a project through the cascade delete"""
    await connect(max_retries=1)
    try:
        print(f"⚠️  WARNING: This will delete ALL files and documents for project: {project_id}")
        print(f"Database: {settings.MONGODB_DB_NAME}")

        project = await db()["projects"].find_one({"project_id": project_id})
        if not project:
            print(f"❌ Project {project_id} not found!")
            return

        print(f"Project name: {project.get('name', 'N/A')}")

        for label, lineage in (("files", file_lineage()), ("documents", document_lineage())):
            deleted = 0
            versions = 0
            for item in await lineage.list_by_project(project_id):
                try:
                    versions += await lineage.delete(item.item_id)
                    deleted += 1
                except ContentHubError as e:
                    print(f"⚠️  Could not delete {label[:-1]} {item.item_id}: {e}")
            print(f"✅ Deleted {deleted} {label} ({versions} versions)")
    finally:
        await close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python -m scripts.purge_project_content <project_id>")
        sys.exit(1)
    asyncio.run(purge_project_content(sys.argv[1]))
