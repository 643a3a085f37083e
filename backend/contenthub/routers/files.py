from fastapi import APIRouter, Depends, UploadFile, File, Form, Query
from fastapi.responses import Response
from typing import List, Optional
import os
import re

from ..dependencies.auth import get_current_user
from ..models.file import FileItemPublic, FileVersionPublic
from ..models.lineage import ItemInDB, VersionInDB
from ..services.directory import author_labels
from ..services.lineage import Lineage
from ..services.lineages import file_lineage

router = APIRouter(prefix="/projects/{project_id}/files", tags=["files"])


def _file_public(item: ItemInDB) -> FileItemPublic:
    return FileItemPublic(
        file_id=item.item_id,
        project_id=item.project_id,
        name=item.name,
        content_type=item.content.content_type or "application/octet-stream",
        size=item.content.size or 0,
        file_hash=item.content.checksum or "",
        storage_path=item.content.ref,
        created_by=item.created_by,
        updated_by=item.updated_by,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


async def _versions_public(versions: List[VersionInDB]) -> List[FileVersionPublic]:
    labels = await author_labels(v.author for v in versions)
    return [
        FileVersionPublic(
            version_id=v.version_id,
            file_id=v.item_id,
            version_number=v.version_number,
            version_label=v.version_label,
            content_type=v.content.content_type or "application/octet-stream",
            size=v.content.size or 0,
            file_hash=v.content.checksum or "",
            storage_path=v.content.ref,
            uploaded_by=labels[v.author],
            change_note=v.change_note,
            created_at=v.created_at,
        )
        for v in versions
    ]


def _safe_filename(filename: str) -> str:
    """Strip path components and problematic characters, keep the extension."""
    name, ext = os.path.splitext(os.path.basename(filename))
    safe_name = re.sub(r'[^a-zA-Z0-9._-]', '_', name)
    return safe_name + ext if ext else safe_name


@router.get("", response_model=List[FileItemPublic])
async def list_files(
    project_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """List files in a project, oldest first"""
    return [_file_public(item) for item in await lineage.list_by_project(project_id)]


@router.post("", response_model=FileItemPublic, status_code=201)
async def upload_file(
    project_id: str,
    file: UploadFile = File(...),
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """Upload a new file into the project"""
    content = await file.read()
    item = await lineage.create(
        project_id,
        file.filename or "",
        content,
        author=user["username"],
        content_type=file.content_type,
    )
    return _file_public(item)


@router.get("/{file_id}", response_model=FileItemPublic)
async def get_file(
    project_id: str,
    file_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """Get file metadata"""
    return _file_public(await lineage.get(file_id, project_id))


@router.get("/{file_id}/versions", response_model=List[FileVersionPublic])
async def list_file_versions(
    project_id: str,
    file_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """List previous versions of a file, newest first"""
    return await _versions_public(await lineage.history(file_id, project_id))


@router.post("/{file_id}/versions", response_model=FileItemPublic)
async def upload_new_version(
    project_id: str,
    file_id: str,
    file: UploadFile = File(...),
    change_note: Optional[str] = Form(None, description="What changed"),
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """Upload a new version of an existing file"""
    content = await file.read()
    item = await lineage.update(
        file_id,
        content,
        author=user["username"],
        change_note=change_note,
        content_type=file.content_type,
        project_id=project_id,
    )
    return _file_public(item)


@router.post("/{file_id}/restore/{version_number}", response_model=FileItemPublic)
async def restore_file_version(
    project_id: str,
    file_id: str,
    version_number: int,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """Make a previous version the current one"""
    item = await lineage.restore(file_id, version_number, author=user["username"], project_id=project_id)
    return _file_public(item)


@router.get("/{file_id}/download")
async def download_file(
    project_id: str,
    file_id: str,
    version: Optional[int] = Query(None, description="Specific version, or current if not provided"),
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """Download file content"""
    item, snapshot, content = await lineage.read_content(file_id, version, project_id)
    safe_filename = _safe_filename(item.name)
    media_type = snapshot.content_type or "application/octet-stream"

    # PDFs open inline so they can be viewed in an iframe
    disposition = "inline" if media_type == "application/pdf" else "attachment"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'{disposition}; filename="{safe_filename}"'},
    )


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    project_id: str,
    file_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(file_lineage),
):
    """Delete a file with all of its versions"""
    await lineage.delete(file_id, project_id)
    return Response(status_code=204)
