from fastapi import APIRouter, Depends
from fastapi.responses import Response
from typing import List

from ..dependencies.auth import get_current_user
from ..models.document import DocumentCreate, DocumentPublic, DocumentUpdate, DocumentVersionPublic
from ..models.lineage import ItemInDB, VersionInDB
from ..services.directory import author_labels
from ..services.lineage import Lineage
from ..services.lineages import document_lineage

router = APIRouter(prefix="/projects/{project_id}/documents", tags=["documents"])


def _document_public(item: ItemInDB) -> DocumentPublic:
    return DocumentPublic(
        document_id=item.item_id,
        project_id=item.project_id,
        title=item.name,
        content=item.content.ref,
        created_by=item.created_by,
        updated_by=item.updated_by,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


async def _versions_public(versions: List[VersionInDB]) -> List[DocumentVersionPublic]:
    labels = await author_labels(v.author for v in versions)
    return [
        DocumentVersionPublic(
            version_id=v.version_id,
            document_id=v.item_id,
            version_number=v.version_number,
            version_label=v.version_label,
            content=v.content.ref,
            change_description=v.change_note,
            edited_by=labels[v.author],
            created_at=v.created_at,
        )
        for v in versions
    ]


@router.get("", response_model=List[DocumentPublic])
async def list_documents(
    project_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """List documents in a project, oldest first"""
    return [_document_public(item) for item in await lineage.list_by_project(project_id)]


@router.post("", response_model=DocumentPublic, status_code=201)
async def create_document(
    project_id: str,
    body: DocumentCreate,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Create a document"""
    item = await lineage.create(project_id, body.title, body.content, author=user["username"])
    return _document_public(item)


@router.get("/{document_id}", response_model=DocumentPublic)
async def get_document(
    project_id: str,
    document_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Get a document with its current content"""
    return _document_public(await lineage.get(document_id, project_id))


@router.put("/{document_id}", response_model=DocumentPublic)
async def update_document(
    project_id: str,
    document_id: str,
    body: DocumentUpdate,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Replace document content; the previous content is kept as a version"""
    item = await lineage.update(
        document_id,
        body.content,
        author=user["username"],
        change_note=body.change_description,
        name=body.title,
        project_id=project_id,
    )
    return _document_public(item)


@router.get("/{document_id}/versions", response_model=List[DocumentVersionPublic])
async def list_document_versions(
    project_id: str,
    document_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Version history of a document, newest first"""
    return await _versions_public(await lineage.history(document_id, project_id))


@router.get("/{document_id}/versions/{version_number}", response_model=DocumentVersionPublic)
async def get_document_version(
    project_id: str,
    document_id: str,
    version_number: int,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Get one version of a document"""
    version = await lineage.get_version(document_id, version_number, project_id)
    return (await _versions_public([version]))[0]


@router.post("/{document_id}/restore/{version_number}", response_model=DocumentPublic)
async def restore_document_version(
    project_id: str,
    document_id: str,
    version_number: int,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Restore a document to a previous version"""
    item = await lineage.restore(document_id, version_number, author=user["username"], project_id=project_id)
    return _document_public(item)


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    project_id: str,
    document_id: str,
    user=Depends(get_current_user),
    lineage: Lineage = Depends(document_lineage),
):
    """Delete a document and its whole history"""
    await lineage.delete(document_id, project_id)
    return Response(status_code=204)
