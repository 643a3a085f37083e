from pydantic import BaseModel
from datetime import datetime

DEFAULT_TITLE = "Untitled Doc"

class DocumentCreate(BaseModel):
    """Request model for creating a document"""
    title: str = DEFAULT_TITLE
    content: str = ""

class DocumentUpdate(BaseModel):
    """Request model for replacing document content"""
    title: str | None = None  # Keep current title when omitted
    content: str
    change_description: str | None = None

class DocumentPublic(BaseModel):
    """Public document model (for API responses)"""
    document_id: str
    project_id: str
    title: str
    content: str
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime

class DocumentVersionPublic(BaseModel):
    """Version information for a document"""
    version_id: str
    document_id: str
    version_number: int
    version_label: str
    content: str
    change_description: str | None = None
    edited_by: str  # Display label, "System"/"Unknown" when unresolved
    created_at: datetime
