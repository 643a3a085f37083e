from pydantic import BaseModel
from datetime import datetime

class FileItemPublic(BaseModel):
    """Public file model (for API responses)"""
    file_id: str
    project_id: str
    name: str
    content_type: str
    size: int
    file_hash: str  # For version comparison
    storage_path: str
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime

class FileVersionPublic(BaseModel):
    """One entry of a file's history"""
    version_id: str
    file_id: str
    version_number: int
    version_label: str  # "v1", "v2", ...
    content_type: str
    size: int
    file_hash: str
    storage_path: str
    uploaded_by: str  # Display label, "System"/"Unknown" when unresolved
    change_note: str | None = None
    created_at: datetime
