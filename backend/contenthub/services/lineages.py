"""The two configured lineages. Used as FastAPI dependencies by the routers."""
from ..core.settings import settings
from ..db.mongo import DOCUMENT_VERSIONS, DOCUMENTS, FILE_VERSIONS, FILES
from .content_backend import BlobBackend, InlineBackend
from .item_registry import ItemRegistry
from .lineage import Lineage
from .version_store import VersionStore


def file_lineage() -> Lineage:
    """Uploaded binary files, bytes stored under STORAGE_ROOT."""
    return Lineage(
        kind="file",
        registry=ItemRegistry(FILES, "File"),
        versions=VersionStore(FILE_VERSIONS),
        backend=BlobBackend(settings.STORAGE_ROOT),
    )


def document_lineage() -> Lineage:
    """Text documents, content stored inline in the records."""
    return Lineage(
        kind="document",
        registry=ItemRegistry(DOCUMENTS, "Document"),
        versions=VersionStore(DOCUMENT_VERSIONS),
        backend=InlineBackend(),
    )
