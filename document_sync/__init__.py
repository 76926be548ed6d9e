"""Document Sync: a local document store with optional cloud mirroring.

Usage:
    from document_sync import create_document_store

    store = create_document_store()
    result = await store.save_file("notes.txt", "hello")
    listing = await store.list_files()
"""

from .exceptions import CloudSyncError
from .exceptions import DocumentSyncError
from .exceptions import FileSizeLimitError
from .exceptions import LocalPersistenceError
from .exceptions import StorageLimitError
from .exceptions import StoredFileNotFoundError
from .exceptions import ValidationError
from .factory import create_document_store
from .factory import create_registry
from .models import CloudProvider
from .models import DeleteResult
from .models import ListFilesResult
from .models import RemoteFile
from .models import SaveResult
from .models import StorageInfo
from .models import StoredFile
from .providers import CloudStorageProvider
from .providers import create_provider
from .store import DocumentStore

__version__ = "1.0.0"

__all__ = [
    # Engine
    "DocumentStore",
    "create_document_store",
    "create_registry",
    "create_provider",
    "CloudStorageProvider",
    # Models
    "CloudProvider",
    "DeleteResult",
    "ListFilesResult",
    "RemoteFile",
    "SaveResult",
    "StorageInfo",
    "StoredFile",
    # Exceptions
    "CloudSyncError",
    "DocumentSyncError",
    "FileSizeLimitError",
    "LocalPersistenceError",
    "StorageLimitError",
    "StoredFileNotFoundError",
    "ValidationError",
]
