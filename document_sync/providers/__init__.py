"""Cloud provider layer for Document Sync.

Every backend implements ``CloudStorageProvider`` so the reconciliation
engine never depends on a concrete provider.

Usage:
    from document_sync.providers import create_provider

    provider = create_provider(get_settings())
    if provider is not None and provider.is_ready():
        remote = await provider.fetch_files()
"""

from .auth import AccessGrant
from .auth import ProviderCredentials
from .base import CloudStorageProvider
from .dropbox import DropboxProvider
from .factory import create_provider
from .gcs import GCSProvider
from .google_drive import GoogleDriveProvider
from .local import LocalMirrorProvider

__all__ = [
    "AccessGrant",
    "CloudStorageProvider",
    "DropboxProvider",
    "GCSProvider",
    "GoogleDriveProvider",
    "LocalMirrorProvider",
    "ProviderCredentials",
    "create_provider",
]
