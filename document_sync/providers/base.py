"""Abstract Base Class for cloud storage providers.

Defines the contract every backend (Dropbox, Google Drive, GCS, a local
mirror directory) implements so the reconciliation engine can stay
provider-agnostic. Providers never touch the local registry.
"""
from __future__ import annotations


from abc import ABC
from abc import abstractmethod

from ..models import CloudProvider
from ..models import RemoteFile


class CloudStorageProvider(ABC):
    """Abstract base class for cloud storage providers.

    Files are addressed by name inside the provider's storage area for
    this application.
    """

    @property
    @abstractmethod
    def provider(self) -> CloudProvider:
        """Return the provider tag recorded on synced files."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the backend is configured (client id, bucket, ...).

        Independent of whether a user is currently signed in.
        """
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Return True if an active, unexpired access grant exists."""
        pass

    @abstractmethod
    async def upload_file(self, name: str, content: str) -> None:
        """Create or replace ``name`` with ``content``.

        Raises:
            CloudSyncError: If the upload cannot complete
        """
        pass

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        """Delete ``name``. Deleting a file that does not exist succeeds.

        Raises:
            CloudSyncError: For any failure other than "not found"
        """
        pass

    @abstractmethod
    async def fetch_files(self) -> list[RemoteFile]:
        """List every file in the storage area with its content.

        Paginated listings are drained completely before returning.

        Raises:
            CloudSyncError: If the listing cannot complete
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider.value!r})"
