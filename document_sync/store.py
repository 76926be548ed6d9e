"""Document store: the reconciliation engine.

``DocumentStore`` owns the local registry, enforces the size limits and
folds the active cloud provider's listing into local state. Every read
goes through a reconciliation pass so remote-only files become visible
transparently, and files known only locally are reported as conflicts
for the caller to upload or discard.
"""

from __future__ import annotations

import logging

from .exceptions import CloudSyncError
from .exceptions import FileSizeLimitError
from .exceptions import StorageLimitError
from .exceptions import StoredFileNotFoundError
from .exceptions import ValidationError
from .helpers import byte_length
from .helpers import generate_file_id
from .helpers import is_blank
from .helpers import utc_now
from .logger_config import ErrorCategory
from .logger_config import log_store_call
from .logger_config import log_structured_error
from .metrics_config import record_sync_outcome
from .models import DeleteResult
from .models import ListFilesResult
from .models import RemoteFile
from .models import SaveResult
from .models import StorageInfo
from .models import StoredFile
from .providers.base import CloudStorageProvider
from .registry.base import FileRegistry

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MiB per file
MAX_TOTAL_SIZE = 50 * 1024 * 1024  # 50 MiB total


def _require_name(name: str) -> None:
    if is_blank(name):
        raise ValidationError("File name is required", field="name", value=name)


def _as_cloud_error(provider: CloudStorageProvider, error: Exception) -> CloudSyncError:
    if isinstance(error, CloudSyncError):
        return error
    wrapped = CloudSyncError(provider.provider.value, str(error) or "Unknown cloud storage error")
    wrapped.__cause__ = error
    return wrapped


class DocumentStore:
    """Local document store with optional cloud mirroring.

    Args:
        registry: Durable record of the local file set.
        provider: Active cloud provider, or None to run local-only.
        max_file_size: Per-file limit in bytes.
        max_total_size: Total limit in bytes, checked when a new name is added.
    """

    def __init__(
        self,
        registry: FileRegistry,
        provider: CloudStorageProvider | None = None,
        max_file_size: int = MAX_FILE_SIZE,
        max_total_size: int = MAX_TOTAL_SIZE,
    ):
        self._registry = registry
        self._provider = provider
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size

    @property
    def registry(self) -> FileRegistry:
        return self._registry

    @property
    def provider(self) -> CloudStorageProvider | None:
        return self._provider

    def set_provider(self, provider: CloudStorageProvider | None) -> None:
        """Switch the active provider; None disables mirroring."""
        self._provider = provider

    def _available_provider(self) -> CloudStorageProvider | None:
        if self._provider is None or not self._provider.is_available():
            return None
        return self._provider

    def _ready_provider(self) -> CloudStorageProvider | None:
        provider = self._available_provider()
        if provider is None or not provider.is_ready():
            return None
        return provider

    # === Reconciliation ===

    async def _reconcile(self) -> ListFilesResult:
        local_files = await self._registry.read()

        provider = self._ready_provider()
        if provider is None:
            return ListFilesResult(files=local_files, conflicts=[])

        tag = provider.provider
        try:
            remote_files = await provider.fetch_files()
        except Exception as e:
            # Browsing must keep working when the provider is unreachable
            log_structured_error(
                category=ErrorCategory.WARNING,
                message=f"Failed to fetch files from {tag.value}; showing local files only",
                exception=e,
                operation="reconcile",
                provider=tag.value,
            )
            record_sync_outcome(tag.value, "fetch_failed")
            return ListFilesResult(files=local_files, conflicts=[])

        remote_by_name: dict[str, RemoteFile] = {remote.name: remote for remote in remote_files}

        merged: list[StoredFile] = []
        conflicts: list[StoredFile] = []
        for local in local_files:
            remote = remote_by_name.pop(local.name, None)
            if remote is not None:
                merged.append(
                    local.model_copy(
                        update={
                            "content": remote.content,
                            "size": byte_length(remote.content),
                            "created_at": local.created_at or remote.client_modified or utc_now(),
                            "synced_provider": tag,
                        }
                    )
                )
            else:
                entry = local.model_copy(update={"synced_provider": None})
                merged.append(entry)
                conflicts.append(entry)

        for remote in remote_by_name.values():
            merged.append(
                StoredFile(
                    id=generate_file_id(),
                    name=remote.name,
                    content=remote.content,
                    created_at=remote.client_modified or utc_now(),
                    size=byte_length(remote.content),
                    synced_provider=tag,
                )
            )

        await self._registry.write(merged)
        record_sync_outcome(tag.value, "reconciled")
        logger.debug(
            "Reconciled %d local and %d remote files from %s: %d merged, %d conflicts",
            len(local_files),
            len(remote_files),
            tag.value,
            len(merged),
            len(conflicts),
        )
        return ListFilesResult(files=merged, conflicts=conflicts)

    async def _find(self, name: str) -> StoredFile | None:
        result = await self._reconcile()
        return next((f for f in result.files if f.name == name), None)

    # === Caller-Facing Operations ===

    @log_store_call
    async def save_file(self, name: str, content: str) -> SaveResult:
        """Save ``content`` under ``name`` and mirror it to the provider.

        The local write always commits before any upload is attempted. A
        failed upload does not raise; it is reported through
        ``SaveResult.sync_error``.

        Raises:
            ValidationError: Blank name or content, or a size limit exceeded
            LocalPersistenceError: If the local write is rejected
        """
        _require_name(name)
        if is_blank(content):
            raise ValidationError("File content is required", field="content")

        size = byte_length(content)
        if size > self.max_file_size:
            raise FileSizeLimitError(size, self.max_file_size)

        files = (await self._reconcile()).files
        index = next((i for i, f in enumerate(files) if f.name == name), None)

        # Only new names are checked: overwriting an existing name may grow
        # the store past max_total_size.
        # TODO: decide whether overwrites should count the size delta against the total limit
        if index is None:
            current_total = sum(f.size for f in files)
            if current_total + size > self.max_total_size:
                raise StorageLimitError(current_total, size, self.max_total_size)

        if index is None:
            record = StoredFile(
                id=generate_file_id(),
                name=name,
                content=content,
                created_at=utc_now(),
                size=size,
                synced_provider=None,
            )
            files.append(record)
        else:
            previous = files[index]
            record = previous.model_copy(
                update={
                    "content": content,
                    "size": size,
                    # A changed body is no longer known to match the remote copy
                    "synced_provider": previous.synced_provider if previous.content == content else None,
                }
            )
            files[index] = record

        await self._registry.write(files)

        provider = self._ready_provider()
        if provider is None:
            logger.debug("Cloud storage not ready, skipping sync of %s", name)
            return SaveResult(file=record)

        tag = provider.provider
        try:
            await provider.upload_file(name, content)
        except Exception as e:
            sync_error = _as_cloud_error(provider, e)
            record.synced_provider = None
            await self._registry.write(files)
            log_structured_error(
                category=ErrorCategory.ERROR,
                message=f"Saved {name} locally but failed to sync to {tag.value}",
                exception=sync_error,
                operation="save_file",
                provider=tag.value,
                file_name=name,
            )
            record_sync_outcome(tag.value, "upload_failed")
            return SaveResult(file=record, sync_error=sync_error)

        record.synced_provider = tag
        await self._registry.write(files)
        record_sync_outcome(tag.value, "uploaded")
        logger.info("Synced %s to %s", name, tag.value)
        return SaveResult(file=record)

    @log_store_call
    async def load_file(self, name: str) -> str:
        """Return the content of ``name``.

        Raises:
            ValidationError: If the name is blank
            StoredFileNotFoundError: If no such file exists after reconciliation
        """
        _require_name(name)
        stored = await self._find(name)
        if stored is None:
            raise StoredFileNotFoundError(name)
        return stored.content

    @log_store_call
    async def list_files(self) -> ListFilesResult:
        """Run a reconciliation pass and return files plus conflicts."""
        return await self._reconcile()

    @log_store_call
    async def delete_file(self, name: str) -> DeleteResult:
        """Delete ``name`` locally, then from the provider.

        The local deletion stands even when the remote delete fails; that
        failure is logged and returned in ``DeleteResult.sync_error``.

        Raises:
            ValidationError: If the name is blank
            StoredFileNotFoundError: If no such file exists
        """
        _require_name(name)
        files = (await self._reconcile()).files
        remaining = [f for f in files if f.name != name]
        if len(remaining) == len(files):
            raise StoredFileNotFoundError(name)

        await self._registry.write(remaining)

        provider = self._ready_provider()
        if provider is None:
            return DeleteResult(file_name=name)

        tag = provider.provider
        try:
            await provider.delete_file(name)
        except Exception as e:
            sync_error = _as_cloud_error(provider, e)
            log_structured_error(
                category=ErrorCategory.WARNING,
                message=f"Deleted {name} locally but failed to delete it from {tag.value}",
                exception=sync_error,
                operation="delete_file",
                provider=tag.value,
                file_name=name,
            )
            record_sync_outcome(tag.value, "delete_failed")
            return DeleteResult(file_name=name, sync_error=sync_error)

        record_sync_outcome(tag.value, "deleted")
        return DeleteResult(file_name=name)

    @log_store_call
    async def clear_all(self) -> None:
        """Remove every local file. Remote storage is left untouched."""
        await self._registry.clear()

    @log_store_call
    async def get_storage_info(self) -> StorageInfo:
        files = (await self._reconcile()).files
        used = sum(f.size for f in files)
        return StorageInfo(
            used=used,
            available=max(0, self.max_total_size - used),
            total=self.max_total_size,
            file_count=len(files),
        )

    @log_store_call
    async def file_exists(self, name: str) -> bool:
        return await self._find(name) is not None

    @log_store_call
    async def get_file_info(self, name: str) -> StoredFile | None:
        return await self._find(name)

    # === Conflict Resolution ===

    @log_store_call
    async def upload_local_only_file(self, file: StoredFile) -> ListFilesResult:
        """Push a local-only file to the provider and reconcile again.

        Raises:
            CloudSyncError: If no provider is ready or the upload fails
        """
        provider = self._available_provider()
        if provider is None or not provider.is_ready():
            raise CloudSyncError(
                provider.provider.value if provider is not None else None,
                "Cloud storage is not connected. Please connect before uploading.",
            )

        try:
            await provider.upload_file(file.name, file.content)
        except Exception as e:
            record_sync_outcome(provider.provider.value, "upload_failed")
            raise _as_cloud_error(provider, e)

        record_sync_outcome(provider.provider.value, "uploaded")
        return await self._reconcile()

    @log_store_call
    async def discard_local_only_file(self, name: str) -> None:
        """Remove ``name`` from the local registry without contacting any provider."""
        files = await self._registry.read()
        await self._registry.write([f for f in files if f.name != name])
