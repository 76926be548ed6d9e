"""Custom exception hierarchy for the Document Sync system.

Every error raised by the store carries a machine-readable ``error_code``,
a ``details`` dict for structured logging and a ``user_message`` that a
caller can show as-is.

The hierarchy separates the failure classes a caller must tell apart:

- ``ValidationError``: bad input, nothing was persisted
- ``StoredFileNotFoundError``: unknown file name
- ``LocalPersistenceError``: the local store rejected a write
- ``CloudSyncError``: the cloud provider failed; local state may already
  be committed
"""

from __future__ import annotations

from typing import Any

from .helpers import format_bytes


class DocumentSyncError(Exception):
    """Base class for all Document Sync errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.user_message = user_message or message

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception into a serializable dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
        }


class ValidationError(DocumentSyncError):
    """Raised when input fails validation before any state is touched."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        if value is not None:
            details["invalid_value"] = value
        super().__init__(
            message,
            error_code="VALIDATION_ERROR",
            details=details,
            user_message=user_message,
        )


class FileSizeLimitError(ValidationError):
    """Raised when a single file exceeds the per-file size limit."""

    def __init__(self, size: int, limit: int):
        message = (
            f"File size ({format_bytes(size)}) exceeds maximum allowed size ({format_bytes(limit)})"
        )
        super().__init__(
            message,
            field="content",
            details={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class StorageLimitError(ValidationError):
    """Raised when a new file would push the store over its total limit."""

    def __init__(self, current_total: int, size: int, limit: int):
        message = (
            "Adding this file would exceed storage limit. "
            f"Current usage: {format_bytes(current_total)}, Limit: {format_bytes(limit)}"
        )
        super().__init__(
            message,
            field="content",
            details={"current_total": current_total, "size": size, "limit": limit},
        )
        self.current_total = current_total
        self.size = size
        self.limit = limit


class StoredFileNotFoundError(DocumentSyncError):
    """Raised when a named file is not present in the store."""

    def __init__(self, file_name: str, details: dict[str, Any] | None = None):
        merged = {"file_name": file_name}
        merged.update(details or {})
        super().__init__(
            f'File "{file_name}" not found',
            error_code="FILE_NOT_FOUND",
            details=merged,
            user_message=f"The file '{file_name}' does not exist.",
        )
        self.file_name = file_name


class LocalPersistenceError(DocumentSyncError):
    """Raised when the local persistence facility rejects an operation."""

    def __init__(self, operation: str, failure_reason: str, path: str | None = None):
        details = {"operation": operation, "failure_reason": failure_reason}
        if path:
            details["path"] = path
        super().__init__(
            f"Local storage {operation} failed: {failure_reason}",
            error_code="LOCAL_PERSISTENCE_ERROR",
            details=details,
            user_message=(
                "Storage quota exceeded or storage unavailable. "
                "Please delete some files and try again."
            ),
        )

    @property
    def operation(self) -> str:
        return self.details["operation"]


class CloudSyncError(DocumentSyncError):
    """Raised for any failure at the cloud provider boundary.

    ``provider`` is the tag of the originating provider, or ``None`` when
    no provider was configured at all.
    """

    def __init__(self, provider: str | None, message: str, details: dict[str, Any] | None = None):
        merged = {"provider": provider}
        merged.update(details or {})
        super().__init__(
            message,
            error_code="CLOUD_SYNC_ERROR",
            details=merged,
            user_message=f"Cloud sync failed: {message}",
        )
        self.provider = provider


class DropboxSyncError(CloudSyncError):
    """Dropbox-specific sync failure."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("dropbox", message, details=details)


class GoogleDriveSyncError(CloudSyncError):
    """Google Drive-specific sync failure."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("googleDrive", message, details=details)


class GCSSyncError(CloudSyncError):
    """Google Cloud Storage sync failure."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("gcs", message, details=details)


class LocalMirrorSyncError(CloudSyncError):
    """Failure writing to or reading from a local mirror directory."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("local", message, details=details)
