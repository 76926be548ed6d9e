"""Data models for the Document Sync system.

``StoredFile`` is the persisted record; its JSON form uses the camelCase
keys the local store has always been written with. ``RemoteFile`` is the
transient record a provider hands back from a listing and is never
persisted directly.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator

from .exceptions import CloudSyncError


class CloudProvider(str, Enum):
    """Tags identifying the cloud backends a file can be mirrored to."""

    DROPBOX = "dropbox"
    GOOGLE_DRIVE = "googleDrive"
    GCS = "gcs"
    LOCAL = "local"


class StoredFile(BaseModel):
    """One persisted document."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    content: str
    created_at: datetime.datetime = Field(alias="createdAt")
    size: int
    synced_provider: CloudProvider | None = Field(default=None, alias="syncedProvider")

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_dropbox_flag(cls, data: Any) -> Any:
        # Records written before provider tags existed only carry syncedToDropbox
        if isinstance(data, dict) and "syncedToDropbox" in data:
            data = dict(data)
            legacy = data.pop("syncedToDropbox")
            if data.get("syncedProvider") is None and data.get("synced_provider") is None:
                data["syncedProvider"] = CloudProvider.DROPBOX if legacy else None
        return data

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class RemoteFile:
    """A file as reported by a provider's listing, content included."""

    name: str
    path: str
    client_modified: datetime.datetime | None
    size: int
    content: str


@dataclass
class ListFilesResult:
    """Outcome of a reconciliation pass."""

    files: list[StoredFile] = field(default_factory=list)
    conflicts: list[StoredFile] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0


@dataclass
class StorageInfo:
    """Storage usage summary."""

    used: int
    available: int
    total: int
    file_count: int


@dataclass
class SaveResult:
    """Result of a save: the committed local record plus any sync failure.

    A populated ``sync_error`` means the file was saved locally but could
    not be mirrored to the provider.
    """

    file: StoredFile
    sync_error: CloudSyncError | None = None

    @property
    def synced(self) -> bool:
        return self.file.synced_provider is not None and self.sync_error is None

    def raise_for_sync_error(self) -> None:
        """Raise the sync failure, if any."""
        if self.sync_error is not None:
            raise self.sync_error


@dataclass
class DeleteResult:
    """Result of a delete. ``sync_error`` reports a failed remote delete."""

    file_name: str
    sync_error: CloudSyncError | None = None

    def raise_for_sync_error(self) -> None:
        if self.sync_error is not None:
            raise self.sync_error
