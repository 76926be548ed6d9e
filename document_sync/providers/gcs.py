"""Google Cloud Storage Provider.

Mirrors files as objects in a GCS bucket, optionally under a prefix.
Authentication uses Application Default Credentials.
"""
from __future__ import annotations


import os

from ..exceptions import GCSSyncError
from ..models import CloudProvider
from ..models import RemoteFile
from .base import CloudStorageProvider


class GCSProvider(CloudStorageProvider):
    """Cloud storage provider using Google Cloud Storage.

    Args:
        bucket_name: GCS bucket name. Defaults to GCS_BUCKET env var.
        prefix: Optional prefix for all object names (e.g., "documents/")
        client: Pre-built ``google.cloud.storage.Client``; created lazily
            from Application Default Credentials if omitted.
    """

    def __init__(self, bucket_name: str | None = None, prefix: str = "", client=None):
        self._bucket_name = bucket_name or os.environ.get("GCS_BUCKET", "")
        self._prefix = prefix.strip("/")
        self._client = client
        self._bucket = None

    @property
    def provider(self) -> CloudProvider:
        return CloudProvider.GCS

    @property
    def root_path(self) -> str:
        if self._prefix:
            return f"gs://{self._bucket_name}/{self._prefix}"
        return f"gs://{self._bucket_name}"

    def is_available(self) -> bool:
        return bool(self._bucket_name)

    def is_ready(self) -> bool:
        if not self.is_available():
            return False
        try:
            self._get_bucket()
        except GCSSyncError:
            return False
        return True

    def _get_bucket(self):
        if self._bucket is not None:
            return self._bucket

        if self._client is None:
            # Lazy import to avoid dependency when GCS is not in use
            try:
                from google.cloud import storage
            except ImportError as e:
                raise GCSSyncError(
                    "google-cloud-storage package required for GCS provider. "
                    "Install with: pip install document-sync[gcs]"
                ) from e

            try:
                self._client = storage.Client()
            except Exception as e:
                raise GCSSyncError(f"Could not create GCS client: {e}") from e

        try:
            self._bucket = self._client.bucket(self._bucket_name)
        except Exception as e:
            raise GCSSyncError(f"Could not open bucket {self._bucket_name}: {e}") from e
        return self._bucket

    def _object_name(self, name: str) -> str:
        if self._prefix:
            return f"{self._prefix}/{name}"
        return name

    # === Contract Operations ===

    async def upload_file(self, name: str, content: str) -> None:
        if "/" in name:
            # fetch_files only lists direct children of the prefix
            raise GCSSyncError(f'File name "{name}" cannot contain "/"', details={"name": name})

        blob = self._get_bucket().blob(self._object_name(name))
        try:
            blob.upload_from_string(content, content_type="text/plain; charset=utf-8")
        except Exception as e:
            raise GCSSyncError(f'Failed to upload file "{name}": {e}') from e

    async def delete_file(self, name: str) -> None:
        blob = self._get_bucket().blob(self._object_name(name))
        try:
            if blob.exists():
                blob.delete()
        except Exception as e:
            raise GCSSyncError(f'Failed to delete file "{name}": {e}') from e

    async def fetch_files(self) -> list[RemoteFile]:
        bucket = self._get_bucket()
        prefix = f"{self._prefix}/" if self._prefix else ""

        files: list[RemoteFile] = []
        try:
            # list_blobs pages lazily; iterating drains every page
            for blob in bucket.list_blobs(prefix=prefix):
                name = blob.name[len(prefix) :]
                # Skip 'directory' markers and nested objects
                if not name or "/" in name:
                    continue

                content = blob.download_as_text(encoding="utf-8")
                files.append(
                    RemoteFile(
                        name=name,
                        path=f"gs://{self._bucket_name}/{blob.name}",
                        client_modified=blob.updated,
                        size=blob.size if blob.size is not None else len(content.encode("utf-8")),
                        content=content,
                    )
                )
        except Exception as e:
            raise GCSSyncError(f"Failed to list files in {self.root_path}: {e}") from e
        return files
