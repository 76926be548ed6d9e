"""Local Mirror Provider.

Treats a directory (a USB drive, a NAS mount, a folder synced by a desktop
client) as the remote side. Each stored file becomes one UTF-8 text file.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from datetime import timezone
from pathlib import Path

from ..exceptions import LocalMirrorSyncError
from ..models import CloudProvider
from ..models import RemoteFile
from .base import CloudStorageProvider


class LocalMirrorProvider(CloudStorageProvider):
    """Provider backed by a directory on the local filesystem.

    Args:
        root_dir: Mirror directory. The provider is "available" when a
            directory is configured and "ready" once it exists.
        create: Create the directory on construction.
    """

    def __init__(self, root_dir: str | Path | None, create: bool = True):
        self._root = Path(root_dir).expanduser().resolve() if root_dir else None
        if self._root is not None and create:
            self._root.mkdir(parents=True, exist_ok=True)

    @property
    def provider(self) -> CloudProvider:
        return CloudProvider.LOCAL

    @property
    def root_path(self) -> str:
        return str(self._root) if self._root else ""

    def is_available(self) -> bool:
        return self._root is not None

    def is_ready(self) -> bool:
        return self._root is not None and self._root.is_dir()

    def _full_path(self, name: str) -> Path:
        if self._root is None:
            raise LocalMirrorSyncError("No mirror directory configured")
        path = (self._root / name).resolve()
        if path.parent != self._root:
            raise LocalMirrorSyncError(f'File name "{name}" escapes the mirror directory')
        return path

    # === Contract Operations ===

    async def upload_file(self, name: str, content: str) -> None:
        if name.startswith("."):
            # fetch_files skips hidden entries
            raise LocalMirrorSyncError(f'Hidden file name "{name}" cannot be mirrored', details={"name": name})
        path = self._full_path(name)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".upload-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise LocalMirrorSyncError(f'Failed to upload file "{name}": {e}') from e

    async def delete_file(self, name: str) -> None:
        path = self._full_path(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise LocalMirrorSyncError(f'Failed to delete file "{name}": {e}') from e

    async def fetch_files(self) -> list[RemoteFile]:
        if not self.is_ready():
            raise LocalMirrorSyncError(f"Mirror directory {self.root_path or '(unset)'} is not accessible")

        files: list[RemoteFile] = []
        try:
            for item in sorted(self._root.iterdir()):
                # Skip hidden files, including in-flight temporary uploads
                if not item.is_file() or item.name.startswith("."):
                    continue

                stat = item.stat()
                files.append(
                    RemoteFile(
                        name=item.name,
                        path=str(item),
                        client_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                        size=stat.st_size,
                        content=item.read_text(encoding="utf-8"),
                    )
                )
        except (OSError, UnicodeDecodeError) as e:
            raise LocalMirrorSyncError(f"Failed to list mirror directory {self.root_path}: {e}") from e
        return files
