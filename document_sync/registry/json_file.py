"""JSON File Registry.

Persists the file set as a single JSON document named after the storage
key, e.g. ``<store_dir>/stored_files.json``. Writes go to a temporary file
in the same directory which then replaces the target, so a reader never
observes a half-written blob.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..exceptions import LocalPersistenceError
from ..logger_config import ErrorCategory
from ..logger_config import log_structured_error
from ..models import StoredFile
from .base import FileRegistry

logger = logging.getLogger(__name__)


class JsonFileRegistry(FileRegistry):
    """Registry stored as one JSON file on the local filesystem.

    Args:
        root_dir: Directory holding the registry file.
        storage_key: Well-known key; the file is ``<storage_key>.json``.
    """

    def __init__(self, root_dir: str | Path, storage_key: str = "stored_files"):
        self._root = Path(root_dir).expanduser().resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / f"{storage_key}.json"

    @property
    def location(self) -> str:
        return str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    async def read(self) -> list[StoredFile]:
        if not self._path.exists():
            return []

        try:
            text = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            return self._reset_corrupted(e)
        except OSError as e:
            raise LocalPersistenceError("read", e.strerror or str(e), path=str(self._path)) from e

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            return self._reset_corrupted(e)

        files = self.parse_records(raw)
        if files is None:
            return self._reset_corrupted(ValueError(f"expected a list of records, got {type(raw).__name__}"))
        return files

    async def write(self, files: list[StoredFile]) -> None:
        payload = json.dumps([f.to_record() for f in files], ensure_ascii=False)

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=f".{self._path.stem}-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise LocalPersistenceError("write", e.strerror or str(e), path=str(self._path)) from e

        logger.debug("Wrote %d records to %s", len(files), self._path)

    async def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise LocalPersistenceError("clear", e.strerror or str(e), path=str(self._path)) from e

    def _reset_corrupted(self, error: Exception) -> list[StoredFile]:
        log_structured_error(
            category=ErrorCategory.WARNING,
            message="Stored file registry is unreadable; resetting to empty",
            exception=error,
            operation="registry_read",
            registry_path=str(self._path),
        )
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove corrupted registry %s: %s", self._path, e)
        return []
