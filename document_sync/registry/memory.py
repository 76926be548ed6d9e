"""In-memory registry for tests and ephemeral stores.

Records are kept in their persisted (JSON-compatible) form so reads go
through the same validation as the file-backed registry.
"""

from __future__ import annotations

import copy
from typing import Any

from ..models import StoredFile
from .base import FileRegistry


class MemoryRegistry(FileRegistry):
    """Registry held in process memory."""

    def __init__(self, records: list[dict[str, Any]] | None = None):
        self._records: Any = copy.deepcopy(records) if records is not None else None

    @property
    def location(self) -> str:
        return "memory"

    @property
    def raw_records(self) -> Any:
        """Persisted records as last written (None when cleared)."""
        return copy.deepcopy(self._records)

    async def read(self) -> list[StoredFile]:
        if self._records is None:
            return []

        files = self.parse_records(self._records)
        if files is None:
            self._records = None
            return []
        return files

    async def write(self, files: list[StoredFile]) -> None:
        self._records = [f.to_record() for f in files]

    async def clear(self) -> None:
        self._records = None
