"""Abstract Base Class for the local file registry.

The registry is the durable record of every locally known ``StoredFile``.
It persists the whole set as one serialized collection and knows nothing
about cloud providers.
"""
from __future__ import annotations


import logging
from abc import ABC
from abc import abstractmethod
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..models import StoredFile

logger = logging.getLogger(__name__)


class FileRegistry(ABC):
    """Abstract base class for registry implementations."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of where records live."""
        pass

    @abstractmethod
    async def read(self) -> list[StoredFile]:
        """Read all stored files in persisted order.

        Malformed records are discarded. If the persisted state cannot be
        parsed at all it is reset and an empty list is returned.
        """
        pass

    @abstractmethod
    async def write(self, files: list[StoredFile]) -> None:
        """Replace the entire persisted set with ``files``.

        Raises:
            LocalPersistenceError: If the host storage rejects the write
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove all persisted state."""
        pass

    @staticmethod
    def parse_records(records: Any) -> list[StoredFile] | None:
        """Validate raw persisted records.

        Returns None when ``records`` is not a list at all (total corruption).
        Individual malformed entries and repeated names are dropped.
        """
        if not isinstance(records, list):
            return None

        files: list[StoredFile] = []
        seen: set[str] = set()
        for index, record in enumerate(records):
            try:
                stored = StoredFile.model_validate(record)
            except PydanticValidationError as e:
                logger.warning("Discarding malformed stored record at index %d: %s", index, e.error_count())
                continue

            if stored.name in seen:
                logger.warning("Discarding duplicate stored record for %r", stored.name)
                continue
            seen.add(stored.name)
            files.append(stored)
        return files
