"""Local file registry for Document Sync.

Usage:
    from document_sync.registry import JsonFileRegistry

    registry = JsonFileRegistry(".document_store")
    files = await registry.read()
    await registry.write(files)
"""

from .base import FileRegistry
from .json_file import JsonFileRegistry
from .memory import MemoryRegistry

__all__ = ["FileRegistry", "JsonFileRegistry", "MemoryRegistry"]
