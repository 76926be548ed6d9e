"""Document Store Factory.

Builds the registry, the provider and the store from ``Settings``. Each
call returns fresh instances; nothing here is cached process-wide.
"""

from __future__ import annotations

from .config import Settings
from .config import get_settings
from .logger_config import apply_log_level
from .metrics_config import ensure_metrics_initialized
from .providers import create_provider
from .registry import JsonFileRegistry
from .store import DocumentStore


def create_registry(settings: Settings | None = None) -> JsonFileRegistry:
    """Create the file-backed registry under the configured store directory."""
    settings = settings or get_settings()
    return JsonFileRegistry(settings.document_store_path, storage_key=settings.storage_key)


def create_document_store(settings: Settings | None = None) -> DocumentStore:
    """Create a store wired to the configured registry and provider.

    Args:
        settings: Settings to use; defaults to ``get_settings()``

    Returns:
        A new DocumentStore instance
    """
    settings = settings or get_settings()
    apply_log_level(settings.log_level)
    if settings.enable_metrics:
        ensure_metrics_initialized()
    return DocumentStore(
        create_registry(settings),
        provider=create_provider(settings),
        max_file_size=settings.max_file_size,
        max_total_size=settings.max_total_size,
    )
