"""The pytest configuration for Document Sync testing.

Log files go to a temporary directory and metrics stay disabled; both are
decided when ``document_sync`` is first imported, so they are set here
before any test module imports the package.
"""

import os
import tempfile

os.environ.setdefault("DOCUMENT_SYNC_LOG_DIR", tempfile.mkdtemp(prefix="document_sync_logs_"))
os.environ.setdefault("DOCUMENT_SYNC_METRICS_ENABLED", "false")

import pytest  # noqa: E402

from document_sync.config import reset_settings  # noqa: E402
from document_sync.registry import MemoryRegistry  # noqa: E402
from document_sync.store import DocumentStore  # noqa: E402

from .shared.fakes import FakeProvider  # noqa: E402


@pytest.fixture
def temp_store_dir(tmp_path, monkeypatch):
    """Point the settings at a fresh store directory."""
    store_dir = tmp_path / "store"
    monkeypatch.setenv("DOCUMENT_STORE_DIR", str(store_dir))
    reset_settings()
    yield store_dir
    reset_settings()


@pytest.fixture
def registry():
    return MemoryRegistry()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def store(registry, provider):
    """A store mirrored to an in-memory provider."""
    return DocumentStore(registry, provider=provider)


@pytest.fixture
def local_store(registry):
    """A store with no provider configured."""
    return DocumentStore(registry)


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests wiring several components together")
