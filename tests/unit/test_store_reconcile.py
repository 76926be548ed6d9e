"""
Unit tests for the reconciliation pass behind DocumentStore.list_files.
"""

import datetime

import pytest

from document_sync.exceptions import GoogleDriveSyncError
from document_sync.models import CloudProvider
from document_sync.models import StoredFile
from document_sync.registry import MemoryRegistry
from document_sync.store import DocumentStore
from tests.shared.fakes import REMOTE_MODIFIED
from tests.shared.fakes import FakeProvider

CREATED = datetime.datetime(2023, 6, 1, tzinfo=datetime.timezone.utc)


def _record(name, content, synced=None, file_id=None):
    return StoredFile(
        id=file_id or f"file_1_{name}",
        name=name,
        content=content,
        created_at=CREATED,
        size=len(content.encode("utf-8")),
        synced_provider=synced,
    ).to_record()


class TestWithoutProvider:
    @pytest.mark.asyncio
    async def test_save_then_list_without_provider(self, local_store):
        await local_store.save_file("notes.txt", "hello")

        result = await local_store.list_files()

        assert [f.name for f in result.files] == ["notes.txt"]
        assert result.conflicts == []
        assert not result.has_conflicts

    @pytest.mark.asyncio
    async def test_local_records_returned_verbatim(self):
        registry = MemoryRegistry([_record("a.txt", "A", synced="dropbox")])
        store = DocumentStore(registry)

        result = await store.list_files()

        assert result.files[0].synced_provider == CloudProvider.DROPBOX
        assert result.conflicts == []

    @pytest.mark.asyncio
    async def test_not_ready_provider_is_not_contacted(self):
        provider = FakeProvider(files={"remote.txt": "R"}, ready=False)
        store = DocumentStore(MemoryRegistry([_record("a.txt", "A")]), provider=provider)

        result = await store.list_files()

        assert [f.name for f in result.files] == ["a.txt"]
        assert provider.calls == []


class TestMerge:
    @pytest.mark.asyncio
    async def test_remote_content_wins_for_shared_names(self):
        registry = MemoryRegistry([_record("a.txt", "B", file_id="file_1_local")])
        provider = FakeProvider(files={"a.txt": "A"})
        store = DocumentStore(registry, provider=provider)

        result = await store.list_files()

        merged = result.files[0]
        assert merged.content == "A"
        assert merged.size == 1
        assert merged.synced_provider == CloudProvider.DROPBOX
        assert merged.id == "file_1_local"
        assert merged.created_at == CREATED
        assert result.conflicts == []

    @pytest.mark.asyncio
    async def test_local_only_file_is_listed_and_queued_as_conflict(self):
        registry = MemoryRegistry([_record("orphan.txt", "O", synced="dropbox")])
        store = DocumentStore(registry, provider=FakeProvider())

        result = await store.list_files()

        assert [f.name for f in result.files] == ["orphan.txt"]
        assert [f.name for f in result.conflicts] == ["orphan.txt"]
        assert result.conflicts[0].synced_provider is None
        assert registry.raw_records[0]["syncedProvider"] is None

    @pytest.mark.asyncio
    async def test_remote_only_file_materialised_as_new_record(self):
        registry = MemoryRegistry()
        provider = FakeProvider(tag=CloudProvider.GOOGLE_DRIVE, files={"r.txt": "remote ✓"})
        store = DocumentStore(registry, provider=provider)

        result = await store.list_files()

        created = result.files[0]
        assert created.name == "r.txt"
        assert created.content == "remote ✓"
        assert created.size == len("remote ✓".encode("utf-8"))
        assert created.created_at == REMOTE_MODIFIED
        assert created.synced_provider == CloudProvider.GOOGLE_DRIVE
        assert created.id.startswith("file_")
        assert result.conflicts == []

    @pytest.mark.asyncio
    async def test_merge_order_is_local_then_remote_only(self):
        registry = MemoryRegistry([_record("b.txt", "B"), _record("a.txt", "A")])
        provider = FakeProvider(files={"z.txt": "Z", "a.txt": "A2"})
        store = DocumentStore(registry, provider=provider)

        result = await store.list_files()

        assert [f.name for f in result.files] == ["b.txt", "a.txt", "z.txt"]
        assert [f.name for f in result.conflicts] == ["b.txt"]

    @pytest.mark.asyncio
    async def test_merged_set_is_persisted(self):
        registry = MemoryRegistry([_record("a.txt", "old")])
        provider = FakeProvider(files={"a.txt": "new", "r.txt": "R"})
        store = DocumentStore(registry, provider=provider)

        await store.list_files()

        persisted = {r["name"]: r for r in registry.raw_records}
        assert persisted["a.txt"]["content"] == "new"
        assert persisted["a.txt"]["syncedProvider"] == "dropbox"
        assert persisted["r.txt"]["content"] == "R"

    @pytest.mark.asyncio
    async def test_remote_only_files_load_transparently(self):
        store = DocumentStore(MemoryRegistry(), provider=FakeProvider(files={"r.txt": "R"}))

        assert await store.load_file("r.txt") == "R"
        assert await store.file_exists("r.txt")
        info = await store.get_file_info("r.txt")
        assert info.synced_provider == CloudProvider.DROPBOX

    @pytest.mark.asyncio
    async def test_repeated_passes_keep_remote_only_id_stable(self):
        store = DocumentStore(MemoryRegistry(), provider=FakeProvider(files={"r.txt": "R"}))

        first = await store.list_files()
        second = await store.list_files()

        assert first.files[0].id == second.files[0].id

    @pytest.mark.asyncio
    async def test_switching_provider_retags_files(self):
        registry = MemoryRegistry()
        dropbox = FakeProvider(files={"a.txt": "A"})
        store = DocumentStore(registry, provider=dropbox)
        await store.list_files()

        store.set_provider(FakeProvider(tag=CloudProvider.LOCAL, files={"a.txt": "A"}))
        result = await store.list_files()

        assert result.files[0].synced_provider == CloudProvider.LOCAL


class TestFetchFailure:
    @pytest.mark.asyncio
    async def test_fetch_failure_degrades_to_local_view(self):
        registry = MemoryRegistry([_record("a.txt", "A", synced="googleDrive")])
        provider = FakeProvider(tag=CloudProvider.GOOGLE_DRIVE)
        provider.fail_fetch = GoogleDriveSyncError("token expired")
        store = DocumentStore(registry, provider=provider)
        before = registry.raw_records

        result = await store.list_files()

        assert [f.name for f in result.files] == ["a.txt"]
        assert result.files[0].synced_provider == CloudProvider.GOOGLE_DRIVE
        assert result.conflicts == []
        assert registry.raw_records == before

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_also_degrades(self):
        provider = FakeProvider()
        provider.fail_fetch = KeyError("entries")
        store = DocumentStore(MemoryRegistry([_record("a.txt", "A")]), provider=provider)

        result = await store.list_files()

        assert [f.name for f in result.files] == ["a.txt"]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_logged_as_warning(self, mocker):
        log_error = mocker.patch("document_sync.store.log_structured_error")
        provider = FakeProvider()
        provider.fail_fetch = GoogleDriveSyncError("offline")
        store = DocumentStore(MemoryRegistry(), provider=provider)

        await store.list_files()

        log_error.assert_called_once()
        kwargs = log_error.call_args.kwargs
        assert kwargs["category"].value == "WARNING"
        assert kwargs["operation"] == "reconcile"
        assert kwargs["provider"] == "dropbox"
