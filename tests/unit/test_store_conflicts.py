"""
Unit tests for conflict resolution, deletion, clearing and storage info.
"""

import pytest

from document_sync.exceptions import CloudSyncError
from document_sync.exceptions import DropboxSyncError
from document_sync.exceptions import LocalMirrorSyncError
from document_sync.exceptions import StoredFileNotFoundError
from document_sync.exceptions import ValidationError
from document_sync.models import CloudProvider
from document_sync.providers.local import LocalMirrorProvider
from document_sync.registry import MemoryRegistry
from document_sync.store import DocumentStore
from tests.shared.fakes import FakeProvider


async def _store_with_orphan(provider):
    """Save a file while the provider is offline so it exists only locally."""
    store = DocumentStore(MemoryRegistry(), provider=provider)
    provider.ready = False
    await store.save_file("orphan.txt", "local only")
    provider.ready = True
    return store


class TestConflictResolution:
    @pytest.mark.asyncio
    async def test_upload_local_only_file_resolves_conflict(self, provider):
        store = await _store_with_orphan(provider)
        listing = await store.list_files()
        assert [f.name for f in listing.conflicts] == ["orphan.txt"]

        result = await store.upload_local_only_file(listing.conflicts[0])

        assert provider.remote == {"orphan.txt": "local only"}
        assert result.conflicts == []
        after = await store.list_files()
        assert after.files[0].synced_provider == CloudProvider.DROPBOX

    @pytest.mark.asyncio
    async def test_upload_local_only_requires_ready_provider(self, provider):
        store = await _store_with_orphan(provider)
        orphan = (await store.list_files()).conflicts[0]
        provider.ready = False

        with pytest.raises(CloudSyncError) as exc_info:
            await store.upload_local_only_file(orphan)

        assert exc_info.value.provider == "dropbox"
        assert provider.call_names("upload") == []

    @pytest.mark.asyncio
    async def test_upload_local_only_without_provider(self, local_store):
        await local_store.save_file("a.txt", "A")
        record = await local_store.get_file_info("a.txt")

        with pytest.raises(CloudSyncError) as exc_info:
            await local_store.upload_local_only_file(record)

        assert exc_info.value.provider is None

    @pytest.mark.asyncio
    async def test_upload_local_only_failure_propagates(self, provider):
        store = await _store_with_orphan(provider)
        orphan = (await store.list_files()).conflicts[0]
        provider.fail_upload = ConnectionError("reset")

        with pytest.raises(CloudSyncError) as exc_info:
            await store.upload_local_only_file(orphan)

        assert exc_info.value.provider == "dropbox"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_discard_local_only_file_never_reappears(self, provider):
        store = await _store_with_orphan(provider)
        await store.list_files()

        await store.discard_local_only_file("orphan.txt")

        assert provider.call_names("delete") == []
        for _ in range(2):
            result = await store.list_files()
            assert result.files == []
            assert result.conflicts == []


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_locally_and_remotely(self, store, provider):
        await store.save_file("a.txt", "A")

        result = await store.delete_file("a.txt")

        assert result.sync_error is None
        assert provider.remote == {}
        assert not await store.file_exists("a.txt")

    @pytest.mark.asyncio
    async def test_delete_unknown_file_raises(self, local_store):
        with pytest.raises(StoredFileNotFoundError):
            await local_store.delete_file("missing.txt")

    @pytest.mark.asyncio
    async def test_delete_blank_name_rejected(self, local_store):
        with pytest.raises(ValidationError):
            await local_store.delete_file("")

    @pytest.mark.asyncio
    async def test_remote_delete_failure_does_not_roll_back(self, store, provider, registry):
        await store.save_file("a.txt", "A")
        await store.save_file("b.txt", "B")
        provider.fail_delete = DropboxSyncError("rate limited")

        result = await store.delete_file("a.txt")

        assert isinstance(result.sync_error, DropboxSyncError)
        assert [r["name"] for r in registry.raw_records] == ["b.txt"]

    @pytest.mark.asyncio
    async def test_delete_remote_only_file(self, registry):
        provider = FakeProvider(files={"r.txt": "R"})
        store = DocumentStore(registry, provider=provider)

        await store.delete_file("r.txt")

        assert provider.remote == {}
        assert (await store.list_files()).files == []

    @pytest.mark.asyncio
    async def test_delete_without_ready_provider_is_local_only(self, registry):
        provider = FakeProvider(ready=False)
        store = DocumentStore(registry, provider=provider)
        await store.save_file("a.txt", "A")

        result = await store.delete_file("a.txt")

        assert result.sync_error is None
        assert provider.calls == []


class TestClearAndInfo:
    @pytest.mark.asyncio
    async def test_clear_all_leaves_remote_intact(self, store, provider, registry):
        await store.save_file("a.txt", "A")
        first_id = (await store.get_file_info("a.txt")).id

        await store.clear_all()

        assert registry.raw_records is None
        assert provider.remote == {"a.txt": "A"}
        assert provider.call_names("delete") == []

        result = await store.list_files()
        assert [f.name for f in result.files] == ["a.txt"]
        assert result.files[0].id != first_id
        assert result.conflicts == []

    @pytest.mark.asyncio
    async def test_clear_all_without_provider_empties_store(self, local_store):
        await local_store.save_file("a.txt", "A")

        await local_store.clear_all()

        assert (await local_store.list_files()).files == []

    @pytest.mark.asyncio
    async def test_storage_info(self, registry):
        store = DocumentStore(registry, max_total_size=1000)
        await store.save_file("a.txt", "12345")
        await store.save_file("b.txt", "äö")

        info = await store.get_storage_info()

        assert info.used == 9
        assert info.available == 991
        assert info.total == 1000
        assert info.file_count == 2

    @pytest.mark.asyncio
    async def test_file_exists_and_info_for_missing_file(self, local_store):
        assert await local_store.file_exists("nope.txt") is False
        assert await local_store.get_file_info("nope.txt") is None


class TestMirrorNameRoundTrip:
    """A file is only marked synced under a name the provider lists back."""

    @pytest.fixture
    def mirror_store(self, tmp_path):
        return DocumentStore(MemoryRegistry(), provider=LocalMirrorProvider(tmp_path / "mirror"))

    @pytest.mark.asyncio
    async def test_listable_name_stays_synced(self, mirror_store):
        saved = await mirror_store.save_file("notes.txt", "hello")
        listing = await mirror_store.list_files()

        assert saved.file.synced_provider == CloudProvider.LOCAL
        assert [(f.name, f.synced_provider) for f in listing.files] == [("notes.txt", CloudProvider.LOCAL)]
        assert listing.conflicts == []

    @pytest.mark.asyncio
    async def test_hidden_name_is_saved_locally_with_sync_error(self, mirror_store, tmp_path):
        saved = await mirror_store.save_file(".notes", "hello")

        assert isinstance(saved.sync_error, LocalMirrorSyncError)
        assert saved.file.synced_provider is None
        assert not (tmp_path / "mirror" / ".notes").exists()

        listing = await mirror_store.list_files()
        assert [f.name for f in listing.conflicts] == [".notes"]

        with pytest.raises(LocalMirrorSyncError):
            await mirror_store.upload_local_only_file(listing.conflicts[0])

        assert await mirror_store.load_file(".notes") == "hello"
