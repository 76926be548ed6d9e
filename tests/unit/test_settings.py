"""Unit tests for configuration settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from document_sync.config import Settings
from document_sync.config import get_settings
from document_sync.config import reset_settings


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    for var in (
        "CLOUD_PROVIDER",
        "DROPBOX_APP_KEY",
        "GOOGLE_DRIVE_CLIENT_ID",
        "GCS_BUCKET",
        "MIRROR_DIR",
        "MAX_FILE_SIZE",
        "MAX_TOTAL_SIZE",
    ):
        monkeypatch.delenv(var, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.max_file_size == 5 * 1024 * 1024
        assert settings.max_total_size == 50 * 1024 * 1024
        assert settings.storage_key == "stored_files"
        assert settings.cloud_provider == "none"
        assert settings.google_drive_folder_name == "DocumentSync"

    def test_test_environment_shortens_timeout(self):
        settings = Settings(_env_file=None)

        assert settings.is_test_environment
        assert settings.request_timeout == 5.0

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("google_drive", "googleDrive"),
            ("GDrive", "googleDrive"),
            ("googleDrive", "googleDrive"),
            ("Dropbox", "dropbox"),
            (" gcs ", "gcs"),
            ("", "none"),
            (None, "none"),
        ],
    )
    def test_cloud_provider_aliases(self, raw, expected):
        assert Settings(_env_file=None, cloud_provider=raw).cloud_provider == expected

    def test_unknown_provider_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, cloud_provider="onedrive")

    @pytest.mark.parametrize("field", ["max_file_size", "max_total_size"])
    def test_limits_must_be_positive(self, field):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, **{field: 0})

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CLOUD_PROVIDER", "local")
        monkeypatch.setenv("MIRROR_DIR", "/mnt/usb")
        monkeypatch.setenv("MAX_TOTAL_SIZE", "1024")

        settings = Settings(_env_file=None)

        assert settings.cloud_provider == "local"
        assert settings.mirror_configured
        assert settings.max_total_size == 1024

    def test_configured_flags(self):
        settings = Settings(
            _env_file=None,
            dropbox_app_key=" key ",
            google_drive_client_id="   ",
            gcs_bucket="bucket",
        )

        assert settings.dropbox_configured
        assert not settings.google_drive_configured
        assert settings.gcs_configured
        assert not settings.mirror_configured

    def test_log_level_is_normalised(self):
        assert Settings(_env_file=None, log_level=" warning ").log_level == "WARNING"

        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, log_level="chatty")


class TestGlobalSettings:
    def test_store_dir_follows_environment(self, temp_store_dir):
        settings = get_settings()

        assert settings.document_store_dir == str(temp_store_dir)
        assert settings.document_store_path.is_dir()

    def test_singleton_and_reset(self, temp_store_dir):
        first = get_settings()
        assert get_settings() is first

        reset_settings()

        assert get_settings() is not first

    def test_store_dir_refreshed_when_environment_changes(self, temp_store_dir, tmp_path, monkeypatch):
        settings = get_settings()
        other = tmp_path / "other"
        monkeypatch.setenv("DOCUMENT_STORE_DIR", str(other))

        assert get_settings() is settings
        assert settings.document_store_dir == str(other)
