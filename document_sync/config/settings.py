"""Centralized configuration management for the Document Sync system.

This module provides a single source of truth for configuration: where the
local store lives, its size limits, which cloud provider mirrors it and the
credentials that provider needs.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

ProviderName = Literal["none", "dropbox", "googleDrive", "gcs", "local"]

# Accepted spellings for cloud_provider, mapped to canonical provider tags
_PROVIDER_ALIASES = {
    "": "none",
    "none": "none",
    "dropbox": "dropbox",
    "googledrive": "googleDrive",
    "google_drive": "googleDrive",
    "gdrive": "googleDrive",
    "gcs": "gcs",
    "local": "local",
}


class Settings(BaseSettings):
    """Centralized settings for the Document Sync system."""

    # === Local Store Configuration ===
    document_store_dir: str = Field(default=".document_store", description="Directory holding the local store")
    storage_key: str = Field(default="stored_files", description="Well-known key the file set is stored under")
    max_file_size: int = Field(default=5 * 1024 * 1024, description="Per-file size limit in bytes")
    max_total_size: int = Field(default=50 * 1024 * 1024, description="Total store size limit in bytes")

    # === Cloud Provider Selection ===
    cloud_provider: ProviderName = Field(default="none", description="Active cloud provider")

    # === Dropbox ===
    dropbox_app_key: str | None = Field(default=None, description="Dropbox app key")
    dropbox_access_token: str | None = Field(default=None, description="Dropbox access token")
    dropbox_refresh_token: str | None = Field(default=None, description="Dropbox refresh token")
    dropbox_token_expires_at: datetime | None = Field(default=None, description="Dropbox token expiry")
    dropbox_base_path: str = Field(default="", description="Folder inside the Dropbox app area")

    # === Google Drive ===
    google_drive_client_id: str | None = Field(default=None, description="Google OAuth client id")
    google_drive_access_token: str | None = Field(default=None, description="Google Drive access token")
    google_drive_token_expires_at: datetime | None = Field(default=None, description="Google token expiry")
    google_drive_folder_name: str = Field(default="DocumentSync", description="Drive folder holding the files")

    # === Google Cloud Storage ===
    gcs_bucket: str | None = Field(default=None, description="GCS bucket name")
    gcs_prefix: str = Field(default="", description="Path prefix within the GCS bucket")

    # === Local Mirror ===
    mirror_dir: str | None = Field(default=None, description="Directory mirrored as a provider")

    # === Timeout Configuration ===
    request_timeout: float = Field(default=30.0, description="Timeout for provider HTTP requests")

    # === Test Environment Detection ===
    pytest_current_test: str | None = Field(default=None, description="Test mode indicator")

    # === Logging Configuration ===
    log_level: str = Field(default="INFO", description="Level applied to the document_sync loggers")

    # === Performance Configuration ===
    enable_metrics: bool = Field(default=True, description="Enable metrics collection")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific adjustments."""
        super().__init__(**kwargs)
        self._adjust_for_test_environment()

    @field_validator("cloud_provider", mode="before")
    @classmethod
    def normalize_provider(cls, value):
        if value is None:
            return "none"
        if isinstance(value, str):
            return _PROVIDER_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("max_file_size", "max_total_size")
    @classmethod
    def positive_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("size limits must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    def _adjust_for_test_environment(self):
        """Adjust settings for test environment."""
        if self.is_test_environment:
            # Use shorter timeouts in test environments
            self.request_timeout = 5.0
            if "DOCUMENT_STORE_DIR" in os.environ:
                self.document_store_dir = os.environ["DOCUMENT_STORE_DIR"]

    @property
    def is_test_environment(self) -> bool:
        """Check if running in test environment."""
        return (
            "PYTEST_CURRENT_TEST" in os.environ
            or self.pytest_current_test is not None
            or "DOCUMENT_STORE_DIR" in os.environ
        )

    @property
    def document_store_path(self) -> Path:
        """Get the store directory as a Path object, creating it if needed."""
        path = Path(self.document_store_dir).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def dropbox_configured(self) -> bool:
        return bool(self.dropbox_app_key and self.dropbox_app_key.strip())

    @property
    def google_drive_configured(self) -> bool:
        return bool(self.google_drive_client_id and self.google_drive_client_id.strip())

    @property
    def gcs_configured(self) -> bool:
        return bool(self.gcs_bucket and self.gcs_bucket.strip())

    @property
    def mirror_configured(self) -> bool:
        return bool(self.mirror_dir and self.mirror_dir.strip())


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        load_dotenv()  # Load .env file
        _settings = Settings()
    else:
        # In test environment, refresh store directory if changed
        if "DOCUMENT_STORE_DIR" in os.environ:
            current_root = os.environ["DOCUMENT_STORE_DIR"]
            if _settings.document_store_dir != current_root:
                _settings.document_store_dir = current_root
    return _settings


def reset_settings():
    """Reset the global settings instance (primarily for testing)."""
    global _settings
    _settings = None
