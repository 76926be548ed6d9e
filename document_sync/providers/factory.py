"""Cloud Provider Factory.

Builds the provider named by ``Settings.cloud_provider``:
- none: No mirroring; the store runs local-only
- dropbox / googleDrive: HTTP providers using the configured access grant
- gcs: Bucket objects via google-cloud-storage
- local: A mirror directory on this machine
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from ..models import CloudProvider
from .auth import AccessGrant
from .auth import ProviderCredentials

if TYPE_CHECKING:
    from ..config import Settings
    from .base import CloudStorageProvider

# Google access tokens are treated as expired slightly early
GOOGLE_TOKEN_LEEWAY = datetime.timedelta(seconds=30)


def _grant(access_token: str | None, refresh_token: str | None = None, expires_at=None) -> AccessGrant | None:
    if not access_token:
        return None
    return AccessGrant(access_token=access_token, refresh_token=refresh_token, expires_at=expires_at)


def create_provider(settings: Settings) -> CloudStorageProvider | None:
    """Create the configured provider, or None when mirroring is off.

    Args:
        settings: Application settings

    Returns:
        Configured CloudStorageProvider instance, or None
    """
    if settings.cloud_provider == "none":
        return None

    provider = CloudProvider(settings.cloud_provider)

    if provider == CloudProvider.DROPBOX:
        from .dropbox import DropboxProvider

        credentials = ProviderCredentials(
            client_id=settings.dropbox_app_key,
            grant=_grant(
                settings.dropbox_access_token,
                settings.dropbox_refresh_token,
                settings.dropbox_token_expires_at,
            ),
        )
        return DropboxProvider(credentials, base_path=settings.dropbox_base_path, timeout=settings.request_timeout)

    if provider == CloudProvider.GOOGLE_DRIVE:
        from .google_drive import GoogleDriveProvider

        credentials = ProviderCredentials(
            client_id=settings.google_drive_client_id,
            grant=_grant(settings.google_drive_access_token, expires_at=settings.google_drive_token_expires_at),
            leeway=GOOGLE_TOKEN_LEEWAY,
        )
        return GoogleDriveProvider(
            credentials, folder_name=settings.google_drive_folder_name, timeout=settings.request_timeout
        )

    if provider == CloudProvider.GCS:
        from .gcs import GCSProvider

        return GCSProvider(bucket_name=settings.gcs_bucket, prefix=settings.gcs_prefix)

    from .local import LocalMirrorProvider

    return LocalMirrorProvider(settings.mirror_dir)
