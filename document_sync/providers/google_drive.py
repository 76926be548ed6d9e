"""Google Drive Storage Provider.

Mirrors files into a single Drive folder (looked up by name in the user's
root, created on first use) through the Drive v3 REST API.
"""
from __future__ import annotations


import asyncio
import datetime
import json
import uuid

import requests

from ..exceptions import GoogleDriveSyncError
from ..logger_config import ErrorCategory
from ..logger_config import log_structured_error
from ..models import CloudProvider
from ..models import RemoteFile
from .auth import ProviderCredentials
from .base import CloudStorageProvider

DRIVE_FILES_ENDPOINT = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_ENDPOINT = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Page size used when listing the folder
LIST_PAGE_SIZE = 50


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _parse_timestamp(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    try:
        return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _safe_read_error(response: requests.Response) -> str:
    return response.text or response.reason or "Unknown error"


def _json_payload(response: requests.Response, action: str) -> dict:
    try:
        payload = response.json()
    except ValueError as e:
        raise GoogleDriveSyncError(f"Google Drive returned an unreadable response while {action}: {e}") from e
    if not isinstance(payload, dict):
        raise GoogleDriveSyncError(f"Google Drive returned an unexpected response while {action}")
    return payload


class GoogleDriveProvider(CloudStorageProvider):
    """Cloud storage provider backed by Google Drive.

    Args:
        credentials: OAuth client id and current access grant.
        folder_name: Name of the Drive folder holding the files.
        session: ``requests.Session`` to use; one is created if omitted.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        folder_name: str = "DocumentSync",
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ):
        self._credentials = credentials
        self._folder_name = folder_name
        self._session = session or requests.Session()
        self._timeout = timeout
        self._folder_id: str | None = None
        self._file_id_cache: dict[str, str] = {}

    @property
    def provider(self) -> CloudProvider:
        return CloudProvider.GOOGLE_DRIVE

    @property
    def folder_name(self) -> str:
        return self._folder_name

    def is_available(self) -> bool:
        return self._credentials.has_client_id()

    def is_ready(self) -> bool:
        return self._credentials.is_authenticated()

    # === Contract Operations ===

    async def upload_file(self, name: str, content: str) -> None:
        token = self._require_token()
        folder_id = await self._ensure_folder_id(token)
        file_id = await self._find_file_id(name, token, folder_id)

        boundary = f"boundary-{uuid.uuid4().hex}"
        # Drive rejects "parents" on update; only send it when creating
        metadata = {"name": name} if file_id else {"name": name, "parents": [folder_id]}
        body = "\r\n".join(
            [
                f"--{boundary}",
                "Content-Type: application/json; charset=UTF-8",
                "",
                json.dumps(metadata),
                f"--{boundary}",
                "Content-Type: text/plain; charset=UTF-8",
                "",
                content,
                f"--{boundary}--",
                "",
            ]
        ).encode("utf-8")

        if file_id:
            method, url = "PATCH", f"{DRIVE_UPLOAD_ENDPOINT}/{file_id}"
        else:
            method, url = "POST", DRIVE_UPLOAD_ENDPOINT

        response = await self._request(
            method,
            url,
            token,
            params={"uploadType": "multipart", "supportsAllDrives": "false"},
            data=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )
        if not response.ok:
            raise GoogleDriveSyncError(
                f'Failed to upload file "{name}" to Google Drive: {_safe_read_error(response)}',
                details={"status_code": response.status_code},
            )

        try:
            result = response.json()
        except ValueError:
            # The upload went through; the id is looked up again on the next call
            result = None
        if isinstance(result, dict) and result.get("id"):
            self._file_id_cache[name] = result["id"]

    async def delete_file(self, name: str) -> None:
        token = self._require_token()
        folder_id = await self._ensure_folder_id(token)
        file_id = await self._find_file_id(name, token, folder_id)
        if not file_id:
            return

        response = await self._request(
            "DELETE", f"{DRIVE_FILES_ENDPOINT}/{file_id}", token, params={"supportsAllDrives": "false"}
        )
        if not response.ok and response.status_code != 404:
            raise GoogleDriveSyncError(
                f'Failed to delete file "{name}" from Google Drive: {_safe_read_error(response)}',
                details={"status_code": response.status_code},
            )
        self._file_id_cache.pop(name, None)

    async def fetch_files(self) -> list[RemoteFile]:
        token = self._require_token()
        folder_id = await self._ensure_folder_id(token)

        listed: list[dict] = []
        page_token: str | None = None
        while True:
            params = {
                "fields": "nextPageToken,files(id,name,modifiedTime,size)",
                "pageSize": str(LIST_PAGE_SIZE),
                "q": f"'{folder_id}' in parents and trashed = false",
                "spaces": "drive",
            }
            if page_token:
                params["pageToken"] = page_token

            response = await self._request("GET", DRIVE_FILES_ENDPOINT, token, params=params)
            if not response.ok:
                raise GoogleDriveSyncError(
                    f"Failed to list files from Google Drive: {_safe_read_error(response)}",
                    details={"status_code": response.status_code},
                )

            payload = _json_payload(response, "listing files")
            listed.extend(payload.get("files", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        files: list[RemoteFile] = []
        for remote in listed:
            self._file_id_cache[remote["name"]] = remote["id"]

            download = await self._request(
                "GET", f"{DRIVE_FILES_ENDPOINT}/{remote['id']}", token, params={"alt": "media"}
            )
            if not download.ok:
                # Left out of the listing, so a local copy of this name shows up as a conflict
                log_structured_error(
                    category=ErrorCategory.WARNING,
                    message=f'Skipped Google Drive file "{remote["name"]}": download failed',
                    operation="fetch_files",
                    provider=self.provider.value,
                    file_name=remote["name"],
                    reason="download_failed",
                    status_code=download.status_code,
                    detail=_safe_read_error(download),
                )
                continue

            try:
                content = download.content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise GoogleDriveSyncError(f'Google Drive file "{remote["name"]}" is not UTF-8 text: {e}') from e
            try:
                size = int(remote.get("size"))
            except (TypeError, ValueError):
                size = len(content.encode("utf-8"))

            files.append(
                RemoteFile(
                    name=remote["name"],
                    path=f"{self._folder_name}/{remote['id']}",
                    client_modified=_parse_timestamp(remote.get("modifiedTime")),
                    size=size,
                    content=content,
                )
            )
        return files

    # === HTTP Helpers ===

    def _require_token(self) -> str:
        token = self._credentials.get_access_token()
        if not token:
            raise GoogleDriveSyncError("Google Drive is not connected - sign in again")
        return token

    async def _request(
        self, method: str, url: str, token: str, headers: dict | None = None, **kwargs
    ) -> requests.Response:
        merged = {"Authorization": f"Bearer {token}"}
        merged.update(headers or {})
        try:
            return await asyncio.to_thread(
                self._session.request, method, url, headers=merged, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as e:
            raise GoogleDriveSyncError(f"Google Drive request failed: {e}") from e

    async def _find_file_id(self, name: str, token: str, folder_id: str) -> str | None:
        cached = self._file_id_cache.get(name)
        if cached:
            return cached

        query = " and ".join(
            [
                f"name = '{_escape_query_value(name)}'",
                f"'{folder_id}' in parents",
                "trashed = false",
            ]
        )
        response = await self._request(
            "GET",
            DRIVE_FILES_ENDPOINT,
            token,
            params={"spaces": "drive", "q": query, "fields": "files(id,name)", "pageSize": "1"},
        )
        if not response.ok:
            raise GoogleDriveSyncError(
                f'Failed to query Google Drive for "{name}": {_safe_read_error(response)}',
                details={"status_code": response.status_code},
            )

        matches = _json_payload(response, f'looking up "{name}"').get("files") or []
        if not matches:
            return None

        self._file_id_cache[name] = matches[0]["id"]
        return matches[0]["id"]

    async def _ensure_folder_id(self, token: str) -> str:
        if self._folder_id:
            return self._folder_id

        escaped = _escape_query_value(self._folder_name)
        lookup = await self._request(
            "GET",
            DRIVE_FILES_ENDPOINT,
            token,
            params={
                "q": f"name = '{escaped}' and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false and 'root' in parents",
                "fields": "files(id,name)",
                "pageSize": "1",
                "spaces": "drive",
            },
        )
        if not lookup.ok:
            raise GoogleDriveSyncError(
                f'Failed to locate Google Drive folder "{self._folder_name}": {_safe_read_error(lookup)}',
                details={"status_code": lookup.status_code},
            )

        existing = _json_payload(lookup, "locating the folder").get("files") or []
        if existing:
            self._folder_id = existing[0]["id"]
            return self._folder_id

        created = await self._request(
            "POST",
            DRIVE_FILES_ENDPOINT,
            token,
            json={"name": self._folder_name, "mimeType": FOLDER_MIME_TYPE, "parents": ["root"]},
        )
        if not created.ok:
            raise GoogleDriveSyncError(
                f'Failed to create Google Drive folder "{self._folder_name}": {_safe_read_error(created)}',
                details={"status_code": created.status_code},
            )

        folder_id = _json_payload(created, "creating the folder").get("id")
        if not folder_id:
            raise GoogleDriveSyncError(
                f'Google Drive did not return an ID for the created folder "{self._folder_name}".'
            )
        self._folder_id = folder_id
        return folder_id
