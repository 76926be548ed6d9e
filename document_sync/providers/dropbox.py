"""Dropbox Storage Provider.

Mirrors files into the Dropbox app folder through the Dropbox HTTP API
(v2). Files are stored as ``<base_path>/<name>``; an empty base path
stores them at the root of the app folder.
"""
from __future__ import annotations


import asyncio
import datetime
import json
import logging
import re

import requests

from ..exceptions import DropboxSyncError
from ..models import CloudProvider
from ..models import RemoteFile
from .auth import ProviderCredentials
from .base import CloudStorageProvider

logger = logging.getLogger(__name__)

API_URL = "https://api.dropboxapi.com/2"
CONTENT_URL = "https://content.dropboxapi.com/2"


def normalize_base_path(path: str | None) -> str:
    """Normalize a configured base path to ``""`` or ``/folder/sub``."""
    if not path:
        return ""

    trimmed = path.strip()
    if trimmed in ("", "/"):
        return ""

    if not trimmed.startswith("/"):
        trimmed = f"/{trimmed}"
    return trimmed.rstrip("/")


def _parse_timestamp(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    try:
        return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _error_summary(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or "Unknown error"
    if isinstance(payload, dict):
        return payload.get("error_summary") or json.dumps(payload.get("error", payload))
    return str(payload)


def _json_payload(response: requests.Response, action: str) -> dict:
    try:
        payload = response.json()
    except ValueError as e:
        raise DropboxSyncError(f"Dropbox returned an unreadable response while {action}: {e}") from e
    if not isinstance(payload, dict):
        raise DropboxSyncError(f"Dropbox returned an unexpected response while {action}")
    return payload


def _is_not_found(response: requests.Response) -> bool:
    if response.status_code == 404:
        return True
    return response.status_code == 409 and "not_found" in _error_summary(response)


def _is_conflict(response: requests.Response) -> bool:
    return response.status_code == 409 and "conflict" in _error_summary(response)


class DropboxProvider(CloudStorageProvider):
    """Cloud storage provider backed by Dropbox.

    Args:
        credentials: Dropbox app key and current access grant.
        base_path: Folder inside the app area. Empty stores at the root.
        session: ``requests.Session`` to use; one is created if omitted.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        base_path: str | None = "",
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ):
        self._credentials = credentials
        self._base_path = normalize_base_path(base_path)
        self._session = session or requests.Session()
        self._timeout = timeout
        self._folder_ensured = self._base_path == ""

    @property
    def provider(self) -> CloudProvider:
        return CloudProvider.DROPBOX

    @property
    def base_path(self) -> str:
        return self._base_path

    def is_available(self) -> bool:
        return self._credentials.has_client_id()

    def is_ready(self) -> bool:
        return self._credentials.is_authenticated()

    def build_path(self, name: str) -> str:
        return re.sub(r"/{2,}", "/", f"{self._base_path}/{name}")

    # === Contract Operations ===

    async def upload_file(self, name: str, content: str) -> None:
        if "/" in name:
            # list_folder is not recursive, so a nested file would never be listed back
            raise DropboxSyncError(f'File name "{name}" cannot contain "/"', details={"name": name})

        token = self._require_token()
        await self._ensure_folder(token)

        path = self.build_path(name)
        logger.debug("Uploading %s to Dropbox", path)
        response = await self._content_call(
            "files/upload",
            {"path": path, "mode": "overwrite", "mute": True},
            token,
            data=content.encode("utf-8"),
        )
        if not response.ok:
            raise DropboxSyncError(
                f'Failed to upload file "{name}": {_error_summary(response)}',
                details={"status_code": response.status_code, "path": path},
            )

    async def delete_file(self, name: str) -> None:
        token = self._require_token()
        path = self.build_path(name)

        response = await self._rpc("files/delete_v2", {"path": path}, token)
        if response.ok or _is_not_found(response):
            return

        # The direct path can miss when Dropbox has normalised the name; look it up
        resolved = await self._resolve_path_by_name(name, token)
        if resolved and resolved.lower() != path.lower():
            retry = await self._rpc("files/delete_v2", {"path": resolved}, token)
            if retry.ok or _is_not_found(retry):
                return
            response = retry

        raise DropboxSyncError(
            f'Failed to delete file "{name}": {_error_summary(response)}',
            details={"status_code": response.status_code, "path": path},
        )

    async def fetch_files(self) -> list[RemoteFile]:
        token = self._require_token()

        files: list[RemoteFile] = []
        for entry in await self._list_folder(token):
            if entry.get(".tag") != "file":
                continue

            path = entry.get("path_display") or entry.get("path_lower") or self.build_path(entry["name"])
            content = await self._download(path, token)
            files.append(
                RemoteFile(
                    name=entry["name"],
                    path=path,
                    client_modified=_parse_timestamp(entry.get("client_modified")),
                    size=int(entry.get("size", len(content.encode("utf-8")))),
                    content=content,
                )
            )
        return files

    # === HTTP Helpers ===

    def _require_token(self) -> str:
        token = self._credentials.get_access_token()
        if not token:
            raise DropboxSyncError("Dropbox client not available - check authentication")
        return token

    async def _rpc(self, endpoint: str, payload: dict, token: str) -> requests.Response:
        try:
            return await asyncio.to_thread(
                self._session.post,
                f"{API_URL}/{endpoint}",
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise DropboxSyncError(f"Dropbox request to {endpoint} failed: {e}") from e

    async def _content_call(
        self, endpoint: str, arg: dict, token: str, data: bytes | None = None
    ) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {token}",
            # Dropbox requires the argument header to be ASCII; json.dumps escapes the rest
            "Dropbox-API-Arg": json.dumps(arg),
        }
        if data is not None:
            headers["Content-Type"] = "application/octet-stream"
        try:
            return await asyncio.to_thread(
                self._session.post,
                f"{CONTENT_URL}/{endpoint}",
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise DropboxSyncError(f"Dropbox request to {endpoint} failed: {e}") from e

    async def _ensure_folder(self, token: str) -> None:
        if self._folder_ensured:
            return

        response = await self._rpc("files/create_folder_v2", {"path": self._base_path, "autorename": False}, token)
        if response.ok or _is_conflict(response):
            self._folder_ensured = True
            return

        raise DropboxSyncError(
            f"Failed to create/access folder {self._base_path}: {_error_summary(response)}",
            details={"status_code": response.status_code},
        )

    async def _list_folder(self, token: str) -> list[dict]:
        """Return every entry in the base folder, following the cursor."""
        response = await self._rpc("files/list_folder", {"path": self._base_path}, token)
        if _is_not_found(response):
            # Nothing uploaded yet, so the folder has not been created
            return []

        entries: list[dict] = []
        while True:
            if not response.ok:
                raise DropboxSyncError(
                    f"Failed to list Dropbox files: {_error_summary(response)}",
                    details={"status_code": response.status_code},
                )
            payload = _json_payload(response, "listing files")
            entries.extend(payload.get("entries", []))
            if not payload.get("has_more"):
                return entries
            cursor = payload.get("cursor")
            if not cursor:
                raise DropboxSyncError("Dropbox reported more entries without a cursor")
            response = await self._rpc("files/list_folder/continue", {"cursor": cursor}, token)

    async def _download(self, path: str, token: str) -> str:
        response = await self._content_call("files/download", {"path": path}, token)
        if not response.ok:
            raise DropboxSyncError(
                f'Failed to download "{path}": {_error_summary(response)}',
                details={"status_code": response.status_code, "path": path},
            )
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DropboxSyncError(f'File "{path}" is not UTF-8 text: {e}', details={"path": path}) from e

    async def _resolve_path_by_name(self, name: str, token: str) -> str | None:
        try:
            entries = await self._list_folder(token)
        except DropboxSyncError as e:
            logger.warning("Failed to resolve Dropbox path by name: %s", e)
            return None

        for entry in entries:
            if entry.get("name") == name:
                return entry.get("path_display") or entry.get("path_lower")
        return None
