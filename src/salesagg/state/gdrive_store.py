"""Google Drive state store — one JSON file per key in a single cache folder.

Drive folders are flat for our purposes, so ``/`` and ``\\`` in keys are
mapped to ``__``: ``build/chunks/0.json`` is stored as ``build__chunks__0.json``.
Prefix deletion applies the same mapping to the prefix.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from salesagg.errors import ConfigurationError, StateStoreError
from salesagg.sources.gdrive_source import build_drive_service, drive_errors
from salesagg.state.base import StateStore

logger = logging.getLogger(__name__)

# Full scope: the store lists, creates, updates, and deletes in the cache folder
SCOPES = ["https://www.googleapis.com/auth/drive"]
_JSON_MIME = "application/json"


def key_to_name(key: str) -> str:
    return key.replace("\\", "__").replace("/", "__")


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveStateStore(StateStore):
    """Cache folder store; credentials are the same service account as the source."""

    def __init__(
        self,
        folder_id: str | None = None,
        service_account_key: str | dict | None = None,
        service_account_email: str | None = None,
        service: Any = None,
    ):
        try:
            from googleapiclient.http import MediaInMemoryUpload

            self._errors = drive_errors()
        except ImportError as exc:
            raise ImportError(
                "google-api-python-client required: pip install google-api-python-client google-auth"
            ) from exc

        if not folder_id:
            raise ConfigurationError("Drive state store requires a cache folder id (GDRIVE_CACHE_FOLDER_ID)")

        self.folder_id = folder_id
        self._upload = MediaInMemoryUpload
        self._service = service or build_drive_service(service_account_key, service_account_email, SCOPES)

    def _name(self, key: str) -> str:
        if not key:
            raise StateStoreError("Invalid state key: ''")
        return key_to_name(key)

    def _find(self, name: str) -> str | None:
        query = f"'{self.folder_id}' in parents and name='{_quote(name)}' and trashed=false"
        page_token = None
        while True:
            res = self._service.files().list(
                q=query,
                fields="nextPageToken, files(id, name)",
                pageSize=100,
                pageToken=page_token,
            ).execute()
            files = res.get("files", [])
            if files:
                return files[0]["id"]
            page_token = res.get("nextPageToken")
            if not page_token:
                return None

    # ------------------------------------------------------------------
    # StateStore API
    # ------------------------------------------------------------------

    def get(self, key: str) -> dict[str, Any] | None:
        name = self._name(key)
        try:
            file_id = self._find(name)
            if file_id is None:
                return None
            body = self._service.files().get_media(fileId=file_id).execute()
        except self._errors as exc:
            raise StateStoreError(f"Failed to read Drive cache file {name}", detail=str(exc)) from exc

        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StateStoreError(f"Corrupt JSON in Drive cache file {name}", detail=str(exc)) from exc

    def put(self, key: str, value: dict[str, Any]) -> None:
        name = self._name(key)
        try:
            payload = json.dumps(value).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise StateStoreError(f"Failed to write state key {key}", detail=str(exc)) from exc

        media = self._upload(payload, mimetype=_JSON_MIME, resumable=False)
        try:
            file_id = self._find(name)
            if file_id is None:
                self._service.files().create(
                    body={"name": name, "parents": [self.folder_id], "mimeType": _JSON_MIME},
                    media_body=media,
                    fields="id",
                ).execute()
            else:
                self._service.files().update(fileId=file_id, media_body=media).execute()
        except self._errors as exc:
            raise StateStoreError(f"Failed to write Drive cache file {name}", detail=str(exc)) from exc
        logger.debug("GoogleDriveStateStore wrote %s", name)

    def delete(self, key: str) -> None:
        name = self._name(key)
        try:
            file_id = self._find(name)
            if file_id is not None:
                self._service.files().delete(fileId=file_id).execute()
        except self._errors as exc:
            raise StateStoreError(f"Failed to delete Drive cache file {name}", detail=str(exc)) from exc

    def delete_prefix(self, prefix: str) -> int:
        mapped = key_to_name(prefix)
        query = f"'{self.folder_id}' in parents and mimeType='{_JSON_MIME}' and trashed=false"
        try:
            matches: list[str] = []
            page_token = None
            while True:
                res = self._service.files().list(
                    q=query,
                    fields="nextPageToken, files(id, name)",
                    pageSize=1000,
                    pageToken=page_token,
                ).execute()
                matches.extend(f["id"] for f in res.get("files", []) if f.get("name", "").startswith(mapped))
                page_token = res.get("nextPageToken")
                if not page_token:
                    break

            for file_id in matches:
                self._service.files().delete(fileId=file_id).execute()
        except self._errors as exc:
            raise StateStoreError(f"Failed to delete prefix {mapped}", detail=str(exc)) from exc
        logger.info("GoogleDriveStateStore deleted %d files under '%s'", len(matches), mapped)
        return len(matches)
