"""Google Drive document source — service-account auth, read-only scope.

Locations are Drive folder ids. Listing follows ``nextPageToken`` paging and
excludes sub-folders and trashed files.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from salesagg.errors import ConfigurationError, SourceAccessError
from salesagg.sources.base import DocumentSource, SourceEntry, SourcePage

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
_FOLDER_MIME = "application/vnd.google-apps.folder"


def drive_errors() -> tuple[type[BaseException], ...]:
    """Exceptions a Drive call can raise: API, auth refresh, and transport failures."""
    import httplib2
    from google.auth.exceptions import GoogleAuthError
    from googleapiclient.errors import HttpError

    return (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def build_drive_service(key: str | dict | None, email: str | None, scopes: list[str]) -> Any:
    """Build a Drive v3 client from a service-account key.

    Args:
        key: Full service-account JSON, as a string or already-parsed dict.
        email: Optional client email used when the key omits one.
        scopes: OAuth scopes to request.

    Raises:
        ConfigurationError: If the key is missing or is not valid JSON.
    """
    from google.oauth2 import service_account
    from googleapiclient.discovery import build

    if not key:
        raise ConfigurationError("Missing Google service account key (GDRIVE_SA_KEY)")
    try:
        info = json.loads(key) if isinstance(key, str) else dict(key)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("GDRIVE_SA_KEY is not valid JSON") from exc
    if email:
        info.setdefault("client_email", email)

    credentials = service_account.Credentials.from_service_account_info(info, scopes=scopes)
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


class GoogleDriveSource(DocumentSource):
    """Drive v3 client wrapper."""

    def __init__(
        self,
        service_account_key: str | dict | None = None,
        service_account_email: str | None = None,
        page_size: int = 1000,
        service: Any = None,
    ):
        try:
            self._errors = drive_errors()
        except ImportError as exc:
            raise ImportError(
                "google-api-python-client required: pip install google-api-python-client google-auth"
            ) from exc

        self.page_size = page_size
        self._service = service or build_drive_service(service_account_key, service_account_email, SCOPES)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_page(self, location: str, page_token: str | None = None) -> SourcePage:
        query = f"'{location}' in parents and mimeType != '{_FOLDER_MIME}' and trashed = false"
        try:
            res = self._service.files().list(
                q=query,
                fields="nextPageToken, files(id, name, mimeType, modifiedTime)",
                pageSize=self.page_size,
                pageToken=page_token,
            ).execute()
        except self._errors as exc:
            raise SourceAccessError(f"Failed to list Drive folder {location}", detail=str(exc)) from exc

        entries = [
            SourceEntry(id=f["id"], name=f.get("name", ""), modified_at=f.get("modifiedTime", ""))
            for f in res.get("files", [])
        ]
        logger.debug("Drive folder %s: %d entries on page", location, len(entries))
        return SourcePage(entries=entries, next_page_token=res.get("nextPageToken"))

    def download(self, document_id: str) -> bytes:
        try:
            data = self._service.files().get_media(fileId=document_id).execute()
        except self._errors as exc:
            raise SourceAccessError(f"Failed to download Drive file {document_id}", detail=str(exc)) from exc
        return bytes(data)
