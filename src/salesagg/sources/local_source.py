"""Local folder document source — for offline runs and fixtures.

Locations are directory paths; document ids are file paths. Pages are cut
from the sorted directory listing and the page token is the next offset.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from salesagg.errors import SourceAccessError
from salesagg.sources.base import DocumentSource, SourceEntry, SourcePage

logger = logging.getLogger(__name__)


class LocalFolderSource(DocumentSource):
    """Read invoices from directories on the local filesystem."""

    def __init__(self, page_size: int = 1000):
        self.page_size = page_size

    def list_page(self, location: str, page_token: str | None = None) -> SourcePage:
        folder = Path(location)
        try:
            files = sorted(p for p in folder.iterdir() if p.is_file())
        except OSError as exc:
            raise SourceAccessError(f"Failed to list folder {location}", detail=str(exc)) from exc

        offset = int(page_token) if page_token else 0
        window = files[offset : offset + self.page_size]
        entries = [
            SourceEntry(
                id=str(p),
                name=p.name,
                modified_at=datetime.fromtimestamp(p.stat().st_mtime, tz=UTC).isoformat(),
            )
            for p in window
        ]
        next_offset = offset + len(window)
        next_token = str(next_offset) if next_offset < len(files) else None
        return SourcePage(entries=entries, next_page_token=next_token)

    def download(self, document_id: str) -> bytes:
        try:
            return Path(document_id).read_bytes()
        except OSError as exc:
            raise SourceAccessError(f"Failed to read {document_id}", detail=str(exc)) from exc
