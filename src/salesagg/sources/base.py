"""Abstract base class for document sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceEntry:
    """A raw listing entry, before filename filtering."""

    id: str
    name: str
    modified_at: str = ""


@dataclass
class SourcePage:
    """One page of a location listing.

    ``next_page_token`` is ``None`` on the last page.
    """

    entries: list[SourceEntry] = field(default_factory=list)
    next_page_token: str | None = None


class DocumentSource(ABC):
    """Interface for listing and downloading invoice documents."""

    @abstractmethod
    def list_page(self, location: str, page_token: str | None = None) -> SourcePage:
        """Return one page of the files directly inside ``location``.

        Raises:
            SourceAccessError: If the location cannot be listed.
        """

    @abstractmethod
    def download(self, document_id: str) -> bytes:
        """Return the raw bytes of a document.

        Raises:
            SourceAccessError: If the document cannot be fetched.
        """

    def list_all(self, location: str) -> list[SourceEntry]:
        """Follow continuation tokens until the listing is exhausted."""
        entries: list[SourceEntry] = []
        token: str | None = None
        while True:
            page = self.list_page(location, token)
            entries.extend(page.entries)
            token = page.next_page_token
            if not token:
                return entries

    @classmethod
    def source_name(cls) -> str:
        """Return human-readable source name."""
        return cls.__name__
