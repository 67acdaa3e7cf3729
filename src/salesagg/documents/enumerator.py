"""Source enumerator — builds the ordered document worklist for one job.

Each location contributes only the files whose names match its pattern; the
pattern also decides which parser the document is routed to.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime

from salesagg.documents.schemas import DocKind, Document
from salesagg.sources.base import DocumentSource

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class LocationSpec:
    """A source location and the filename pattern that selects its invoices."""

    location: str
    pattern: str
    kind: DocKind

    def matches(self, name: str) -> bool:
        return re.search(self.pattern, name) is not None


class SourceEnumerator:
    """List both locations and produce a deterministic document order."""

    def __init__(self, source: DocumentSource, locations: list[LocationSpec]):
        self.source = source
        self.locations = locations

    def enumerate(self) -> list[Document]:
        """Return every matching document, newest first.

        Listing errors propagate unchanged so that no job is persisted.
        Duplicate ids keep their first occurrence.
        """
        documents: list[Document] = []
        seen: set[str] = set()

        for spec in self.locations:
            entries = self.source.list_all(spec.location)
            matched = 0
            for entry in entries:
                if not spec.matches(entry.name) or entry.id in seen:
                    continue
                seen.add(entry.id)
                matched += 1
                documents.append(Document(
                    id=entry.id,
                    name=entry.name,
                    kind=spec.kind,
                    modified_at=entry.modified_at,
                ))
            logger.info(
                "Location %s: %d listed, %d matched as kind %s",
                spec.location,
                len(entries),
                matched,
                spec.kind.value,
            )

        # Stable two-pass sort: name/id ascending, then modification time descending.
        documents.sort(key=lambda d: (d.name, d.id))
        documents.sort(key=lambda d: _parse_timestamp(d.modified_at), reverse=True)
        return documents


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; unparseable values sort last."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
