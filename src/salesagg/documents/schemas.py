"""Data models for source documents and parsed invoices."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class DocKind(StrEnum):
    """Invoice layout, determined by the source location and filename."""

    A = "A"
    B = "B"


@dataclass(frozen=True)
class Document:
    """One spreadsheet invoice in a source location.

    Attributes:
        id: Source-specific identifier used for download.
        name: Filename as listed by the source.
        kind: Layout the parser should expect.
        modified_at: ISO-8601 modification timestamp from the listing.
    """

    id: str
    name: str
    kind: DocKind
    modified_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "modified_at": self.modified_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        return cls(
            id=data["id"],
            name=data["name"],
            kind=DocKind(data["kind"]),
            modified_at=data.get("modified_at", ""),
        )


@dataclass(frozen=True)
class LineItem:
    """A single sold item on an invoice."""

    code: str
    qty: float = 0.0
    unit_price: float = 0.0
    line_total: float = 0.0


@dataclass
class Invoice:
    """Normalized invoice produced by a parser."""

    client: str | None = None
    phone: str | None = None
    invoice_total: float = 0.0
    items: list[LineItem] = field(default_factory=list)
    source_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
