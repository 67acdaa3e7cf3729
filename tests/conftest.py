"""Shared fixtures for tests — synthetic invoices and sources, no network calls."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from salesagg.documents.enumerator import LocationSpec, SourceEnumerator
from salesagg.documents.schemas import DocKind, Invoice, LineItem
from salesagg.errors import ParseError, SourceAccessError
from salesagg.parsers.base import InvoiceParser
from salesagg.pipeline.scheduler import ChunkScheduler
from salesagg.reference.resolvers import ReferenceResolver
from salesagg.sources.base import DocumentSource, SourceEntry, SourcePage
from salesagg.state.base import StateStore
from salesagg.state.memory_store import MemoryStateStore

PATTERN_A = r"^INV-\d{3,}-\d{4,}"
PATTERN_B = r"^IPEC Invoice \d{3,}-\d{4,}"

# ---------------------------------------------------------------------------
# In-memory document source
# ---------------------------------------------------------------------------


class FakeSource(DocumentSource):
    """Pages through in-memory listings; downloads return stored bytes."""

    def __init__(self, page_size: int = 2):
        self.page_size = page_size
        self.listings: dict[str, list[SourceEntry]] = {}
        self.blobs: dict[str, bytes] = {}
        self.broken_locations: set[str] = set()
        self.broken_downloads: set[str] = set()
        self.list_calls = 0
        self.downloads: list[str] = []

    def add(self, location: str, doc_id: str, name: str, modified_at: str, data: bytes) -> None:
        self.listings.setdefault(location, []).append(
            SourceEntry(id=doc_id, name=name, modified_at=modified_at)
        )
        self.blobs[doc_id] = data

    def list_page(self, location: str, page_token: str | None = None) -> SourcePage:
        self.list_calls += 1
        if location in self.broken_locations:
            raise SourceAccessError(f"cannot list {location}")
        entries = self.listings.get(location, [])
        offset = int(page_token) if page_token else 0
        window = entries[offset : offset + self.page_size]
        nxt = offset + len(window)
        return SourcePage(entries=window, next_page_token=str(nxt) if nxt < len(entries) else None)

    def download(self, document_id: str) -> bytes:
        self.downloads.append(document_id)
        if document_id in self.broken_downloads:
            raise SourceAccessError(f"cannot download {document_id}")
        return self.blobs[document_id]


class JsonInvoiceParser(InvoiceParser):
    """Test parser: documents are JSON-encoded invoices."""

    def parse(self, data: bytes, name: str | None = None) -> Invoice:
        try:
            raw = json.loads(data)
        except ValueError as exc:
            raise ParseError(f"Failed to parse {name}") from exc
        return Invoice(
            client=raw.get("client"),
            phone=raw.get("phone"),
            invoice_total=raw.get("total", 0.0),
            items=[LineItem(**item) for item in raw.get("items", [])],
            source_name=name,
        )

    def _parse_sheet(self, ws: Any) -> Invoice:  # pragma: no cover - unused
        raise NotImplementedError


def invoice_bytes(
    total: float,
    items: list[tuple[str, float, float, float]] = (),
    client: str | None = None,
    phone: str | None = None,
) -> bytes:
    return json.dumps({
        "client": client,
        "phone": phone,
        "total": total,
        "items": [
            {"code": c, "qty": q, "unit_price": u, "line_total": t} for c, q, u, t in items
        ],
    }).encode()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def resolver() -> ReferenceResolver:
    return ReferenceResolver.from_tables(
        [("TK", "Acme"), ("TK9", "Zeta", "Tools"), ("BX", "Boxco", "Packaging")],
        {"TK001": "Kits"},
    )


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def make_invoice() -> Callable[..., bytes]:
    return invoice_bytes


@pytest.fixture
def populated_source(source: FakeSource) -> FakeSource:
    """Seven documents across both folders plus non-matching noise files."""
    base = datetime(2024, 6, 1, tzinfo=UTC)
    for i in range(4):
        source.add(
            "folder-a",
            f"a{i}",
            f"INV-10{i}-2024.xlsx",
            (base + timedelta(days=i)).isoformat(),
            invoice_bytes(100.0 + i, [("TK001", 2, 10, 20), ("BX7", 1, 5, 5)], client=f"C{i}"),
        )
    for i in range(3):
        source.add(
            "folder-b",
            f"b{i}",
            f"IPEC Invoice 20{i}-2024.xlsx",
            (base + timedelta(days=i, hours=12)).isoformat(),
            invoice_bytes(50.0, [("TK900", 3, 4, 12)], phone=f"555-{i}"),
        )
    source.add("folder-a", "noise1", "notes.txt", base.isoformat(), b"x")
    source.add("folder-b", "noise2", "INV-100-2024.xlsx", base.isoformat(), b"x")
    return source


@pytest.fixture
def enumerator_for() -> Callable[[DocumentSource], SourceEnumerator]:
    def _build(src: DocumentSource) -> SourceEnumerator:
        return SourceEnumerator(src, [
            LocationSpec("folder-a", PATTERN_A, DocKind.A),
            LocationSpec("folder-b", PATTERN_B, DocKind.B),
        ])
    return _build


@pytest.fixture
def scheduler_for(
    store: MemoryStateStore,
    resolver: ReferenceResolver,
    enumerator_for: Callable[[DocumentSource], SourceEnumerator],
) -> Callable[..., ChunkScheduler]:
    """Build a scheduler over the shared store; each call is a fresh 'invocation'."""

    def _build(
        src: DocumentSource,
        chunk_size: int = 3,
        top_clients: int = 50,
        state: StateStore | None = None,
        resolver_loader: Callable[[], ReferenceResolver] | None = None,
    ) -> ChunkScheduler:
        parser = JsonInvoiceParser()
        return ChunkScheduler(
            store=state if state is not None else store,
            enumerator=enumerator_for(src),
            parsers={DocKind.A: parser, DocKind.B: parser},
            resolver_loader=resolver_loader or (lambda: resolver),
            chunk_size=chunk_size,
            top_clients=top_clients,
            clock=lambda: datetime(2024, 7, 1, tzinfo=UTC),
        )

    return _build


# ---------------------------------------------------------------------------
# Real workbook builders
# ---------------------------------------------------------------------------


def _workbook_bytes(cells: dict[str, Any]) -> bytes:
    from openpyxl import Workbook

    wb = Workbook()
    ws = wb.active
    for addr, value in cells.items():
        ws[addr] = value
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def format_a_workbook() -> bytes:
    cells = {
        "B3": "  Bob's Garage ",
        "B5": 5551234,
        "B8": 145.5,
        "A12": "TK001", "C12": 2, "D12": 10, "E12": 20,
        "A13": "BX7", "C13": 3, "D13": 1.5,  # no line total: qty * unit
        "A14": "TK900", "C14": "4", "D14": "2.5", "E14": "10",
        "A16": "AFTER-GAP", "C16": 99, "D16": 1, "E16": 99,
    }
    return _workbook_bytes(cells)


@pytest.fixture
def format_b_workbook() -> bytes:
    cells = {
        "B3": "Alice Ltd",
        "B4": "555-0001",
        "A9": "TK001", "C9": 1, "D9": 10, "E9": 10,
        "A10": "TK002", "C10": 2, "D10": 7, "E10": 14,
        "D12": "Notes",
        "D14": "Sub-Total USD", "E14": 24,
        "D15": "Total", "E15": 26.4,
    }
    return _workbook_bytes(cells)


@pytest.fixture
def workbook_from_cells() -> Callable[[dict[str, Any]], bytes]:
    return _workbook_bytes
