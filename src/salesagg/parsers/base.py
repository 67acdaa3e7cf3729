"""Abstract base class for invoice parsers.

Parsers read a workbook's first sheet by cell address. Any failure while
opening or reading the workbook is reported as ``ParseError`` so callers can
skip the document and carry on.
"""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import Any

from salesagg.documents.schemas import Invoice, LineItem
from salesagg.errors import ParseError

# Hard stop for line-item scans on malformed sheets.
MAX_SCAN_ROWS = 10_000


class InvoiceParser(ABC):
    """Interface for per-layout invoice parsers."""

    def parse(self, data: bytes, name: str | None = None) -> Invoice:
        """Parse raw workbook bytes into an ``Invoice``.

        Raises:
            ParseError: If the workbook is unreadable or malformed.
        """
        from openpyxl import load_workbook

        try:
            wb = load_workbook(io.BytesIO(data), data_only=True)
            ws = wb.worksheets[0]
            invoice = self._parse_sheet(ws)
        except Exception as exc:
            raise ParseError(f"Failed to parse {name or 'document'}", detail=str(exc)) from exc

        invoice.source_name = name
        return invoice

    @abstractmethod
    def _parse_sheet(self, ws: Any) -> Invoice:
        """Extract the invoice from an openpyxl worksheet."""

    @classmethod
    def parser_name(cls) -> str:
        """Return human-readable parser name."""
        return cls.__name__


# ---------------------------------------------------------------------------
# Cell helpers shared by the layouts
# ---------------------------------------------------------------------------


def cell_text(value: Any) -> str | None:
    """Trimmed string value of a cell, ``None`` when blank."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def cell_number(value: Any, default: float = 0.0) -> float:
    """Numeric value of a cell; blanks and unparseable text give ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return default
    try:
        return float(text)
    except ValueError:
        return default


def read_items(ws: Any, first_row: int) -> list[LineItem]:
    """Read line items from ``first_row`` down until column A is blank.

    Columns: A code, C quantity, D unit price, E line total. A zero line
    total falls back to quantity times unit price, the same as a blank one;
    non-numeric text in column E reads as zero.
    """
    items: list[LineItem] = []
    last_row = min(ws.max_row, first_row + MAX_SCAN_ROWS)
    for row in range(first_row, last_row + 1):
        code = cell_text(ws[f"A{row}"].value)
        if not code:
            break
        qty = cell_number(ws[f"C{row}"].value)
        unit = cell_number(ws[f"D{row}"].value)
        total = cell_number(ws[f"E{row}"].value) or qty * unit
        items.append(LineItem(code=code, qty=qty, unit_price=unit, line_total=total))
    return items
