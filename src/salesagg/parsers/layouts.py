"""Cell layouts for the two invoice formats.

Kind A (``INV-XXX-YYYY``):
    B3 client, B5 phone, B8 invoice total, items from row 12.

Kind B (``IPEC Invoice XXX-YYYY``):
    B3 client, B4 phone, items from row 9, invoice total in column E of the
    first row at or below row 11 whose column D reads "SUB-TOTAL USD".
"""

from __future__ import annotations

import logging
from typing import Any

from salesagg.documents.schemas import Invoice
from salesagg.parsers.base import MAX_SCAN_ROWS, InvoiceParser, cell_number, cell_text, read_items

logger = logging.getLogger(__name__)


class FormatAParser(InvoiceParser):
    """Parser for kind A invoices."""

    items_start_row = 12

    def _parse_sheet(self, ws: Any) -> Invoice:
        return Invoice(
            client=cell_text(ws["B3"].value),
            phone=cell_text(ws["B5"].value),
            invoice_total=cell_number(ws["B8"].value),
            items=read_items(ws, self.items_start_row),
        )


class FormatBParser(InvoiceParser):
    """Parser for kind B invoices."""

    items_start_row = 9
    subtotal_search_row = 11
    subtotal_label = "SUB-TOTAL USD"

    def _parse_sheet(self, ws: Any) -> Invoice:
        return Invoice(
            client=cell_text(ws["B3"].value),
            phone=cell_text(ws["B4"].value),
            invoice_total=self._find_subtotal(ws),
            items=read_items(ws, self.items_start_row),
        )

    def _find_subtotal(self, ws: Any) -> float:
        last_row = min(ws.max_row, self.subtotal_search_row + MAX_SCAN_ROWS)
        for row in range(self.subtotal_search_row, last_row + 1):
            label = (cell_text(ws[f"D{row}"].value) or "").upper()
            if self.subtotal_label in label:
                return cell_number(ws[f"E{row}"].value)
        logger.debug("No '%s' row found; invoice total defaults to 0", self.subtotal_label)
        return 0.0
