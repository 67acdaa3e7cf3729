"""Partial aggregator — fold one chunk's invoices into a ``PartialAggregate``."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from salesagg.aggregation.schemas import PartialAggregate
from salesagg.documents.schemas import Invoice
from salesagg.reference.resolvers import ReferenceResolver

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "Unknown"


def client_key(invoice: Invoice) -> str:
    """Group invoices by phone when present, else client name, else ``Unknown``."""
    phone = (invoice.phone or "").strip()
    if phone:
        return phone
    name = (invoice.client or "").strip()
    return name or UNKNOWN_CLIENT


def aggregate(
    invoices: Iterable[Invoice],
    resolver: ReferenceResolver,
    skipped: int = 0,
) -> PartialAggregate:
    """Aggregate parsed invoices.

    Args:
        invoices: Invoices that parsed successfully.
        resolver: Supplier/category lookup for item codes.
        skipped: Number of documents in the chunk that could not be read.

    Returns:
        A ``PartialAggregate`` with unrounded sums.
    """
    agg = PartialAggregate(skipped_count=skipped)

    for inv in invoices:
        agg.document_count += 1
        agg.total_sales += inv.invoice_total

        key = client_key(inv)
        agg.per_client[key] = agg.per_client.get(key, 0.0) + inv.invoice_total

        for item in inv.items:
            res = resolver.resolve(item.code)
            agg.per_supplier[res.supplier] = agg.per_supplier.get(res.supplier, 0.0) + item.line_total

            totals = agg.item(item.code)
            totals.qty += item.qty
            totals.sales += item.line_total

            codes = agg.category(res.category)
            codes[item.code] = codes.get(item.code, 0.0) + item.qty

    logger.debug(
        "Aggregated %d invoices (%d skipped): total_sales=%.2f",
        agg.document_count,
        skipped,
        agg.total_sales,
    )
    return agg
