"""Merge engine — combine chunk aggregates and derive the ranked report views.

Merging is component-wise summation. Every sum is computed with
``math.fsum`` over all contributions at once, which is exactly rounded, so
the merged values do not depend on the order partials are read back in.
Merged maps are emitted with sorted keys for the same reason.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from salesagg.aggregation.schemas import FinalAggregate, ItemTotals, PartialAggregate

logger = logging.getLogger(__name__)


def _sum_maps(maps: Iterable[dict[str, float]]) -> dict[str, float]:
    collected: dict[str, list[float]] = {}
    for m in maps:
        for key, value in m.items():
            collected.setdefault(key, []).append(value)
    return {key: math.fsum(collected[key]) for key in sorted(collected)}


def merge_aggregates(parts: Iterable[PartialAggregate]) -> PartialAggregate:
    """Merge any number of partial aggregates into one.

    The empty merge is the zero aggregate, so merging is associative and
    commutative with an identity.
    """
    parts = list(parts)

    qty: dict[str, list[float]] = {}
    sales: dict[str, list[float]] = {}
    for p in parts:
        for code, totals in p.per_item.items():
            qty.setdefault(code, []).append(totals.qty)
            sales.setdefault(code, []).append(totals.sales)

    categories = sorted({cat for p in parts for cat in p.per_category})

    return PartialAggregate(
        total_sales=math.fsum(p.total_sales for p in parts),
        per_supplier=_sum_maps(p.per_supplier for p in parts),
        per_item={
            code: ItemTotals(qty=math.fsum(qty[code]), sales=math.fsum(sales[code]))
            for code in sorted(qty)
        },
        per_category={
            cat: _sum_maps(p.per_category[cat] for p in parts if cat in p.per_category)
            for cat in categories
        },
        per_client=_sum_maps(p.per_client for p in parts),
        document_count=sum(p.document_count for p in parts),
        skipped_count=sum(p.skipped_count for p in parts),
    )


# ---------------------------------------------------------------------------
# Ranked views
# ---------------------------------------------------------------------------


def rank_items(per_item: dict[str, ItemTotals]) -> list[dict[str, Any]]:
    """All items by sales descending, code ascending on ties."""
    ranked = sorted(per_item.items(), key=lambda kv: (-kv[1].sales, kv[0]))
    return [{"code": code, "qty": t.qty, "sales": t.sales} for code, t in ranked]


def rank_by_category(per_category: dict[str, dict[str, float]]) -> dict[str, list[dict[str, Any]]]:
    """Per category, codes by quantity descending, code ascending on ties."""
    return {
        cat: [
            {"code": code, "qty": q}
            for code, q in sorted(codes.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        for cat, codes in per_category.items()
    }


def rank_suppliers(per_supplier: dict[str, float]) -> list[dict[str, Any]]:
    ranked = sorted(per_supplier.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"supplier": name, "sales": s} for name, s in ranked]


def rank_clients(per_client: dict[str, float], top_n: int) -> list[dict[str, Any]]:
    ranked = sorted(per_client.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"client": key, "sales": s} for key, s in ranked[:top_n]]


def build_report(
    merged: PartialAggregate,
    top_clients: int = 50,
    meta: dict[str, Any] | None = None,
    generated_at: str | None = None,
) -> FinalAggregate:
    """Derive the sorted views from a merged aggregate."""
    report = FinalAggregate(
        totals=merged,
        top_items_overall=rank_items(merged.per_item),
        top_by_category=rank_by_category(merged.per_category),
        top_suppliers=rank_suppliers(merged.per_supplier),
        top_clients=rank_clients(merged.per_client, top_clients),
        generated_at=generated_at or datetime.now(UTC).isoformat(),
        meta=dict(meta or {}),
    )
    logger.info(
        "Built report: total_sales=%.2f items=%d suppliers=%d clients=%d",
        merged.total_sales,
        len(merged.per_item),
        len(merged.per_supplier),
        len(merged.per_client),
    )
    return report
