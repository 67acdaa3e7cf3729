"""Data models for chunk-scoped and final sales aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ItemTotals:
    """Running quantity and sales for one item code."""

    qty: float = 0.0
    sales: float = 0.0


@dataclass
class PartialAggregate:
    """Sales totals for one chunk of documents.

    Attributes:
        total_sales: Sum of invoice totals.
        per_supplier: Line totals by resolved supplier.
        per_item: Quantity and line totals by item code.
        per_category: Quantity by category, then item code.
        per_client: Invoice totals by client key (phone, else name).
        document_count: Documents parsed into this aggregate.
        skipped_count: Documents that failed download or parsing.
    """

    total_sales: float = 0.0
    per_supplier: dict[str, float] = field(default_factory=dict)
    per_item: dict[str, ItemTotals] = field(default_factory=dict)
    per_category: dict[str, dict[str, float]] = field(default_factory=dict)
    per_client: dict[str, float] = field(default_factory=dict)
    document_count: int = 0
    skipped_count: int = 0

    def item(self, code: str) -> ItemTotals:
        """Return the totals for ``code``, creating zeroed totals on first touch."""
        totals = self.per_item.get(code)
        if totals is None:
            totals = self.per_item[code] = ItemTotals()
        return totals

    def category(self, name: str) -> dict[str, float]:
        """Return the code map for ``name``, creating it empty on first touch."""
        codes = self.per_category.get(name)
        if codes is None:
            codes = self.per_category[name] = {}
        return codes

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_sales": self.total_sales,
            "per_supplier": dict(self.per_supplier),
            "per_item": {
                code: {"qty": t.qty, "sales": t.sales} for code, t in self.per_item.items()
            },
            "per_category": {cat: dict(codes) for cat, codes in self.per_category.items()},
            "per_client": dict(self.per_client),
            "document_count": self.document_count,
            "skipped_count": self.skipped_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PartialAggregate:
        return cls(
            total_sales=float(data.get("total_sales", 0.0)),
            per_supplier={k: float(v) for k, v in data.get("per_supplier", {}).items()},
            per_item={
                code: ItemTotals(qty=float(v.get("qty", 0.0)), sales=float(v.get("sales", 0.0)))
                for code, v in data.get("per_item", {}).items()
            },
            per_category={
                cat: {code: float(q) for code, q in codes.items()}
                for cat, codes in data.get("per_category", {}).items()
            },
            per_client={k: float(v) for k, v in data.get("per_client", {}).items()},
            document_count=int(data.get("document_count", 0)),
            skipped_count=int(data.get("skipped_count", 0)),
        )


@dataclass
class FinalAggregate:
    """Merged report across all chunks, the only aggregate readers see."""

    totals: PartialAggregate
    top_items_overall: list[dict[str, Any]] = field(default_factory=list)
    top_by_category: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    top_suppliers: list[dict[str, Any]] = field(default_factory=list)
    top_clients: list[dict[str, Any]] = field(default_factory=list)
    generated_at: str = ""
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def total_sales(self) -> float:
        return self.totals.total_sales

    def to_dict(self) -> dict[str, Any]:
        payload = self.totals.to_dict()
        payload.update({
            "top_items_overall": self.top_items_overall,
            "top_by_category": self.top_by_category,
            "top_suppliers": self.top_suppliers,
            "top_clients": self.top_clients,
            "generated_at": self.generated_at,
            "meta": self.meta,
        })
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FinalAggregate:
        return cls(
            totals=PartialAggregate.from_dict(data),
            top_items_overall=list(data.get("top_items_overall", [])),
            top_by_category=dict(data.get("top_by_category", {})),
            top_suppliers=list(data.get("top_suppliers", [])),
            top_clients=list(data.get("top_clients", [])),
            generated_at=data.get("generated_at", ""),
            meta=dict(data.get("meta", {})),
        )
