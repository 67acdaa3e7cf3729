"""Aggregation — chunk-scoped totals and the order-independent merge."""

from salesagg.aggregation.merge import build_report, merge_aggregates
from salesagg.aggregation.partial import aggregate, client_key
from salesagg.aggregation.schemas import FinalAggregate, ItemTotals, PartialAggregate

__all__ = [
    "FinalAggregate",
    "ItemTotals",
    "PartialAggregate",
    "aggregate",
    "build_report",
    "client_key",
    "merge_aggregates",
]
