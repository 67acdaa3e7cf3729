"""Document sources — list and download invoices from two locations."""

from salesagg.sources.base import DocumentSource, SourceEntry, SourcePage
from salesagg.sources.factory import available_sources, get_document_source

__all__ = [
    "DocumentSource",
    "SourceEntry",
    "SourcePage",
    "available_sources",
    "get_document_source",
]
