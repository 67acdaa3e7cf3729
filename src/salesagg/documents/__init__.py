"""Documents — source document models and worklist enumeration."""

from salesagg.documents.enumerator import LocationSpec, SourceEnumerator
from salesagg.documents.schemas import DocKind, Document, Invoice, LineItem

__all__ = [
    "DocKind",
    "Document",
    "Invoice",
    "LineItem",
    "LocationSpec",
    "SourceEnumerator",
]
