"""Parser factory — dispatch a document kind to its layout parser."""

from __future__ import annotations

import importlib
import logging

from salesagg.documents.schemas import DocKind
from salesagg.parsers.base import InvoiceParser

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Parser registry
#
# Each entry: (doc_kind, module_path, class_name)
# ---------------------------------------------------------------------------

_PARSER_REGISTRY: list[tuple[DocKind, str, str]] = [
    (DocKind.A, "salesagg.parsers.layouts", "FormatAParser"),
    (DocKind.B, "salesagg.parsers.layouts", "FormatBParser"),
]

# Singleton cache
_parser_cache: dict[DocKind, InvoiceParser] = {}


def get_parser(kind: DocKind) -> InvoiceParser:
    """Get the parser for a document kind."""
    if kind in _parser_cache:
        return _parser_cache[kind]

    for registered_kind, module_path, cls_name in _PARSER_REGISTRY:
        if registered_kind == kind:
            mod = importlib.import_module(module_path)
            instance = getattr(mod, cls_name)()
            _parser_cache[kind] = instance
            return instance

    raise ValueError(f"No parser registered for document kind '{kind}'")


def get_parsers() -> dict[DocKind, InvoiceParser]:
    """Return a parser for every registered kind."""
    return {kind: get_parser(kind) for kind, _, _ in _PARSER_REGISTRY}


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _parser_cache.clear()
