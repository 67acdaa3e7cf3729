"""Invoice parsers — one cell layout per document kind."""

from salesagg.parsers.base import InvoiceParser
from salesagg.parsers.factory import get_parser, get_parsers
from salesagg.parsers.layouts import FormatAParser, FormatBParser

__all__ = [
    "FormatAParser",
    "FormatBParser",
    "InvoiceParser",
    "get_parser",
    "get_parsers",
]
