"""Resumable chunked aggregation of spreadsheet invoices into a sales report."""

__version__ = "0.1.0"
