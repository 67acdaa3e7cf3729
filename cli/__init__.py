"""Command-line interface for the invoice sales aggregator."""
