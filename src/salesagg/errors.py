"""Exception hierarchy for the aggregation pipeline.

Each error carries a machine-readable ``kind`` so adapters can report
failures without string matching.
"""

from __future__ import annotations

from typing import Any


class SalesAggError(Exception):
    """Base class for all pipeline errors."""

    kind = "internal_error"

    def __init__(self, message: str, *, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ConfigurationError(SalesAggError):
    """Missing credentials, location ids, or an unknown backend."""

    kind = "configuration_error"


class SourceAccessError(SalesAggError):
    """Listing or downloading from a document location failed."""

    kind = "source_access_error"


class ParseError(SalesAggError):
    """A document could not be turned into an ``Invoice``."""

    kind = "parse_error"


class StateStoreError(SalesAggError):
    """Reading or writing durable job state failed."""

    kind = "state_store_error"
