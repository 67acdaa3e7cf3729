"""Abstract base class for durable JSON state stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StateStore(ABC):
    """Keyed JSON storage shared by every invocation of a job.

    Keys are ``/``-separated strings such as ``build/chunks/3.json``.
    Implementations raise ``StateStoreError`` on any backend failure.
    """

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the JSON object stored under ``key``, or ``None`` if absent."""

    @abstractmethod
    def put(self, key: str, value: dict[str, Any]) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete ``key``. Deleting an absent key is not an error."""

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``.

        Returns:
            Number of keys deleted.
        """

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
