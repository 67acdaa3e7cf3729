"""In-memory state store — process-local, for tests and dry runs."""

from __future__ import annotations

import copy
from typing import Any

from salesagg.state.base import StateStore


class MemoryStateStore(StateStore):
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._data if k.startswith(prefix)]
        for k in doomed:
            del self._data[k]
        return len(doomed)

    def keys(self) -> list[str]:
        return sorted(self._data)
