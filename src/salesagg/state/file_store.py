"""Filesystem state store — one JSON file per key under a root directory."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from salesagg.errors import StateStoreError
from salesagg.state.base import StateStore

logger = logging.getLogger(__name__)


class FileStateStore(StateStore):
    """Keys map to paths below ``root``; writes are atomic replaces."""

    def __init__(self, path: str | Path = "local_data/state"):
        self.root = Path(path)

    def _path(self, key: str) -> Path:
        parts = key.split("/")
        if not key or any(p in ("", ".", "..") for p in parts):
            raise StateStoreError(f"Invalid state key: {key!r}")
        return self.root.joinpath(*parts)

    def get(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            raise StateStoreError(f"Failed to read state key {key}", detail=str(exc)) from exc

    def put(self, key: str, value: dict[str, Any]) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            raise StateStoreError(f"Failed to write state key {key}", detail=str(exc)) from exc
        logger.debug("FileStateStore wrote %s", key)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StateStoreError(f"Failed to delete state key {key}", detail=str(exc)) from exc

    def delete_prefix(self, prefix: str) -> int:
        if not self.root.exists():
            return 0
        deleted = 0
        try:
            for path in sorted(self.root.rglob("*")):
                if not path.is_file() or path.name.startswith(".tmp-"):
                    continue
                key = path.relative_to(self.root).as_posix()
                if key.startswith(prefix):
                    path.unlink()
                    deleted += 1
        except OSError as exc:
            raise StateStoreError(f"Failed to delete prefix {prefix}", detail=str(exc)) from exc
        logger.info("FileStateStore deleted %d keys under '%s'", deleted, prefix)
        return deleted
