"""State store factory — registry, lazy import."""

from __future__ import annotations

import importlib
import logging

from salesagg.errors import ConfigurationError
from salesagg.state.base import StateStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "salesagg.state.memory_store", "MemoryStateStore"),
    ("file", "salesagg.state.file_store", "FileStateStore"),
    ("s3", "salesagg.state.s3_store", "S3StateStore"),
    ("gdrive", "salesagg.state.gdrive_store", "GoogleDriveStateStore"),
]


def get_state_store(backend: str = "file", **kwargs) -> StateStore:
    """Get a state store by name.

    Args:
        backend: One of ``memory``, ``file``, ``s3``, ``gdrive``.
        **kwargs: Passed to the store constructor.

    Returns:
        A ``StateStore`` instance.
    """
    key = backend.lower()
    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _STORE_REGISTRY]
    raise ConfigurationError(f"Unknown state store '{backend}'. Available: {available}")


def available_stores() -> list[str]:
    """Return names of registered state stores."""
    return [k for k, _, _ in _STORE_REGISTRY]
