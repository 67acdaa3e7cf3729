"""Document source factory — registry, lazy import."""

from __future__ import annotations

import importlib
import logging

from salesagg.errors import ConfigurationError
from salesagg.sources.base import DocumentSource

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Source registry: (source_key, module_path, class_name)
# ---------------------------------------------------------------------------

_SOURCE_REGISTRY: list[tuple[str, str, str]] = [
    ("gdrive", "salesagg.sources.gdrive_source", "GoogleDriveSource"),
    ("local", "salesagg.sources.local_source", "LocalFolderSource"),
]


def get_document_source(backend: str = "gdrive", **kwargs) -> DocumentSource:
    """Get a document source by name.

    Args:
        backend: One of ``gdrive``, ``local``.
        **kwargs: Passed to the source constructor.

    Returns:
        A ``DocumentSource`` instance.
    """
    key = backend.lower()
    for reg_key, module_path, cls_name in _SOURCE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            logger.debug("Creating document source %s", cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _SOURCE_REGISTRY]
    raise ConfigurationError(f"Unknown document source '{backend}'. Available: {available}")


def available_sources() -> list[str]:
    """Return names of registered document sources."""
    return [k for k, _, _ in _SOURCE_REGISTRY]
