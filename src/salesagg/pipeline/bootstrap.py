"""Wire settings to concrete sources, parsers, resolvers, and stores."""

from __future__ import annotations

import functools
import logging

from salesagg.config import Settings
from salesagg.documents.enumerator import LocationSpec, SourceEnumerator
from salesagg.documents.schemas import DocKind
from salesagg.parsers.factory import get_parsers
from salesagg.pipeline.scheduler import ChunkScheduler
from salesagg.reference.resolvers import load_resolver
from salesagg.sources.factory import get_document_source
from salesagg.state.base import StateStore
from salesagg.state.factory import get_state_store

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> StateStore:
    cfg = settings.state
    if cfg.backend == "file":
        return get_state_store("file", path=cfg.path)
    if cfg.backend == "s3":
        return get_state_store("s3", bucket=cfg.bucket, prefix=cfg.prefix, region=cfg.region)
    if cfg.backend == "gdrive":
        return get_state_store(
            "gdrive",
            folder_id=cfg.folder_id,
            service_account_key=settings.source.service_account_key,
            service_account_email=settings.source.service_account_email,
        )
    return get_state_store(cfg.backend)


def build_enumerator(settings: Settings) -> SourceEnumerator:
    """Create the source and location specs; raises ``ConfigurationError`` first."""
    src = settings.require_source()
    if src.backend == "gdrive":
        source = get_document_source(
            "gdrive",
            service_account_key=src.service_account_key,
            service_account_email=src.service_account_email,
            page_size=src.page_size,
        )
    else:
        source = get_document_source(src.backend, page_size=src.page_size)

    locations = [
        LocationSpec(location=src.location_a, pattern=src.pattern_a, kind=DocKind.A),
        LocationSpec(location=src.location_b, pattern=src.pattern_b, kind=DocKind.B),
    ]
    return SourceEnumerator(source, locations)


def build_scheduler(settings: Settings) -> ChunkScheduler:
    enumerator = build_enumerator(settings)
    store = build_store(settings)
    ref = settings.reference
    resolver_loader = functools.partial(load_resolver, ref.suppliers_path, ref.categories_path)

    logger.debug(
        "Scheduler: source=%s store=%s chunk_size=%d",
        enumerator.source.source_name(),
        store.store_name(),
        settings.pipeline.chunk_size,
    )
    return ChunkScheduler(
        store=store,
        enumerator=enumerator,
        parsers=get_parsers(),
        resolver_loader=resolver_loader,
        chunk_size=settings.pipeline.chunk_size,
        top_clients=settings.pipeline.top_clients,
    )
