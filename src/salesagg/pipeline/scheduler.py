"""Chunk scheduler — the resumable job state machine.

Each call to ``step()`` is one bounded invocation:

    UNINITIALIZED -> ENUMERATED(cursor=0) -> ... -> ENUMERATED(cursor=N) -> COMPLETED

The unit of progress is "chunk aggregate written, then cursor advanced". An
invocation that dies before the cursor write leaves the previous committed
state intact and the next invocation recomputes the same chunk, which is
safe because chunk aggregation is a pure function of the document slice.

There is no locking between concurrent invocations. Two invocations reading
the same cursor recompute the same chunk; a stale cursor write can skip a
chunk, which shows up as ``meta.missing_chunks`` in the final report and is
recovered by reset and rerun.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from salesagg.aggregation.merge import build_report, merge_aggregates
from salesagg.aggregation.partial import aggregate
from salesagg.aggregation.schemas import PartialAggregate
from salesagg.documents.enumerator import SourceEnumerator
from salesagg.documents.schemas import DocKind, Invoice
from salesagg.errors import ParseError, SourceAccessError, StateStoreError
from salesagg.parsers.base import InvoiceParser
from salesagg.pipeline.schemas import (
    CHUNK_PREFIX,
    FINAL_KEY,
    JOB_KEY,
    ChunkJob,
    Progress,
    StepResult,
    chunk_key,
)
from salesagg.reference.resolvers import ReferenceResolver
from salesagg.state.base import StateStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ChunkScheduler:
    """Drive one aggregation job forward one chunk per invocation."""

    def __init__(
        self,
        store: StateStore,
        enumerator: SourceEnumerator,
        parsers: dict[DocKind, InvoiceParser],
        resolver_loader: Callable[[], ReferenceResolver],
        chunk_size: int = 25,
        top_clients: int = 50,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.enumerator = enumerator
        self.parsers = parsers
        self.resolver_loader = resolver_loader
        self.chunk_size = chunk_size
        self.top_clients = top_clients
        self.clock = clock

    # ------------------------------------------------------------------
    # Job state
    # ------------------------------------------------------------------

    def load_job(self) -> ChunkJob | None:
        return load_job(self.store)

    def _start_job(self) -> ChunkJob:
        documents = self.enumerator.enumerate()
        job = ChunkJob.create(documents, self.chunk_size, started_at=self.clock().isoformat())
        self.store.put(JOB_KEY, job.to_dict())
        logger.info(
            "Enumerated %d documents into %d chunks of %d",
            len(documents),
            job.total_chunks,
            job.chunk_size,
        )
        return job

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def step(self) -> StepResult:
        """Run one invocation's worth of work."""
        job = self.load_job()
        if job is None:
            job = self._start_job()

        if job.completed:
            logger.info("Job already completed (%d documents)", len(job.documents))
            return StepResult(
                done=True,
                already_done=True,
                chunk_index=job.cursor,
                total_chunks=job.total_chunks,
                processed=job.processed_count,
                remaining=job.remaining_count,
                documents=len(job.documents),
            )

        skipped = 0
        warnings: list[str] = []
        if job.cursor < job.total_chunks:
            index = job.cursor
            part, warnings = self._process_chunk(job, index)
            skipped = part.skipped_count
            self.store.put(chunk_key(index), part.to_dict())
            job.cursor = index + 1
            self.store.put(JOB_KEY, job.to_dict())
            logger.info(
                "Chunk %d/%d committed: %d parsed, %d skipped",
                index + 1,
                job.total_chunks,
                part.document_count,
                skipped,
            )

        built = False
        if job.cursor >= job.total_chunks:
            self._finalize(job)
            built = True

        return StepResult(
            done=job.completed,
            built=built,
            chunk_index=job.cursor,
            total_chunks=job.total_chunks,
            processed=job.processed_count,
            remaining=job.remaining_count,
            documents=len(job.documents),
            skipped=skipped,
            warnings=warnings,
        )

    def run(
        self,
        max_steps: int | None = None,
        on_step: Callable[[StepResult], None] | None = None,
    ) -> StepResult:
        """Call ``step()`` until the job completes or ``max_steps`` is reached.

        ``on_step`` is called with each step's result as it completes.
        """
        steps = 0
        while True:
            result = self.step()
            steps += 1
            if on_step is not None:
                on_step(result)
            if result.done or (max_steps is not None and steps >= max_steps):
                return result

    def progress(self) -> Progress:
        return read_progress(self.store)

    def status(self) -> dict[str, Any]:
        return read_status(self.store)

    def reset(self) -> dict[str, Any]:
        return reset_state(self.store)

    # ------------------------------------------------------------------
    # Chunk work
    # ------------------------------------------------------------------

    def _process_chunk(self, job: ChunkJob, index: int) -> tuple[PartialAggregate, list[str]]:
        resolver = self.resolver_loader()
        invoices: list[Invoice] = []
        warnings: list[str] = []

        for doc in job.chunk(index):
            try:
                data = self.enumerator.source.download(doc.id)
                invoices.append(self.parsers[doc.kind].parse(data, doc.name))
            except (SourceAccessError, ParseError) as exc:
                logger.warning("Skipping %s: %s", doc.name, exc)
                warnings.append(f"{doc.name}: {exc.kind}")

        return aggregate(invoices, resolver, skipped=len(warnings)), warnings

    def _finalize(self, job: ChunkJob) -> None:
        parts: list[PartialAggregate] = []
        missing: list[int] = []
        for i in range(job.total_chunks):
            data = self.store.get(chunk_key(i))
            if data is None:
                missing.append(i)
                continue
            parts.append(PartialAggregate.from_dict(data))

        if missing:
            logger.warning("Chunks missing at merge time: %s", missing)

        merged = merge_aggregates(parts)
        meta = {
            "documents": len(job.documents),
            "processed_documents": merged.document_count,
            "skipped_documents": merged.skipped_count,
            "chunks": job.total_chunks,
            "chunk_size": job.chunk_size,
            "missing_chunks": missing,
            "started_at": job.started_at,
        }
        report = build_report(
            merged,
            top_clients=self.top_clients,
            meta=meta,
            generated_at=self.clock().isoformat(),
        )
        self.store.put(FINAL_KEY, report.to_dict())
        job.completed = True
        self.store.put(JOB_KEY, job.to_dict())


# ---------------------------------------------------------------------------
# Reader and reset operations (need only the store)
# ---------------------------------------------------------------------------


def load_job(store: StateStore) -> ChunkJob | None:
    data = store.get(JOB_KEY)
    if data is None:
        return None
    try:
        return ChunkJob.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise StateStoreError("Malformed job state; reset required", detail=str(exc)) from exc


def read_progress(store: StateStore) -> Progress:
    job = load_job(store)
    if job is None:
        return Progress(done=False, processed_count=0, remaining_count=0, chunk_index=0, total_chunks=0)
    return Progress(
        done=job.completed,
        processed_count=job.processed_count,
        remaining_count=job.remaining_count,
        chunk_index=job.cursor,
        total_chunks=job.total_chunks,
    )


def read_status(store: StateStore) -> dict[str, Any]:
    """Dashboard view: the final report only once the job has completed."""
    job = store.get(JOB_KEY)
    if not job or not job.get("completed"):
        return {"ready": False}
    data = store.get(FINAL_KEY)
    if data is None:
        return {"ready": False}
    return {"ready": True, "data": data}


def reset_state(store: StateStore) -> dict[str, Any]:
    """Delete the job, every chunk aggregate, and the final report."""
    store.delete(JOB_KEY)
    chunks = store.delete_prefix(CHUNK_PREFIX)
    store.delete(FINAL_KEY)
    logger.info("Reset job state (%d chunk aggregates removed)", chunks)
    return {"ok": True, "cleared": True, "chunks_deleted": chunks}
