"""Tests for ChunkScheduler — the resumable chunked job lifecycle.

Each ``scheduler_for(...)`` call stands in for a fresh invocation: it shares
nothing with earlier ones except the state store.
"""

from __future__ import annotations

import pytest

from salesagg.errors import SourceAccessError, StateStoreError
from salesagg.pipeline.schemas import FINAL_KEY, JOB_KEY, ChunkJob, chunk_key
from salesagg.pipeline.scheduler import load_job, read_progress, read_status, reset_state
from salesagg.state.memory_store import MemoryStateStore

CHUNKS = [["a3", "b2", "a2"], ["b1", "a1", "b0"], ["a0"]]


def _run_to_completion(scheduler_for, src, **kwargs) -> int:
    steps = 0
    while True:
        steps += 1
        if scheduler_for(src, **kwargs).step().done:
            return steps


# ---------------------------------------------------------------------------
# Job state model
# ---------------------------------------------------------------------------


class TestChunkJob:
    def test_total_chunks(self, populated_source, enumerator_for):
        docs = enumerator_for(populated_source).enumerate()
        assert ChunkJob.create(docs, 3).total_chunks == 3
        assert ChunkJob.create(docs, 7).total_chunks == 1
        assert ChunkJob.create(docs, 100).total_chunks == 1
        assert ChunkJob.create([], 3).total_chunks == 0

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            ChunkJob.create([], 0)

    def test_last_chunk_is_short(self, populated_source, enumerator_for):
        job = ChunkJob.create(enumerator_for(populated_source).enumerate(), 3)
        assert [d.id for d in job.chunk(2)] == ["a0"]
        assert job.chunk_bounds(2) == (6, 7)

    def test_roundtrip_has_every_field(self, populated_source, enumerator_for):
        job = ChunkJob.create(enumerator_for(populated_source).enumerate(), 3, started_at="t0")
        job.cursor = 2
        data = job.to_dict()
        assert set(data) == {"documents", "chunk_size", "cursor", "total_chunks", "completed", "started_at"}
        assert ChunkJob.from_dict(data) == job

    def test_started_at_is_required(self, populated_source, enumerator_for, store):
        data = ChunkJob.create(enumerator_for(populated_source).enumerate(), 3, started_at="t0").to_dict()
        del data["started_at"]
        with pytest.raises(KeyError):
            ChunkJob.from_dict(data)
        store.put(JOB_KEY, data)
        with pytest.raises(StateStoreError, match="reset required"):
            load_job(store)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestStep:
    def test_first_step_enumerates_and_processes_chunk_zero(self, populated_source, scheduler_for, store):
        result = scheduler_for(populated_source).step()

        assert result.done is False
        assert result.chunk_index == 1
        assert result.total_chunks == 3
        assert result.processed == 3
        assert result.remaining == 4
        assert result.documents == 7
        assert populated_source.downloads == CHUNKS[0]
        assert store.get(chunk_key(0))["document_count"] == 3
        assert store.get(FINAL_KEY) is None

    def test_full_run(self, populated_source, scheduler_for, store):
        assert _run_to_completion(scheduler_for, populated_source) == 3

        report = store.get(FINAL_KEY)
        assert report["total_sales"] == 556
        assert report["per_item"] == {
            "BX7": {"qty": 4, "sales": 20},
            "TK001": {"qty": 8, "sales": 80},
            "TK900": {"qty": 9, "sales": 36},
        }
        assert report["per_supplier"] == {"Acme": 80, "Boxco": 20, "Zeta": 36}
        assert report["per_category"] == {
            "Kits": {"TK001": 8},
            "Packaging": {"BX7": 4},
            "Tools": {"TK900": 9},
        }
        assert [r["code"] for r in report["top_items_overall"]] == ["TK001", "TK900", "BX7"]
        assert [r["supplier"] for r in report["top_suppliers"]] == ["Acme", "Zeta", "Boxco"]
        assert [r["client"] for r in report["top_clients"]] == [
            "C3", "C2", "C1", "C0", "555-0", "555-1", "555-2",
        ]
        assert report["generated_at"] == "2024-07-01T00:00:00+00:00"
        assert report["meta"] == {
            "documents": 7,
            "processed_documents": 7,
            "skipped_documents": 0,
            "chunks": 3,
            "chunk_size": 3,
            "missing_chunks": [],
            "started_at": "2024-07-01T00:00:00+00:00",
        }

    def test_last_chunk_finalizes(self, populated_source, scheduler_for):
        scheduler_for(populated_source).step()
        scheduler_for(populated_source).step()
        result = scheduler_for(populated_source).step()
        assert result.done is True
        assert result.built is True
        assert result.processed == 7
        assert result.remaining == 0

    def test_enumerates_once_per_job(self, populated_source, scheduler_for):
        scheduler_for(populated_source).step()
        calls = populated_source.list_calls
        _run_to_completion(scheduler_for, populated_source)
        assert populated_source.list_calls == calls

    def test_new_documents_ignored_mid_job(self, populated_source, scheduler_for, make_invoice):
        scheduler_for(populated_source).step()
        populated_source.add(
            "folder-a", "late", "INV-999-2024.xlsx", "2030-01-01T00:00:00+00:00", make_invoice(1000)
        )
        _run_to_completion(scheduler_for, populated_source)
        assert "late" not in populated_source.downloads

    def test_already_done(self, populated_source, scheduler_for, store):
        _run_to_completion(scheduler_for, populated_source)
        report = store.get(FINAL_KEY)
        downloads = len(populated_source.downloads)

        result = scheduler_for(populated_source).step()
        assert result.done is True
        assert result.already_done is True
        assert result.built is False
        assert len(populated_source.downloads) == downloads
        assert store.get(FINAL_KEY) == report

    def test_single_chunk_job(self, populated_source, scheduler_for):
        result = scheduler_for(populated_source, chunk_size=50).step()
        assert result.done is True
        assert result.total_chunks == 1

    def test_resolver_loaded_per_chunk(self, populated_source, scheduler_for, resolver):
        calls = []

        def loader():
            calls.append(1)
            return resolver

        scheduler_for(populated_source, resolver_loader=loader).run()
        assert len(calls) == 3


class TestResumability:
    def test_resume_from_cursor(self, populated_source, scheduler_for, store):
        scheduler_for(populated_source).step()
        assert load_job(store).cursor == 1
        populated_source.downloads.clear()

        steps = _run_to_completion(scheduler_for, populated_source)

        assert steps == 2
        assert populated_source.downloads == CHUNKS[1] + CHUNKS[2]

    def test_crash_before_cursor_write_recomputes_chunk(self, populated_source, scheduler_for, store):
        scheduler_for(populated_source).step()
        job_before = store.get(JOB_KEY)
        scheduler_for(populated_source).step()
        # Simulate an invocation that wrote its chunk but died before the cursor write
        store.put(JOB_KEY, job_before)

        populated_source.downloads.clear()
        _run_to_completion(scheduler_for, populated_source)

        assert populated_source.downloads == CHUNKS[1] + CHUNKS[2]
        assert store.get(FINAL_KEY)["total_sales"] == 556

    def test_duplicate_chunk_processing_is_harmless(self, populated_source, scheduler_for, store):
        scheduler_for(populated_source).step()
        stale = store.get(JOB_KEY)
        scheduler_for(populated_source).step()
        store.put(JOB_KEY, stale)
        _run_to_completion(scheduler_for, populated_source)
        duplicated = store.get(FINAL_KEY)

        reset_state(store)
        _run_to_completion(scheduler_for, populated_source)
        assert store.get(FINAL_KEY) == duplicated

    def test_run_with_step_limit(self, populated_source, scheduler_for):
        result = scheduler_for(populated_source).run(max_steps=2)
        assert result.done is False
        assert result.chunk_index == 2
        assert scheduler_for(populated_source).run().done is True

    def test_run_reports_each_step(self, populated_source, scheduler_for):
        seen = []
        final = scheduler_for(populated_source).run(on_step=seen.append)
        assert [r.chunk_index for r in seen] == [1, 2, 3]
        assert seen[-1] is final
        assert final.built is True


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestSkipOnError:
    def test_bad_documents_skipped(self, populated_source, scheduler_for, store):
        populated_source.broken_downloads.add("b2")
        populated_source.blobs["a2"] = b"not json"

        result = scheduler_for(populated_source).step()

        assert result.chunk_index == 1
        assert result.skipped == 2
        assert result.warnings == [
            "IPEC Invoice 202-2024.xlsx: source_access_error",
            "INV-102-2024.xlsx: parse_error",
        ]
        part = store.get(chunk_key(0))
        assert part["document_count"] == 1
        assert part["total_sales"] == 103

        _run_to_completion(scheduler_for, populated_source)
        report = store.get(FINAL_KEY)
        assert report["total_sales"] == 404
        assert report["meta"]["processed_documents"] == 5
        assert report["meta"]["skipped_documents"] == 2

    def test_all_bad_chunk_still_advances(self, populated_source, scheduler_for, store):
        populated_source.broken_downloads.update(CHUNKS[0])
        result = scheduler_for(populated_source).step()
        assert result.chunk_index == 1
        assert store.get(chunk_key(0))["document_count"] == 0


class TestFailures:
    def test_enumeration_failure_persists_nothing(self, populated_source, scheduler_for, store):
        populated_source.broken_locations.add("folder-a")
        with pytest.raises(SourceAccessError):
            scheduler_for(populated_source).step()
        assert store.keys() == []

    def test_store_failure_propagates_without_advancing(self, populated_source, scheduler_for):
        class FlakyStore(MemoryStateStore):
            fail_chunks = True

            def put(self, key, value):
                if self.fail_chunks and key.startswith("build/chunks/"):
                    raise StateStoreError("write refused")
                super().put(key, value)

        flaky = FlakyStore()

        with pytest.raises(StateStoreError):
            scheduler_for(populated_source, state=flaky).step()
        assert load_job(flaky).cursor == 0

        flaky.fail_chunks = False
        assert scheduler_for(populated_source, state=flaky).step().chunk_index == 1

    def test_malformed_job_state(self, populated_source, scheduler_for, store):
        store.put(JOB_KEY, {"cursor": 1})
        with pytest.raises(StateStoreError):
            scheduler_for(populated_source).step()

    def test_missing_chunk_recorded(self, populated_source, scheduler_for, store):
        scheduler_for(populated_source).step()
        scheduler_for(populated_source).step()
        store.delete(chunk_key(0))
        scheduler_for(populated_source).step()

        meta = store.get(FINAL_KEY)["meta"]
        assert meta["missing_chunks"] == [0]
        assert meta["processed_documents"] == 4
        assert meta["documents"] == 7


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestEmptySource:
    def test_completes_immediately(self, source, scheduler_for, store):
        result = scheduler_for(source).step()
        assert result.done is True
        assert result.built is True
        assert result.total_chunks == 0

        status = read_status(store)
        assert status["ready"] is True
        assert status["data"]["total_sales"] == 0
        assert status["data"]["top_items_overall"] == []
        assert status["data"]["top_clients"] == []


# ---------------------------------------------------------------------------
# Readers and reset
# ---------------------------------------------------------------------------


class TestProgress:
    def test_no_job(self, store):
        p = read_progress(store)
        assert p.to_dict() == {
            "done": False,
            "processed_count": 0,
            "remaining_count": 0,
            "chunk_index": 0,
            "total_chunks": 0,
        }

    def test_mid_job(self, populated_source, scheduler_for, store):
        scheduler_for(populated_source).step()
        p = read_progress(store)
        assert (p.done, p.processed_count, p.remaining_count, p.chunk_index, p.total_chunks) == (
            False, 3, 4, 1, 3,
        )

    def test_finished(self, populated_source, scheduler_for):
        _run_to_completion(scheduler_for, populated_source)
        p = scheduler_for(populated_source).progress()
        assert p.done is True
        assert p.processed_count == 7
        assert p.remaining_count == 0


class TestStatus:
    def test_not_ready_mid_job(self, populated_source, scheduler_for, store):
        scheduler_for(populated_source).step()
        assert read_status(store) == {"ready": False}

    def test_ready_after_completion(self, populated_source, scheduler_for, store):
        _run_to_completion(scheduler_for, populated_source)
        status = read_status(store)
        assert status["ready"] is True
        assert status["data"]["top_items_overall"][0] == {"code": "TK001", "qty": 8, "sales": 80}

    def test_report_without_completed_job_is_hidden(self, store):
        store.put(FINAL_KEY, {"total_sales": 1})
        assert read_status(store) == {"ready": False}


class TestReset:
    def test_reset_clears_everything(self, populated_source, scheduler_for, store):
        _run_to_completion(scheduler_for, populated_source)
        result = reset_state(store)
        assert result == {"ok": True, "cleared": True, "chunks_deleted": 3}
        assert store.keys() == []
        assert read_status(store) == {"ready": False}

    def test_reset_when_empty(self, store):
        assert reset_state(store)["chunks_deleted"] == 0

    def test_rerun_reproduces_report(self, populated_source, scheduler_for, store):
        _run_to_completion(scheduler_for, populated_source)
        first = store.get(FINAL_KEY)

        scheduler_for(populated_source).reset()
        _run_to_completion(scheduler_for, populated_source)
        second = store.get(FINAL_KEY)

        assert second == first

    def test_rerun_with_different_chunk_size_matches_totals(self, populated_source, scheduler_for, store):
        _run_to_completion(scheduler_for, populated_source, chunk_size=3)
        first = store.get(FINAL_KEY)
        reset_state(store)
        _run_to_completion(scheduler_for, populated_source, chunk_size=2)
        second = store.get(FINAL_KEY)

        for key in ("total_sales", "per_supplier", "per_item", "per_category", "per_client"):
            assert second[key] == first[key]
        assert second["meta"]["chunks"] == 4
