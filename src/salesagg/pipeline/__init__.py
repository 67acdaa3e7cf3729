"""Chunked aggregation pipeline — job state machine and wiring."""

from salesagg.pipeline.scheduler import (
    ChunkScheduler,
    load_job,
    read_progress,
    read_status,
    reset_state,
)
from salesagg.pipeline.schemas import (
    CHUNK_PREFIX,
    FINAL_KEY,
    JOB_KEY,
    ChunkJob,
    Progress,
    StepResult,
    chunk_key,
)

__all__ = [
    "CHUNK_PREFIX",
    "ChunkJob",
    "ChunkScheduler",
    "FINAL_KEY",
    "JOB_KEY",
    "Progress",
    "StepResult",
    "chunk_key",
    "load_job",
    "read_progress",
    "read_status",
    "reset_state",
]
