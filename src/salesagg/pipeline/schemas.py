"""Data models for the chunked aggregation job."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from salesagg.documents.schemas import Document

# State keys
JOB_KEY = "build/state.json"
CHUNK_PREFIX = "build/chunks/"
FINAL_KEY = "agg.json"


def chunk_key(index: int) -> str:
    return f"{CHUNK_PREFIX}{index}.json"


@dataclass
class ChunkJob:
    """Persisted progress of one aggregation run.

    Attributes:
        documents: Worklist fixed at enumeration time, newest first.
        chunk_size: Documents per chunk.
        cursor: Index of the next unprocessed chunk.
        total_chunks: ``ceil(len(documents) / chunk_size)``.
        completed: True once the final report has been published.
        started_at: ISO-8601 time the job was enumerated.
    """

    documents: list[Document]
    chunk_size: int
    cursor: int = 0
    total_chunks: int = 0
    completed: bool = False
    started_at: str = ""

    @classmethod
    def create(cls, documents: list[Document], chunk_size: int, started_at: str = "") -> ChunkJob:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        return cls(
            documents=list(documents),
            chunk_size=chunk_size,
            total_chunks=math.ceil(len(documents) / chunk_size),
            started_at=started_at,
        )

    def chunk_bounds(self, index: int) -> tuple[int, int]:
        start = index * self.chunk_size
        return start, min(start + self.chunk_size, len(self.documents))

    def chunk(self, index: int) -> list[Document]:
        start, end = self.chunk_bounds(index)
        return self.documents[start:end]

    @property
    def processed_count(self) -> int:
        return min(self.cursor * self.chunk_size, len(self.documents))

    @property
    def remaining_count(self) -> int:
        return len(self.documents) - self.processed_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "documents": [d.to_dict() for d in self.documents],
            "chunk_size": self.chunk_size,
            "cursor": self.cursor,
            "total_chunks": self.total_chunks,
            "completed": self.completed,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChunkJob:
        return cls(
            documents=[Document.from_dict(d) for d in data["documents"]],
            chunk_size=int(data["chunk_size"]),
            cursor=int(data["cursor"]),
            total_chunks=int(data["total_chunks"]),
            completed=bool(data["completed"]),
            started_at=data["started_at"],
        )


@dataclass
class StepResult:
    """Outcome of one scheduler invocation."""

    done: bool
    built: bool = False
    already_done: bool = False
    chunk_index: int = 0
    total_chunks: int = 0
    processed: int = 0
    remaining: int = 0
    documents: int = 0
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Progress:
    """Operational view of a running job."""

    done: bool
    processed_count: int
    remaining_count: int
    chunk_index: int
    total_chunks: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
