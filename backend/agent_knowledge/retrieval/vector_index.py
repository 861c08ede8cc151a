"""Vector index abstraction."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from agent_knowledge.core.errors import StorageError
from agent_knowledge.ingest.types import TextChunk

_NAME_RE = re.compile(r"[a-z0-9]+(?:_[a-z0-9]+)*")


@dataclass(slots=True)
class DocumentRecord:
    id: str
    text: str
    source: str
    chunk_index: int
    vector: list[float]

    @classmethod
    def from_chunk(cls, chunk: TextChunk, vector: Sequence[float]) -> "DocumentRecord":
        return cls(
            id=f"{chunk.source}-{chunk.chunk_index}",
            text=chunk.text,
            source=chunk.source,
            chunk_index=chunk.chunk_index,
            vector=list(vector),
        )


@dataclass(slots=True)
class SearchHit:
    """A stored chunk and its squared L2 distance to the query (lower is closer)."""

    text: str
    source: str
    score: float


class IndexBackend(Protocol):
    """Named vector tables living under one storage handle."""

    def create(self, name: str, records: Sequence[DocumentRecord]) -> None:
        """Replace table *name* with *records*, all or nothing."""
        ...

    def drop(self, name: str) -> None:
        ...

    def open(self, name: str) -> bool:
        """Return whether table *name* exists."""
        ...

    def search(self, name: str, vector: Sequence[float], top_k: int) -> list[SearchHit]:
        ...

    def list_names(self) -> list[str]:
        ...

    def count(self, name: str) -> int:
        ...


def validate_name(name: str) -> str:
    if not _NAME_RE.fullmatch(name):
        raise StorageError(f"Invalid table name '{name}': use lowercase letters and digits joined by single '_'")
    return name


def l2_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Squared Euclidean distance."""
    if len(a) != len(b):
        raise StorageError(f"Vector dimension mismatch: {len(a)} != {len(b)}")
    return sum((x - y) * (x - y) for x, y in zip(a, b))


def rank_hits(
    rows: Iterable[tuple[str, str, Sequence[float]]],
    vector: Sequence[float],
    top_k: int,
) -> list[SearchHit]:
    """Exact nearest-neighbour scan; equal distances keep storage order."""
    if top_k <= 0:
        return []
    hits = [SearchHit(text=text, source=source, score=l2_distance(stored, vector)) for text, source, stored in rows]
    hits.sort(key=lambda hit: hit.score)
    return hits[:top_k]


def check_dimensions(records: Sequence[DocumentRecord]) -> None:
    if not records:
        return
    dim = len(records[0].vector)
    for record in records:
        if len(record.vector) != dim:
            raise StorageError(f"Vector dimension mismatch in record {record.id}")


class MemoryIndexBackend:
    """Process-local tables, swapped in by a single assignment on create."""

    def __init__(self) -> None:
        self._tables: dict[str, list[DocumentRecord]] = {}
        self._lock = threading.Lock()

    def create(self, name: str, records: Sequence[DocumentRecord]) -> None:
        validate_name(name)
        check_dimensions(records)
        snapshot = [DocumentRecord(r.id, r.text, r.source, r.chunk_index, list(r.vector)) for r in records]
        with self._lock:
            self._tables[name] = snapshot

    def drop(self, name: str) -> None:
        with self._lock:
            self._tables.pop(name, None)

    def open(self, name: str) -> bool:
        return name in self._tables

    def search(self, name: str, vector: Sequence[float], top_k: int) -> list[SearchHit]:
        records = self._tables.get(name)
        if records is None:
            raise StorageError(f"Table '{name}' does not exist")
        return rank_hits(((r.text, r.source, r.vector) for r in records), vector, top_k)

    def list_names(self) -> list[str]:
        return sorted(self._tables)

    def count(self, name: str) -> int:
        return len(self._tables.get(name, ()))


__all__ = [
    "DocumentRecord",
    "SearchHit",
    "IndexBackend",
    "MemoryIndexBackend",
    "validate_name",
    "l2_distance",
    "rank_hits",
    "check_dimensions",
]
