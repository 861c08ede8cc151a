"""Knowledge store: one vector table per knowledge bucket.

Write path: chunks -> embeddings -> full replace of the bucket's table.
Read path: query text -> one embedding -> search every bucket -> merge by
distance. Reads are best effort: a failing bucket contributes no hits instead
of failing the caller, because the chat step must work without context too.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Sequence

from agent_knowledge.core.errors import KnowledgeError
from agent_knowledge.core.logging import get_logger
from agent_knowledge.core.metrics import INGEST_DURATION, QUERY_DEGRADED, QUERY_LATENCY, TABLE_ROWS
from agent_knowledge.ingest.embeddings import EmbeddingClient
from agent_knowledge.ingest.types import IngestOutcome, TextChunk
from agent_knowledge.retrieval.vector_index import DocumentRecord, IndexBackend, SearchHit, validate_name

logger = get_logger(__name__)

DEFAULT_TABLES = ("website", "documentation")


@dataclass(slots=True)
class TableHit:
    text: str
    source: str
    table: str
    score: float

    def to_dict(self) -> dict[str, object]:
        return {"text": self.text, "source": self.source, "table": self.table, "score": self.score}


@dataclass(slots=True)
class SearchOutcome:
    """Hits from one table, or the error that prevented the search."""

    hits: list[SearchHit] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class KnowledgeStore:
    """Owns the bucket tables and the storage handle they live under."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        backend: IndexBackend,
        tables: Sequence[str] = DEFAULT_TABLES,
    ) -> None:
        if not tables:
            raise ValueError("At least one table is required")
        self.embedder = embedder
        self.backend = backend
        self.tables = tuple(validate_name(table) for table in tables)

    async def ingest(self, table: str, chunks: Sequence[TextChunk]) -> IngestOutcome:
        """Replace *table* with embeddings of *chunks*; never raises."""
        if not chunks:
            return IngestOutcome(success=True, chunks_processed=0)

        started = time.perf_counter()
        try:
            logger.info(
                "Generating embeddings for %s chunks",
                len(chunks),
                extra={"ctx_table": table, "ctx_chunks": len(chunks)},
            )
            vectors = await asyncio.to_thread(self.embedder.embed_batch, [chunk.text for chunk in chunks])
            records = [DocumentRecord.from_chunk(chunk, vector) for chunk, vector in zip(chunks, vectors)]
            await asyncio.to_thread(self.backend.create, table, records)
        except Exception as exc:
            logger.exception("Ingest into %s failed: %s", table, exc, extra={"ctx_table": table})
            return IngestOutcome(success=False, chunks_processed=0, error=str(exc) or type(exc).__name__)

        INGEST_DURATION.labels(table=table).observe(time.perf_counter() - started)
        TABLE_ROWS.labels(table=table).set(len(records))
        logger.info(
            "Ingested %s chunks into %s",
            len(records),
            table,
            extra={"ctx_table": table, "ctx_chunks": len(records)},
        )
        return IngestOutcome(success=True, chunks_processed=len(records))

    async def try_query(self, table: str, query_text: str, top_k: int = 5) -> SearchOutcome:
        """Embed *query_text* and search *table*, reporting failure as a value."""
        try:
            vector = await asyncio.to_thread(self.embedder.embed, query_text)
        except Exception as exc:
            return SearchOutcome(error=exc)
        return await self._search(table, vector, top_k)

    async def query(self, table: str, query_text: str, top_k: int = 5) -> list[SearchHit]:
        outcome = await self.try_query(table, query_text, top_k)
        return self._hits_or_empty(table, outcome)

    async def query_all(self, query_text: str, top_k: int = 5) -> list[TableHit]:
        """Search every known table with the same *top_k* and merge by distance.

        Ties keep table order, then per-table rank (the sort is stable).
        """
        started = time.perf_counter()
        try:
            vector = await asyncio.to_thread(self.embedder.embed, query_text)
        except Exception as exc:
            logger.warning("Query embedding failed, continuing without context: %s", exc)
            for table in self.tables:
                QUERY_DEGRADED.labels(table=table).inc()
            return []

        outcomes = await asyncio.gather(*(self._search(table, vector, top_k) for table in self.tables))
        merged: list[TableHit] = []
        for table, outcome in zip(self.tables, outcomes):
            merged.extend(
                TableHit(text=hit.text, source=hit.source, table=table, score=hit.score)
                for hit in self._hits_or_empty(table, outcome)
            )
        merged.sort(key=lambda hit: hit.score)
        QUERY_LATENCY.observe(time.perf_counter() - started)
        return merged[:top_k]

    async def clear(self, table: str) -> None:
        """Drop *table* if present; failures are logged, never raised."""
        try:
            if await asyncio.to_thread(self.backend.open, table):
                await asyncio.to_thread(self.backend.drop, table)
                logger.info("Cleared table: %s", table, extra={"ctx_table": table})
            TABLE_ROWS.labels(table=table).set(0)
        except Exception as exc:
            logger.error("Clear table %s failed: %s", table, exc, extra={"ctx_table": table})

    async def has_content(self, table: str) -> bool:
        try:
            return await asyncio.to_thread(self.backend.open, table)
        except KnowledgeError:
            return False

    async def document_count(self, table: str) -> int:
        try:
            if not await asyncio.to_thread(self.backend.open, table):
                return 0
            return await asyncio.to_thread(self.backend.count, table)
        except KnowledgeError:
            return 0

    async def _search(self, table: str, vector: Sequence[float], top_k: int) -> SearchOutcome:
        try:
            if not await asyncio.to_thread(self.backend.open, table):
                return SearchOutcome()
            hits = await asyncio.to_thread(self.backend.search, table, vector, top_k)
        except Exception as exc:
            return SearchOutcome(error=exc)
        return SearchOutcome(hits=hits)

    def _hits_or_empty(self, table: str, outcome: SearchOutcome) -> list[SearchHit]:
        if outcome.ok:
            return outcome.hits
        QUERY_DEGRADED.labels(table=table).inc()
        logger.warning(
            "Query on %s failed, serving no results: %s",
            table,
            outcome.error,
            extra={"ctx_table": table},
        )
        return []


def format_context(hits: Sequence[TableHit]) -> str:
    """Render hits as numbered blocks for the chat prompt."""
    return "\n\n".join(
        f"[{position}] From {hit.source} ({hit.table}):\n{hit.text}"
        for position, hit in enumerate(hits, start=1)
    )


__all__ = [
    "KnowledgeStore",
    "TableHit",
    "SearchOutcome",
    "format_context",
    "DEFAULT_TABLES",
]
