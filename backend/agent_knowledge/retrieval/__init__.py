"""Retrieval orchestration components."""

from .vector_index import DocumentRecord, IndexBackend, MemoryIndexBackend, SearchHit
from .store import KnowledgeStore, SearchOutcome, TableHit, format_context

__all__ = [
    "DocumentRecord",
    "IndexBackend",
    "MemoryIndexBackend",
    "SearchHit",
    "KnowledgeStore",
    "SearchOutcome",
    "TableHit",
    "format_context",
]
