"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from agent_knowledge.core.config import Settings, get_settings
from agent_knowledge.db.sqlite import SQLiteDatabase
from agent_knowledge.db.tables import SQLiteIndexBackend
from agent_knowledge.ingest.embeddings import EmbeddingClient, build_embedding_backend
from agent_knowledge.ingest.types import ChunkOptions
from agent_knowledge.retrieval import KnowledgeStore

_DB: SQLiteDatabase | None = None
_EMBEDDER: EmbeddingClient | None = None
_STORE: KnowledgeStore | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        _DB = SQLiteDatabase(get_app_settings().db_path)
    return _DB


def get_embedding_client() -> EmbeddingClient:
    global _EMBEDDER
    if _EMBEDDER is None:
        settings = get_app_settings()
        _EMBEDDER = EmbeddingClient(
            build_embedding_backend(settings),
            batch_size=settings.embedding_batch_size,
        )
    return _EMBEDDER


def get_knowledge_store() -> KnowledgeStore:
    global _STORE
    if _STORE is None:
        _STORE = KnowledgeStore(
            embedder=get_embedding_client(),
            backend=SQLiteIndexBackend(get_database()),
            tables=get_app_settings().tables,
        )
    return _STORE


def get_chunk_options() -> ChunkOptions:
    settings = get_app_settings()
    return ChunkOptions(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        min_chunk_size=settings.min_chunk_size,
    )


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedding_client",
    "get_knowledge_store",
    "get_chunk_options",
]
