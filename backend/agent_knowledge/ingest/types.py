"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SourceDocument:
    """Raw text handed over by the upload/extraction layer."""

    filename: str
    content: str


@dataclass(slots=True)
class ChunkOptions:
    """Character budgets for the chunker (characters approximate tokens)."""

    chunk_size: int = 1500
    chunk_overlap: int = 200
    min_chunk_size: int = 100

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if self.chunk_overlap < 0 or self.min_chunk_size < 0:
            raise ValueError("chunk_overlap and min_chunk_size must be >= 0")
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")


@dataclass(slots=True)
class TextChunk:
    """Chunk produced by the chunker prior to embedding."""

    text: str
    source: str
    chunk_index: int
    total_chunks: int | None = None


@dataclass(slots=True)
class IngestOutcome:
    """Result of replacing one table with freshly embedded chunks."""

    success: bool
    chunks_processed: int = 0
    error: str | None = None


__all__ = [
    "SourceDocument",
    "ChunkOptions",
    "TextChunk",
    "IngestOutcome",
]
