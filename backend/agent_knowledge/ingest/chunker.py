"""Chunking utilities.

Documents are split on blank lines and paragraphs are packed greedily into
chunks of at most ``chunk_size`` characters. Each new chunk starts with the
last ``chunk_overlap`` characters of the previous one. Paragraphs that cannot
fit in any chunk are packed sentence by sentence instead.

A trailing buffer shorter than ``min_chunk_size`` is dropped rather than
merged into the previous chunk.
"""

from __future__ import annotations

import re
from typing import Iterable

from agent_knowledge.ingest.types import ChunkOptions, SourceDocument, TextChunk

_PARAGRAPH_RE = re.compile(r"\n\n+")
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")

_PARAGRAPH_SEP = "\n\n"
_SENTENCE_SEP = " "


class _ChunkBuffer:
    """Running buffer shared by the paragraph and sentence passes.

    Owns the chunk counter so indices stay contiguous across both passes.
    """

    def __init__(self, source: str, options: ChunkOptions) -> None:
        self.source = source
        self.options = options
        self.chunks: list[TextChunk] = []
        self.text = ""

    def fits(self, piece: str, separator: str) -> bool:
        return len(self.text) + len(piece) + len(separator) <= self.options.chunk_size

    def flush_with_overlap(self) -> None:
        """Emit the buffer if it meets the minimum and re-seed it with overlap."""
        if not self.text or len(self.text) < self.options.min_chunk_size:
            return
        self._emit(self.text)
        overlap_start = max(0, len(self.text) - self.options.chunk_overlap)
        self.text = self.text[overlap_start:].strip()

    def flush_final(self) -> None:
        if self.text and len(self.text) >= self.options.min_chunk_size:
            self._emit(self.text)
        self.text = ""

    def append(self, piece: str, separator: str) -> None:
        self.text = f"{self.text}{separator}{piece}" if self.text else piece

    def _emit(self, text: str) -> None:
        self.chunks.append(
            TextChunk(text=text.strip(), source=self.source, chunk_index=len(self.chunks))
        )


def normalize_text(text: str) -> str:
    """Unify line endings and strip surrounding whitespace."""
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def split_sentences(paragraph: str) -> list[str]:
    """Split on ``.``, ``!`` or ``?`` runs, keeping the terminators.

    Text without any terminator comes back as a single sentence.
    """
    sentences = [match.group().strip() for match in _SENTENCE_RE.finditer(paragraph)]
    sentences = [sentence for sentence in sentences if sentence]
    return sentences or [paragraph]


def chunk_text(text: str, source: str, options: ChunkOptions | None = None) -> list[TextChunk]:
    """Split text into overlapping chunks that preserve paragraph boundaries."""
    opts = options or ChunkOptions()
    cleaned = normalize_text(text)
    if not cleaned:
        return []

    if len(cleaned) <= opts.chunk_size:
        return [TextChunk(text=cleaned, source=source, chunk_index=0, total_chunks=1)]

    buffer = _ChunkBuffer(source, opts)
    for paragraph in _PARAGRAPH_RE.split(cleaned):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        if not buffer.fits(paragraph, _PARAGRAPH_SEP):
            buffer.flush_with_overlap()
            if len(paragraph) > opts.chunk_size:
                _chunk_sentences(buffer, paragraph)
                continue

        buffer.append(paragraph, _PARAGRAPH_SEP)

    buffer.flush_final()

    total = len(buffer.chunks)
    for chunk in buffer.chunks:
        chunk.total_chunks = total
    return buffer.chunks


def _chunk_sentences(buffer: _ChunkBuffer, paragraph: str) -> None:
    # The paragraph buffer (and any overlap it carried) is abandoned here.
    buffer.text = ""
    for sentence in split_sentences(paragraph):
        if not buffer.fits(sentence, _SENTENCE_SEP):
            buffer.flush_with_overlap()
        buffer.append(sentence, _SENTENCE_SEP)
    buffer.flush_final()


def chunk_documents(
    documents: Iterable[SourceDocument],
    options: ChunkOptions | None = None,
) -> list[TextChunk]:
    """Chunk each document independently and concatenate in input order."""
    chunks: list[TextChunk] = []
    for document in documents:
        chunks.extend(chunk_text(document.content, document.filename, options))
    return chunks


__all__ = ["chunk_text", "chunk_documents", "split_sentences", "normalize_text"]
