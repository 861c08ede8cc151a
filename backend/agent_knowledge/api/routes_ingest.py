"""Ingest API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agent_knowledge.api.dependencies import get_chunk_options, get_knowledge_store
from agent_knowledge.core.errors import ConfigurationError
from agent_knowledge.core.logging import get_logger
from agent_knowledge.core.metrics import REQUEST_COUNT
from agent_knowledge.ingest.chunker import chunk_documents
from agent_knowledge.ingest.types import ChunkOptions, SourceDocument
from agent_knowledge.models.dto import IngestRequest, IngestResponse
from agent_knowledge.retrieval import KnowledgeStore

router = APIRouter()
logger = get_logger(__name__)


@router.post("", response_model=IngestResponse, summary="Replace a bucket with uploaded documents")
async def ingest_documents(
    request: IngestRequest,
    store: KnowledgeStore = Depends(get_knowledge_store),
    options: ChunkOptions = Depends(get_chunk_options),
) -> IngestResponse:
    if request.bucket not in store.tables:
        raise _fail(400, f"Invalid bucket. Must be one of: {', '.join(store.tables)}")
    if not request.documents:
        raise _fail(400, "Documents array is required and must not be empty")
    try:
        store.embedder.backend.ensure_configured()
    except ConfigurationError as exc:
        raise _fail(500, str(exc)) from exc

    documents = [SourceDocument(filename=doc.filename, content=doc.content) for doc in request.documents]
    logger.info("Chunking %s documents for %s", len(documents), request.bucket)
    chunks = chunk_documents(documents, options)
    logger.info("Created %s chunks", len(chunks))
    if not chunks:
        raise _fail(400, "No content could be extracted from the documents")

    outcome = await store.ingest(request.bucket, chunks)
    if not outcome.success:
        raise _fail(500, outcome.error or "Failed to ingest documents")

    REQUEST_COUNT.labels(endpoint="ingest", method="POST", status="200").inc()
    return IngestResponse(
        success=True,
        bucket=request.bucket,
        documents_processed=len(documents),
        chunks_created=outcome.chunks_processed,
    )


def _fail(status: int, detail: str) -> HTTPException:
    REQUEST_COUNT.labels(endpoint="ingest", method="POST", status=str(status)).inc()
    return HTTPException(status_code=status, detail=detail)


__all__ = ["router"]
