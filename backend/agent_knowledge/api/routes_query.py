"""Query API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_knowledge.api.dependencies import get_knowledge_store
from agent_knowledge.core.metrics import REQUEST_COUNT
from agent_knowledge.models.dto import HitResult, QueryRequest, QueryResponse
from agent_knowledge.retrieval import KnowledgeStore, format_context

router = APIRouter()


@router.post("/query", response_model=QueryResponse, summary="Search every bucket")
async def run_query(
    request: QueryRequest,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> QueryResponse:
    hits = await store.query_all(request.query, top_k=request.k)
    REQUEST_COUNT.labels(endpoint="query", method="POST", status="200").inc()
    return QueryResponse(
        results=[HitResult(**hit.to_dict()) for hit in hits],
        context=format_context(hits),
    )


__all__ = ["router"]
