"""Administrative routes for Agent Knowledge."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agent_knowledge.api.dependencies import get_knowledge_store
from agent_knowledge.core.metrics import metrics_response
from agent_knowledge.models.dto import ClearResponse, TableStatus
from agent_knowledge.retrieval import KnowledgeStore

router = APIRouter()


@router.get("/tables", response_model=list[TableStatus], summary="List knowledge buckets")
async def list_tables(store: KnowledgeStore = Depends(get_knowledge_store)) -> list[TableStatus]:
    return [
        TableStatus(
            name=table,
            has_content=await store.has_content(table),
            count=await store.document_count(table),
        )
        for table in store.tables
    ]


@router.delete("/tables/{name}", response_model=ClearResponse, summary="Clear a knowledge bucket")
async def clear_table(name: str, store: KnowledgeStore = Depends(get_knowledge_store)) -> ClearResponse:
    if name not in store.tables:
        raise HTTPException(status_code=404, detail="Bucket not found")
    await store.clear(name)
    return ClearResponse(status="ok", table=name)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
