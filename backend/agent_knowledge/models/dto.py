"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DocumentPayload(BaseModel):
    filename: str
    content: str


class IngestRequest(BaseModel):
    bucket: str = Field(description="Knowledge bucket (table) to replace")
    documents: list[DocumentPayload] = Field(default_factory=list)


class IngestResponse(BaseModel):
    success: bool
    bucket: str
    documents_processed: int
    chunks_created: int


class QueryRequest(BaseModel):
    query: str
    k: int = Field(default=5, ge=1, le=50)


class HitResult(BaseModel):
    text: str
    source: str
    table: str
    score: float


class QueryResponse(BaseModel):
    results: list[HitResult]
    context: str


class TableStatus(BaseModel):
    name: str
    has_content: bool
    count: int


class ClearResponse(BaseModel):
    status: str
    table: str


__all__ = [
    "DocumentPayload",
    "IngestRequest",
    "IngestResponse",
    "QueryRequest",
    "HitResult",
    "QueryResponse",
    "TableStatus",
    "ClearResponse",
]
