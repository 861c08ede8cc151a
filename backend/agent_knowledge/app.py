"""FastAPI application setup for Agent Knowledge."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agent_knowledge.api.dependencies import (
    get_app_settings,
    get_database,
    get_knowledge_store,
)
from agent_knowledge.api.routes_admin import router as admin_router
from agent_knowledge.api.routes_ingest import router as ingest_router
from agent_knowledge.api.routes_query import router as query_router
from agent_knowledge.core.logging import configure_logging

configure_logging()

app = FastAPI(
    title="Agent Knowledge",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
app.include_router(query_router, prefix="", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_database()
    get_knowledge_store()


@app.on_event("shutdown")
async def shutdown() -> None:
    get_database().close()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
