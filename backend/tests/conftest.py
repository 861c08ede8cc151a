"""Test fixtures for Agent Knowledge."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


def _reset_singletons() -> None:
    from agent_knowledge.api import dependencies as deps
    from agent_knowledge.core.config import get_settings

    if deps._DB is not None:
        deps._DB.close()
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._DB = None
    deps._EMBEDDER = None
    deps._STORE = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("AGK_DB_PATH", str(tmp_path / "knowledge.db"))
    monkeypatch.setenv("AGK_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("AGK_EMBEDDING_DIM", "256")
    monkeypatch.delenv("AGK_CONFIG", raising=False)
    monkeypatch.delenv("AGK_TABLES", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    _reset_singletons()
    yield
    _reset_singletons()


class KeyedBackend:
    """Embedding backend returning fixed vectors for known texts."""

    name = "keyed"
    configured = True

    def __init__(self, vectors: dict[str, list[float]], dim: int = 2) -> None:
        self.vectors = vectors
        self.dim = dim
        self.calls: list[list[str]] = []

    def ensure_configured(self) -> None:
        return None

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [list(self.vectors.get(text, [0.0] * self.dim)) for text in texts]


@pytest.fixture
def keyed_backend() -> KeyedBackend:
    return KeyedBackend({})


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "Title\n\nParagraph one.\n\nParagraph two is here."
