"""Tests for embedding utilities."""

from __future__ import annotations

from types import SimpleNamespace

import openai
import pytest

from agent_knowledge.core.config import Settings
from agent_knowledge.core.errors import ConfigurationError, EmbeddingProviderError
from agent_knowledge.ingest.embeddings import (
    EmbeddingClient,
    HashedEmbeddingBackend,
    OpenAIEmbeddingBackend,
    build_embedding_backend,
    vector_from_bytes,
    vector_to_bytes,
)


class CountingBackend(HashedEmbeddingBackend):
    """Encodes the integer value of each text so order can be checked."""

    name = "counting"

    def __init__(self) -> None:
        super().__init__(dim=2)
        self.batches: list[list[str]] = []

    def embed_batch(self, texts):
        self.batches.append(list(texts))
        return [[float(text), 0.0] for text in texts]


def test_hashed_backend_is_deterministic_and_normalized() -> None:
    backend = HashedEmbeddingBackend(dim=64)
    first, second = backend.embed_batch(["hello world", "hello world"])
    assert first == second
    assert len(first) == 64
    assert abs(sum(value * value for value in first) - 1.0) < 1e-6


def test_hashed_backend_handles_text_without_tokens() -> None:
    vector = HashedEmbeddingBackend(dim=8).embed_batch(["..."])[0]
    assert vector == [0.0] * 8


def test_embed_batch_splits_into_sub_batches_in_order() -> None:
    backend = CountingBackend()
    client = EmbeddingClient(backend, batch_size=100)
    texts = [str(i) for i in range(250)]
    vectors = client.embed_batch(texts)
    assert [len(batch) for batch in backend.batches] == [100, 100, 50]
    assert [vector[0] for vector in vectors] == [float(i) for i in range(250)]


def test_duplicates_are_embedded_individually() -> None:
    backend = CountingBackend()
    vectors = EmbeddingClient(backend).embed_batch(["7", "7", "3"])
    assert backend.batches == [["7", "7", "3"]]
    assert [vector[0] for vector in vectors] == [7.0, 7.0, 3.0]


def test_embed_single_text() -> None:
    assert EmbeddingClient(CountingBackend()).embed("42") == [42.0, 0.0]


def test_empty_batch_makes_no_calls() -> None:
    backend = CountingBackend()
    assert EmbeddingClient(backend).embed_batch([]) == []
    assert backend.batches == []


def test_short_backend_response_is_an_error() -> None:
    class ShortBackend(CountingBackend):
        def embed_batch(self, texts):
            return super().embed_batch(texts)[:-1]

    with pytest.raises(EmbeddingProviderError):
        EmbeddingClient(ShortBackend()).embed_batch(["1", "2"])


def test_backend_errors_propagate_without_retry() -> None:
    class BrokenBackend(CountingBackend):
        def embed_batch(self, texts):
            self.batches.append(list(texts))
            raise EmbeddingProviderError("rate limited")

    backend = BrokenBackend()
    with pytest.raises(EmbeddingProviderError):
        EmbeddingClient(backend).embed_batch(["1"])
    assert len(backend.batches) == 1


def test_openai_backend_requires_api_key() -> None:
    backend = OpenAIEmbeddingBackend(api_key=None)
    assert backend.configured is False
    with pytest.raises(ConfigurationError):
        backend.embed_batch(["hello"])


def test_openai_backend_orders_rows_by_index() -> None:
    backend = OpenAIEmbeddingBackend(api_key="sk-test", dim=2)
    requests: list[dict] = []

    def create(**kwargs):
        requests.append(kwargs)
        return SimpleNamespace(
            data=[
                SimpleNamespace(index=1, embedding=[0.0, 1.0]),
                SimpleNamespace(index=0, embedding=[1.0, 0.0]),
            ]
        )

    backend._client = SimpleNamespace(embeddings=SimpleNamespace(create=create))
    assert backend.embed_batch(["a", "b"]) == [[1.0, 0.0], [0.0, 1.0]]
    assert requests == [{"model": "text-embedding-3-small", "input": ["a", "b"]}]


def test_openai_backend_wraps_provider_errors() -> None:
    backend = OpenAIEmbeddingBackend(api_key="sk-test")

    def create(**kwargs):
        raise openai.OpenAIError("invalid api key")

    backend._client = SimpleNamespace(embeddings=SimpleNamespace(create=create))
    with pytest.raises(EmbeddingProviderError, match="invalid api key"):
        backend.embed_batch(["a"])


def test_build_embedding_backend_follows_settings() -> None:
    hashed = build_embedding_backend(Settings(embedding_backend="hashed", embedding_dim=32))
    assert isinstance(hashed, HashedEmbeddingBackend)
    assert hashed.dim == 32
    remote = build_embedding_backend(Settings(embedding_backend="openai", openai_api_key="sk-x"))
    assert isinstance(remote, OpenAIEmbeddingBackend)
    assert remote.configured


def test_vector_bytes_roundtrip() -> None:
    assert vector_from_bytes(vector_to_bytes([0.5, -1.0, 2.0])) == [0.5, -1.0, 2.0]
