"""Embedding utilities."""

from __future__ import annotations

import hashlib
import math
import re
from array import array
from typing import Protocol, Sequence

import openai

from agent_knowledge.core.config import OPENAI_KEY_ENV, Settings
from agent_knowledge.core.errors import ConfigurationError, EmbeddingProviderError
from agent_knowledge.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIM = 1536
# The provider accepts far more inputs per request; 100 keeps payloads small.
DEFAULT_BATCH_SIZE = 100


class EmbeddingBackend(Protocol):
    """A single provider call turning texts into vectors, order preserved."""

    name: str
    dim: int

    def ensure_configured(self) -> None:
        """Raise ``ConfigurationError`` when the backend cannot be called."""
        ...

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        ...


class OpenAIEmbeddingBackend:
    """OpenAI embeddings API backend (``text-embedding-3-small`` by default)."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        dim: int = DEFAULT_DIM,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.dim = dim
        self._api_key = api_key
        self._timeout = timeout
        self._client: openai.OpenAI | None = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                f"Embedding provider not configured. Set {OPENAI_KEY_ENV} in the environment."
            )

    def _get_client(self) -> openai.OpenAI:
        self.ensure_configured()
        if self._client is None:
            self._client = openai.OpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        return self._client

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        client = self._get_client()
        try:
            response = client.embeddings.create(model=self.model, input=list(texts))
        except openai.OpenAIError as exc:
            raise EmbeddingProviderError(f"Embedding request failed: {exc}") from exc
        return [item.embedding for item in sorted(response.data, key=lambda item: item.index)]


class HashedEmbeddingBackend:
    """Lightweight hashed embedding model with deterministic output.

    Tokens are hashed into ``dim`` buckets and the counts are normalised to unit
    length. Needs no network access, which makes it the backend of choice for
    local runs and tests.
    """

    name = "hashed"
    configured = True

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim

    def ensure_configured(self) -> None:
        return None

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for text in texts:
            vector = [0.0] * self.dim
            for token in _tokenize(text):
                vector[_hash_token(token, self.dim)] += 1.0
            _normalize(vector)
            vectors.append(vector)
        return vectors


class EmbeddingClient:
    """Splits requests into provider-sized batches and reassembles them in order.

    Inputs are never reordered or de-duplicated, and errors from the backend
    propagate unchanged; retrying is left to the caller.
    """

    def __init__(self, backend: EmbeddingBackend, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.backend = backend
        self.batch_size = batch_size

    @property
    def dim(self) -> int:
        return self.backend.dim

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            result = self.backend.embed_batch(batch)
            if len(result) != len(batch):
                raise EmbeddingProviderError(
                    f"Expected {len(batch)} embeddings from {self.backend.name}, got {len(result)}"
                )
            logger.debug(
                "Embedded batch %s (%s texts) with %s",
                start // self.batch_size + 1,
                len(batch),
                self.backend.name,
            )
            vectors.extend(result)
        return vectors


def build_embedding_backend(settings: Settings) -> EmbeddingBackend:
    """Instantiate the backend selected by ``settings.embedding_backend``."""
    if settings.embedding_backend == "hashed":
        return HashedEmbeddingBackend(dim=settings.embedding_dim)
    return OpenAIEmbeddingBackend(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        dim=settings.embedding_dim,
    )


def vector_to_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def vector_from_bytes(payload: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(payload)
    return list(floats)


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingBackend",
    "OpenAIEmbeddingBackend",
    "HashedEmbeddingBackend",
    "EmbeddingClient",
    "build_embedding_backend",
    "vector_to_bytes",
    "vector_from_bytes",
]
