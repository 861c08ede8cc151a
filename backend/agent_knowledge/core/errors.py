"""Error taxonomy for the knowledge pipeline."""

from __future__ import annotations


class KnowledgeError(Exception):
    """Base class for failures raised inside the knowledge pipeline."""


class ConfigurationError(KnowledgeError):
    """A required provider credential or setting is missing."""


class EmbeddingProviderError(KnowledgeError):
    """The embedding service rejected or failed a request."""


class StorageError(KnowledgeError):
    """A vector table could not be created, dropped, opened or searched."""


__all__ = [
    "KnowledgeError",
    "ConfigurationError",
    "EmbeddingProviderError",
    "StorageError",
]
