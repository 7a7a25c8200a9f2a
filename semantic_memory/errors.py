"""
Shared error types for the memory services.
"""


class SemanticMemoryError(Exception):
    """Base class for every failure surfaced by the memory system."""


class ValidationError(SemanticMemoryError, ValueError):
    """Raised when a required input is missing, empty or out of range."""

    def __init__(self, message: str, field: str = "unknown"):
        super().__init__(message)
        self.field = field


class EmbeddingError(SemanticMemoryError):
    """Raised when the embedding backend fails or produces no vector."""


class StoreError(SemanticMemoryError):
    """Raised on network or server failures from the vector store."""


class CollectionExistsError(StoreError):
    """Raised when creating a collection that is already there."""


class NotFoundError(StoreError):
    """Raised when a mutation targets a point or collection that does not exist."""
