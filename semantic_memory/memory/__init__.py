"""
Vector Memory System for Agents.

Stores short text memories in two Qdrant collections (shared global
knowledge and per-workspace knowledge) and finds them by meaning,
not by exact wording.
"""

from .base import MemoryRecord, SearchResult, VectorStore
from .embeddings import EmbeddingService, create_embedding_service, get_embedding_service
from .memory_manager import MemoryManager, create_memory_manager
from .provisioner import CollectionProvisioner
from .qdrant_store import QdrantVectorStore, get_vector_store

__all__ = [
    "MemoryRecord",
    "SearchResult",
    "VectorStore",
    "EmbeddingService",
    "create_embedding_service",
    "get_embedding_service",
    "MemoryManager",
    "create_memory_manager",
    "CollectionProvisioner",
    "QdrantVectorStore",
    "get_vector_store",
]
