"""
Test doubles and sample data for Semantic Memory tests.
"""

import math
import re
from typing import Any, Mapping, Optional

from semantic_memory.config import VECTOR_SIZE
from semantic_memory.errors import CollectionExistsError, NotFoundError
from semantic_memory.memory.base import SearchResult, VectorStore
from semantic_memory.memory.embeddings import EmbeddingService

STOPWORDS = {
    "a", "an", "the", "is", "are", "be", "must", "how", "do", "does", "what",
    "with", "uses", "on", "of", "to", "we", "our", "in", "for", "and",
}

# Words folded onto a shared concept so paraphrases score as similar
SYNONYMS = {
    "tokens": "jwt",
    "token": "jwt",
    "long": "expiry",
    "last": "expiry",
    "backup": "backed",
    "authentication": "auth",
}


class KeywordEmbeddingService(EmbeddingService):
    """
    Deterministic bag-of-concepts embeddings.

    Each distinct concept gets its own dimension, so cosine similarity is
    exactly the normalized concept overlap of two texts.
    """

    def __init__(self, dimension: int = VECTOR_SIZE):
        self._dimension = dimension
        self._index: dict[str, int] = {}
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def concepts(self, text: str) -> list[str]:
        words = re.findall(r"[a-z0-9]+", text.lower())
        return [SYNONYMS.get(w, w) for w in words if w not in STOPWORDS]

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self._dimension
        for concept in self.concepts(text):
            if concept not in self._index:
                self._index[concept] = len(self._index) % self._dimension
            vector[self._index[concept]] += 1.0
        return vector


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStore):
    """
    Vector store double with Qdrant-like semantics.

    Cosine scores, score_threshold keeps hits >= threshold, equality
    filters, 404-style NotFoundError for missing points on mutation.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, tuple[list[float], dict[str, Any]]]] = {}
        self.vector_sizes: dict[str, int] = {}
        self.indexes: dict[str, list[str]] = {}
        self.search_calls: list[dict[str, Any]] = []
        self.create_calls: list[str] = []
        self.index_calls: list[tuple[str, str]] = []
        self.closed = False

    def _collection(self, name: str):
        if name not in self.collections:
            raise NotFoundError(f"Collection {name} not found")
        return self.collections[name]

    async def list_collections(self) -> set[str]:
        return set(self.collections)

    async def create_collection(self, name: str, vector_size: int, distance: str = "cosine") -> None:
        self.create_calls.append(name)
        if name in self.collections:
            raise CollectionExistsError(f"Collection `{name}` already exists!")
        self.collections[name] = {}
        self.vector_sizes[name] = vector_size
        self.indexes[name] = []

    async def create_payload_index(self, name: str, field_name: str) -> None:
        self._collection(name)
        self.index_calls.append((name, field_name))
        if field_name not in self.indexes[name]:
            self.indexes[name].append(field_name)

    async def payload_indexes(self, name: str) -> set[str]:
        self._collection(name)
        return set(self.indexes[name])

    async def upsert(self, name: str, id: str, vector: list[float], payload: dict[str, Any]) -> None:
        self._collection(name)[id] = (list(vector), dict(payload))

    async def search(
        self,
        name: str,
        vector: list[float],
        limit: int = 10,
        score_threshold: float = 0.5,
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[SearchResult]:
        self.search_calls.append({
            "name": name,
            "limit": limit,
            "score_threshold": score_threshold,
            "filters": dict(filters) if filters else None,
        })
        hits = []
        for point_id, (point_vector, payload) in self._collection(name).items():
            if filters and any(payload.get(k) != v for k, v in filters.items()):
                continue
            score = cosine(vector, point_vector)
            if score >= score_threshold:
                hits.append(SearchResult(id=point_id, score=score, payload=dict(payload)))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    async def set_payload(self, name: str, id: str, payload: dict[str, Any]) -> None:
        points = self._collection(name)
        if id not in points:
            raise NotFoundError(f"No point with id {id} found")
        points[id][1].update(payload)

    async def update_vector(self, name: str, id: str, vector: list[float]) -> None:
        points = self._collection(name)
        if id not in points:
            raise NotFoundError(f"No point with id {id} found")
        points[id] = (list(vector), points[id][1])

    async def delete(self, name: str, id: str) -> None:
        self._collection(name).pop(id, None)

    async def close(self) -> None:
        self.closed = True


def make_search_result(
    id: str = "00000000-0000-0000-0000-000000000001",
    score: float = 0.8,
    text: str = "Auth service uses JWT with 1h expiry",
    scope: str = "s60",
    agent: str = "main",
    type: str = "decision",
    tags: Optional[list[str]] = None,
) -> SearchResult:
    """Create a sample SearchResult for testing."""
    return SearchResult(
        id=id,
        score=score,
        payload={
            "scope": scope,
            "agent": agent,
            "type": type,
            "tags": tags or [],
            "text": text,
            "created_at": "2026-01-01T12:00:00+00:00",
        },
    )
