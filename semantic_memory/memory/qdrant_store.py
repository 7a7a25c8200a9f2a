"""
Qdrant Vector Store Implementation.

Talks to a remote Qdrant server over its REST API:
- Collections are created explicitly (see provisioner.py)
- Every write waits for the server to acknowledge durability
- Client errors are translated into the package's error types
"""

import logging
import threading
from typing import Any, Awaitable, Mapping, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointIdsList,
    PointStruct,
    PointVectors,
    VectorParams,
)

from ..config import QdrantConfig
from ..errors import CollectionExistsError, NotFoundError, StoreError
from .base import SearchResult, VectorStore

logger = logging.getLogger("semantic_memory.memory.qdrant")

DISTANCES = {
    "cosine": Distance.COSINE,
    "dot": Distance.DOT,
    "euclid": Distance.EUCLID,
}


def _build_filter(filters: Optional[Mapping[str, str]]) -> Optional[Filter]:
    """Turn field -> value equalities into a Qdrant must-filter."""
    if not filters:
        return None
    return Filter(
        must=[
            FieldCondition(key=key, match=MatchValue(value=value))
            for key, value in filters.items()
        ]
    )


class QdrantVectorStore(VectorStore):
    """
    Qdrant implementation of the vector store.

    The underlying AsyncQdrantClient is created on first use and reused
    for the lifetime of the store.
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: str = "",
        timeout: int = 30,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._client: Optional[AsyncQdrantClient] = None
        self._lock = threading.Lock()
        logger.info(f"QdrantVectorStore configured for {url}")

    def _get_client(self) -> AsyncQdrantClient:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = AsyncQdrantClient(
                        url=self.url,
                        api_key=self.api_key or None,
                        timeout=self.timeout,
                    )
        return self._client

    async def _call(self, action: str, request: Awaitable[Any]) -> Any:
        """Await a client request, translating failures into StoreError types."""
        try:
            return await request
        except UnexpectedResponse as e:
            message = f"{action} failed: {e}"
            if e.status_code == 404:
                raise NotFoundError(message) from e
            # Older servers answer 400 instead of 409
            if e.status_code == 409 or (e.status_code == 400 and "already exists" in str(e)):
                raise CollectionExistsError(message) from e
            raise StoreError(message) from e
        except Exception as e:
            raise StoreError(f"{action} failed: {e}") from e

    async def list_collections(self) -> set[str]:
        response = await self._call(
            "List collections", self._get_client().get_collections()
        )
        return {collection.name for collection in response.collections}

    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance: str = "cosine",
    ) -> None:
        if distance not in DISTANCES:
            raise ValueError(f"Unknown distance metric: {distance}")
        await self._call(
            f"Create collection {name}",
            self._get_client().create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=vector_size, distance=DISTANCES[distance]),
            ),
        )
        logger.info(f"Created collection {name} ({vector_size} dims, {distance})")

    async def create_payload_index(self, name: str, field_name: str) -> None:
        await self._call(
            f"Create index {name}.{field_name}",
            self._get_client().create_payload_index(
                collection_name=name,
                field_name=field_name,
                field_schema=PayloadSchemaType.KEYWORD,
                wait=True,
            ),
        )

    async def payload_indexes(self, name: str) -> set[str]:
        info = await self._call(
            f"Get collection {name}",
            self._get_client().get_collection(collection_name=name),
        )
        return set(info.payload_schema or {})

    async def upsert(
        self,
        name: str,
        id: str,
        vector: list[float],
        payload: dict[str, Any],
    ) -> None:
        await self._call(
            f"Upsert into {name}",
            self._get_client().upsert(
                collection_name=name,
                points=[PointStruct(id=id, vector=vector, payload=payload)],
                wait=True,
            ),
        )

    async def search(
        self,
        name: str,
        vector: list[float],
        limit: int = 10,
        score_threshold: float = 0.5,
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[SearchResult]:
        response = await self._call(
            f"Search {name}",
            self._get_client().query_points(
                collection_name=name,
                query=vector,
                query_filter=_build_filter(filters),
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            ),
        )
        return [
            SearchResult(id=str(point.id), score=point.score, payload=dict(point.payload or {}))
            for point in response.points
        ]

    async def set_payload(self, name: str, id: str, payload: dict[str, Any]) -> None:
        await self._call(
            f"Set payload on {name}/{id}",
            self._get_client().set_payload(
                collection_name=name,
                payload=payload,
                points=[id],
                wait=True,
            ),
        )

    async def update_vector(self, name: str, id: str, vector: list[float]) -> None:
        await self._call(
            f"Update vector on {name}/{id}",
            self._get_client().update_vectors(
                collection_name=name,
                points=[PointVectors(id=id, vector=vector)],
                wait=True,
            ),
        )

    async def delete(self, name: str, id: str) -> None:
        await self._call(
            f"Delete {name}/{id}",
            self._get_client().delete(
                collection_name=name,
                points_selector=PointIdsList(points=[id]),
                wait=True,
            ),
        )

    async def close(self) -> None:
        """Clean up resources."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("Qdrant connection closed")


# Process-wide shared instance
_store: Optional[QdrantVectorStore] = None
_store_lock = threading.Lock()


def get_vector_store(qdrant_config: Optional[QdrantConfig] = None) -> QdrantVectorStore:
    """Return the process-wide Qdrant store, creating it on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                if qdrant_config is None:
                    from ..config import config
                    qdrant_config = config.qdrant
                _store = QdrantVectorStore(
                    url=qdrant_config.url,
                    api_key=qdrant_config.api_key,
                    timeout=qdrant_config.timeout,
                )
    return _store


def reset_vector_store() -> None:
    """Drop the shared instance (used by tests and reconfiguration)."""
    global _store
    with _store_lock:
        _store = None
