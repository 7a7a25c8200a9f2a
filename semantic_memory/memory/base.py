"""
Base interfaces and data structures for vector memory.

Defines the abstract contract that vector store backends must
implement, plus the records that flow through it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Mapping, Optional

CollectionKind = Literal["global", "workspace"]


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class MemoryRecord:
    """
    A single stored memory.

    `text` is the source of truth; the vector is derived from it and
    never lives on the record itself.
    """
    id: str
    scope: str  # "global" or a workspace name (s60, bw, fess...)
    agent: str  # Who wrote it
    type: str  # decision, context, api, error, doc, note, memory, person, event
    text: str
    tags: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)
    updated_at: Optional[str] = None  # Only set by updates

    def to_payload(self) -> dict[str, Any]:
        """Payload stored next to the vector (everything but the id)."""
        payload = {
            "scope": self.scope,
            "agent": self.agent,
            "type": self.type,
            "tags": list(self.tags),
            "text": self.text,
            "created_at": self.created_at,
        }
        if self.updated_at is not None:
            payload["updated_at"] = self.updated_at
        return payload

    @classmethod
    def from_payload(cls, id: str, payload: Mapping[str, Any]) -> "MemoryRecord":
        """Rebuild a record from a stored payload."""
        return cls(
            id=id,
            scope=payload.get("scope", ""),
            agent=payload.get("agent", ""),
            type=payload.get("type", ""),
            text=payload.get("text", ""),
            tags=list(payload.get("tags") or []),
            created_at=payload.get("created_at", ""),
            updated_at=payload.get("updated_at"),
        )


@dataclass
class SearchResult:
    """A search hit from the vector store."""
    id: str
    score: float  # Cosine similarity, higher is more similar
    payload: dict[str, Any]

    @property
    def record(self) -> MemoryRecord:
        return MemoryRecord.from_payload(self.id, self.payload)


class VectorStore(ABC):
    """
    Abstract interface for vector storage backends.

    Implementations: Qdrant (remote).
    Every mutating call must wait for the write to be durable.
    """

    @abstractmethod
    async def list_collections(self) -> set[str]:
        """Return the names of all existing collections."""
        pass

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance: str = "cosine",
    ) -> None:
        """
        Create a collection.

        Raises:
            CollectionExistsError: If the collection is already there.
        """
        pass

    @abstractmethod
    async def create_payload_index(self, name: str, field_name: str) -> None:
        """Create a keyword index on a payload field. Re-creating one is not an error."""
        pass

    @abstractmethod
    async def payload_indexes(self, name: str) -> set[str]:
        """Return the payload fields of a collection that already have an index."""
        pass

    @abstractmethod
    async def upsert(
        self,
        name: str,
        id: str,
        vector: list[float],
        payload: dict[str, Any],
    ) -> None:
        """Insert or replace a single point."""
        pass

    @abstractmethod
    async def search(
        self,
        name: str,
        vector: list[float],
        limit: int = 10,
        score_threshold: float = 0.5,
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[SearchResult]:
        """
        Search a collection by vector similarity.

        Args:
            name: Collection to search
            vector: Query embedding
            limit: Maximum number of hits
            score_threshold: Hits scoring below this are excluded
            filters: Field -> value equalities that every hit must satisfy

        Returns:
            Hits ordered by descending score
        """
        pass

    @abstractmethod
    async def set_payload(self, name: str, id: str, payload: dict[str, Any]) -> None:
        """
        Merge fields into the payload of an existing point.

        Raises:
            NotFoundError: If the point does not exist.
        """
        pass

    @abstractmethod
    async def update_vector(self, name: str, id: str, vector: list[float]) -> None:
        """
        Replace the vector of an existing point.

        Raises:
            NotFoundError: If the point does not exist.
        """
        pass

    @abstractmethod
    async def delete(self, name: str, id: str) -> None:
        """Delete a point. Deleting an absent id is not an error."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        pass
