"""
Memory Manager - Orchestrates the vector memory system.

This is the high-level interface that the tool layer uses.
It handles:
- Routing records to the global or workspace collection
- Generating embeddings for stored text and queries
- Searching global + workspace memories and ranking the union
- Updating and deleting records by id
"""

import asyncio
import logging
import uuid
from typing import Optional

from ..config import (
    COLLECTION_GLOBAL,
    COLLECTION_WORKSPACE,
    GLOBAL_SCOPE,
    MEMORY_TYPES,
    Config,
    SearchConfig,
)
from ..errors import ValidationError
from .base import CollectionKind, MemoryRecord, SearchResult, VectorStore, utc_now
from .embeddings import EmbeddingService, get_embedding_service
from .provisioner import CollectionProvisioner
from .qdrant_store import get_vector_store

logger = logging.getLogger("semantic_memory.memory.manager")

COLLECTIONS_BY_KIND = {
    "global": COLLECTION_GLOBAL,
    "workspace": COLLECTION_WORKSPACE,
}


def _require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"'{field}' is required and must not be empty", field=field)
    return value


class MemoryManager:
    """
    High-level memory management for agents.

    Global memories are always searched; workspace memories only when a
    scope is given, and then only the records of that scope.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedding_service: EmbeddingService,
        search_config: Optional[SearchConfig] = None,
        strict_types: bool = True,
    ):
        self.vector_store = vector_store
        self.embedding_service = embedding_service
        self.search_config = search_config or SearchConfig()
        self.strict_types = strict_types
        self.provisioner = CollectionProvisioner(
            vector_store, vector_size=embedding_service.dimension
        )
        logger.info("MemoryManager created")

    async def initialize(self) -> None:
        """Provision collections up front so the first request doesn't pay for it."""
        created = await self.provisioner.ensure_collections()
        logger.info(
            f"MemoryManager initialized ({len(created)} collection(s) created)"
        )

    @staticmethod
    def collection_for_scope(scope: str) -> str:
        """The collection a record of this scope lives in."""
        return COLLECTION_GLOBAL if scope == GLOBAL_SCOPE else COLLECTION_WORKSPACE

    @staticmethod
    def collection_for_kind(kind: CollectionKind) -> str:
        """Resolve a "global"/"workspace" selector to a collection name."""
        if kind not in COLLECTIONS_BY_KIND:
            raise ValidationError(
                f"collection must be 'global' or 'workspace', got '{kind}'",
                field="collection",
            )
        return COLLECTIONS_BY_KIND[kind]

    def _check_type(self, memory_type: str) -> str:
        if self.strict_types and memory_type not in MEMORY_TYPES:
            raise ValidationError(
                f"Unknown memory type '{memory_type}'. Expected one of: {', '.join(MEMORY_TYPES)}",
                field="type",
            )
        return memory_type

    def _check_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.search_config.default_limit
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}", field="limit")
        return limit

    async def store(
        self,
        text: str,
        scope: str,
        agent: str,
        type: str,
        tags: Optional[list[str]] = None,
    ) -> str:
        """
        Store a new memory.

        Args:
            text: Content to remember
            scope: "global" for shared knowledge, otherwise a workspace name
            agent: Identifier of the writing agent
            type: Memory classification (decision, note, ...)
            tags: Optional free-form tags

        Returns:
            The generated id of the stored memory
        """
        _require(text, "text")
        _require(scope, "scope")
        _require(agent, "agent")
        self._check_type(_require(type, "type"))

        await self.provisioner.ensure_collections()
        vector = await self.embedding_service.embed(text)

        record = MemoryRecord(
            id=str(uuid.uuid4()),
            scope=scope,
            agent=agent,
            type=type,
            text=text,
            tags=list(tags or []),
        )
        collection = self.collection_for_scope(scope)
        await self.vector_store.upsert(collection, record.id, vector, record.to_payload())

        logger.info(f"Stored memory {record.id} in {collection} (scope={scope}, type={type}, agent={agent})")
        return record.id

    async def semantic_search(
        self,
        query: str,
        scope: Optional[str] = None,
        type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        """
        Search global memories plus, when scope is given, that workspace.

        The type filter applies to the workspace search only.

        Returns:
            At most `limit` hits, highest score first
        """
        _require(query, "query")
        limit = self._check_limit(limit)
        if type:
            self._check_type(type)

        await self.provisioner.ensure_collections()
        vector = await self.embedding_service.embed(query)
        threshold = self.search_config.scoped_threshold

        searches = [
            self.vector_store.search(
                COLLECTION_GLOBAL, vector, limit=limit, score_threshold=threshold
            )
        ]
        if scope and scope != GLOBAL_SCOPE:
            filters = {"scope": scope}
            if type:
                filters["type"] = type
            searches.append(
                self.vector_store.search(
                    COLLECTION_WORKSPACE,
                    vector,
                    limit=limit,
                    score_threshold=threshold,
                    filters=filters,
                )
            )

        hit_lists = await asyncio.gather(*searches)
        results = [hit for hits in hit_lists for hit in hits]
        # sorted() is stable, so equal scores keep global-before-workspace order
        results = sorted(results, key=lambda r: r.score, reverse=True)[:limit]

        logger.debug(
            f"semantic_search scope={scope} type={type}: "
            f"{' + '.join(str(len(h)) for h in hit_lists)} hits, returning {len(results)}"
        )
        return results

    async def semantic_search_global(
        self,
        query: str,
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        """Search only the global collection, with the broader recall threshold."""
        _require(query, "query")
        limit = self._check_limit(limit)

        await self.provisioner.ensure_collections()
        vector = await self.embedding_service.embed(query)

        results = await self.vector_store.search(
            COLLECTION_GLOBAL,
            vector,
            limit=limit,
            score_threshold=self.search_config.global_threshold,
        )
        logger.debug(f"semantic_search_global: {len(results)} hits")
        return results

    async def update(
        self,
        id: str,
        text: str,
        collection: CollectionKind = "workspace",
    ) -> None:
        """
        Replace the text (and vector) of an existing memory.

        The caller picks the collection; an id alone does not say which
        one the record lives in.

        Raises:
            NotFoundError: If no point with that id exists in the collection
        """
        _require(id, "id")
        _require(text, "text")
        name = self.collection_for_kind(collection)

        await self.provisioner.ensure_collections()
        vector = await self.embedding_service.embed(text)

        await self.vector_store.set_payload(name, id, {"text": text, "updated_at": utc_now()})
        await self.vector_store.update_vector(name, id, vector)
        logger.info(f"Updated memory {id} in {name}")

    async def delete(self, id: str, collection: CollectionKind = "workspace") -> None:
        """Delete a memory permanently. Unknown ids are ignored."""
        _require(id, "id")
        name = self.collection_for_kind(collection)

        await self.provisioner.ensure_collections()
        await self.vector_store.delete(name, id)
        logger.info(f"Deleted memory {id} from {name}")

    async def close(self) -> None:
        """Clean up resources."""
        await self.vector_store.close()
        logger.info("MemoryManager closed")


async def create_memory_manager(cfg: Optional[Config] = None) -> MemoryManager:
    """
    Factory function to create a configured MemoryManager.

    Uses the process-wide embedding service and Qdrant store, so every
    manager created in one process shares the same model and connection.

    Args:
        cfg: Configuration to use (defaults to the global config)

    Returns:
        Initialized MemoryManager
    """
    if cfg is None:
        from ..config import config as cfg

    manager = MemoryManager(
        vector_store=get_vector_store(cfg.qdrant),
        embedding_service=get_embedding_service(cfg.embedding),
        search_config=cfg.search,
        strict_types=cfg.app.strict_types,
    )

    await manager.initialize()
    return manager
