"""
Collection provisioning.

Makes sure both memory collections exist, with the right vector size,
distance metric and keyword indexes, before anything reads or writes.
"""

import logging

from ..config import COLLECTION_GLOBAL, COLLECTION_WORKSPACE, VECTOR_SIZE
from ..errors import CollectionExistsError
from .base import VectorStore

logger = logging.getLogger("semantic_memory.memory.provisioner")

REQUIRED_COLLECTIONS = (COLLECTION_GLOBAL, COLLECTION_WORKSPACE)
INDEXED_FIELDS = ("scope", "agent", "type")


class CollectionProvisioner:
    """
    Idempotent creator of the global and workspace collections.

    Once both collections and their indexes have been seen complete, a
    call costs a single list request.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        vector_size: int = VECTOR_SIZE,
        distance: str = "cosine",
    ):
        self.vector_store = vector_store
        self.vector_size = vector_size
        self.distance = distance
        # Collections whose indexes are known to be complete
        self._indexed: set[str] = set()

    async def ensure_collections(self) -> list[str]:
        """
        Create whichever required collections are missing, then fill in
        any missing payload indexes.

        A collection left without some of its indexes by an earlier
        failure (ours or a concurrent creator's) is completed here.

        Returns:
            Names of the collections created by this call.
        """
        existing = await self.vector_store.list_collections()
        created = []

        for name in REQUIRED_COLLECTIONS:
            if name not in existing:
                try:
                    await self.vector_store.create_collection(
                        name, vector_size=self.vector_size, distance=self.distance
                    )
                    created.append(name)
                except CollectionExistsError:
                    # Another caller created it between our list and create
                    logger.warning(f"Collection {name} appeared concurrently, skipping creation")

            if name not in self._indexed:
                await self._ensure_indexes(name)

        return created

    async def _ensure_indexes(self, name: str) -> None:
        present = await self.vector_store.payload_indexes(name)
        missing = [f for f in INDEXED_FIELDS if f not in present]

        for field_name in missing:
            await self.vector_store.create_payload_index(name, field_name)
        if missing:
            logger.info(f"Indexed {name} on {', '.join(missing)}")

        self._indexed.add(name)
