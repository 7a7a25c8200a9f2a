"""
Embedding Service for generating vector representations.

Uses a local ONNX model through fastembed by default (no API calls),
with OpenAI's embedding models as an alternative backend. Both produce
VECTOR_SIZE-dimensional vectors so they fit the same collections.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Literal, Optional

from ..config import VECTOR_SIZE, EmbeddingConfig
from ..errors import EmbeddingError

logger = logging.getLogger("semantic_memory.memory.embeddings")


class EmbeddingService(ABC):
    """Abstract interface for embedding generation."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension of embeddings produced."""
        pass

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        pass

    def _check_vector(self, vector: Optional[list[float]]) -> list[float]:
        if not vector:
            raise EmbeddingError("Embedding failed: model produced no output")
        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"Embedding has {len(vector)} dimensions, expected {self.dimension}"
            )
        return vector


class FastEmbedEmbeddingService(EmbeddingService):
    """
    Local embedding service using fastembed (ONNX runtime).

    Uses BAAI/bge-base-en-v1.5 by default (768 dimensions). The model is
    downloaded into cache_dir on first use and loaded exactly once, even
    when several requests trigger the first load at the same time.
    """

    def __init__(
        self,
        model_name: str = "BAAI/bge-base-en-v1.5",
        cache_dir: Optional[str] = None,
        dimension: int = VECTOR_SIZE,
    ):
        self.model_name = model_name
        self.cache_dir = cache_dir
        self._dimension = dimension
        self._model = None
        self._lock = threading.Lock()
        logger.info(f"FastEmbedEmbeddingService configured with model: {model_name}")

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_model(self):
        if self._model is None:
            with self._lock:
                if self._model is None:
                    try:
                        from fastembed import TextEmbedding
                    except ImportError as e:
                        raise EmbeddingError(
                            "fastembed not installed. Install with: pip install fastembed"
                        ) from e
                    try:
                        model = TextEmbedding(model_name=self.model_name, cache_dir=self.cache_dir)
                    except Exception as e:
                        raise EmbeddingError(
                            f"Failed to load embedding model {self.model_name}: {e}"
                        ) from e
                    # Only publish a fully constructed model
                    self._model = model
                    logger.info(f"Loaded local embedding model: {self.model_name}")
        return self._model

    def _embed_sync(self, text: str) -> list[float]:
        model = self._get_model()
        try:
            vector = next(iter(model.embed([text])), None)
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e
        if vector is None:
            raise EmbeddingError("Embedding failed: model produced no output")
        return self._check_vector([float(v) for v in vector])

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        # Model loading and ONNX inference are blocking
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._embed_sync, text)


class OpenAIEmbeddingService(EmbeddingService):
    """
    OpenAI embedding service using text-embedding-3 models.

    The dimensions parameter reduces the output to VECTOR_SIZE so the
    vectors are interchangeable with the collections' configuration.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimension: int = VECTOR_SIZE,
    ):
        self.api_key = api_key
        self.model = model
        self._dimension = dimension
        self._client = None
        logger.info(
            f"OpenAIEmbeddingService initialized: model={model}, dimensions={dimension}"
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        client = self._get_client()

        try:
            response = await client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self._dimension,
            )
        except Exception as e:
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e

        if not response.data:
            raise EmbeddingError("Embedding failed: model produced no output")
        return self._check_vector(list(response.data[0].embedding))


def create_embedding_service(
    provider: Literal["fastembed", "openai"] = "fastembed",
    model: str = "",
    cache_dir: Optional[str] = None,
    api_key: str = "",
) -> EmbeddingService:
    """
    Factory function to create the appropriate embedding service.

    Args:
        provider: "fastembed" (local) or "openai"
        model: Model name (optional, uses defaults)
        cache_dir: Model cache directory for fastembed
        api_key: OpenAI API key (required for openai provider)

    Returns:
        Configured EmbeddingService instance
    """
    if provider == "fastembed":
        return FastEmbedEmbeddingService(
            model_name=model or "BAAI/bge-base-en-v1.5",
            cache_dir=cache_dir,
        )
    elif provider == "openai":
        if not api_key:
            raise ValueError("OpenAI API key required for openai embedding provider")
        return OpenAIEmbeddingService(
            api_key=api_key,
            model=model or "text-embedding-3-small",
        )
    else:
        raise ValueError(f"Unknown embedding provider: {provider}")


# Process-wide shared instance
_service: Optional[EmbeddingService] = None
_service_lock = threading.Lock()


def get_embedding_service(embedding_config: Optional[EmbeddingConfig] = None) -> EmbeddingService:
    """
    Return the process-wide embedding service, creating it on first use.

    Construction happens under a lock so concurrent first callers share a
    single instance (and a single model load).
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                if embedding_config is None:
                    from ..config import config
                    embedding_config = config.embedding
                if embedding_config.provider == "openai":
                    _service = create_embedding_service(
                        provider="openai",
                        model=embedding_config.openai_model,
                        api_key=embedding_config.openai_api_key,
                    )
                else:
                    _service = create_embedding_service(
                        provider=embedding_config.provider,
                        model=embedding_config.model,
                        cache_dir=embedding_config.cache_dir,
                    )
    return _service


def reset_embedding_service() -> None:
    """Drop the shared instance (used by tests and reconfiguration)."""
    global _service
    with _service_lock:
        _service = None
