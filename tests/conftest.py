"""
Shared pytest fixtures for Semantic Memory tests.

This module provides:
- An in-memory vector store and keyword embedding service
- A MemoryManager wired to those doubles
- Reset of the process-wide singletons between tests
- Sample config.yaml and environment variables
"""

from pathlib import Path

import pytest

from semantic_memory.config import SearchConfig
from semantic_memory.memory import MemoryManager
from semantic_memory.memory.embeddings import reset_embedding_service
from semantic_memory.memory.qdrant_store import reset_vector_store
from tests.fixtures import InMemoryVectorStore, KeywordEmbeddingService


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def fake_store() -> InMemoryVectorStore:
    """Provide an empty in-memory vector store."""
    return InMemoryVectorStore()


@pytest.fixture
def fake_embeddings() -> KeywordEmbeddingService:
    """Provide deterministic keyword embeddings."""
    return KeywordEmbeddingService()


@pytest.fixture
def search_config() -> SearchConfig:
    """Provide the default thresholds regardless of any local config.yaml."""
    return SearchConfig(scoped_threshold=0.5, global_threshold=0.4, default_limit=10)


@pytest.fixture
def memory_manager(fake_store, fake_embeddings, search_config) -> MemoryManager:
    """Provide a MemoryManager backed by the in-memory doubles."""
    return MemoryManager(
        vector_store=fake_store,
        embedding_service=fake_embeddings,
        search_config=search_config,
        strict_types=True,
    )


@pytest.fixture
def reset_singletons():
    """Clear the process-wide embedding service and store before and after a test."""
    reset_embedding_service()
    reset_vector_store()
    yield
    reset_embedding_service()
    reset_vector_store()


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_config_yaml(tmp_path) -> Path:
    """Create a sample config.yaml file."""
    config_path = tmp_path / "config.yaml"
    config_content = """
qdrant:
  timeout: 5

embedding:
  provider: fastembed
  model: BAAI/bge-base-en-v1.5
  cache_dir: /tmp/fastembed-test

search:
  scoped_threshold: 0.55
  global_threshold: 0.35
  default_limit: 7

app:
  strict_types: false

logging:
  level: DEBUG
"""
    config_path.write_text(config_content)
    return config_path


# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set mock environment variables for testing."""
    monkeypatch.setenv("QDRANT_URL", "http://qdrant.test:6333")
    monkeypatch.setenv("QDRANT_API_KEY", "test-qdrant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
