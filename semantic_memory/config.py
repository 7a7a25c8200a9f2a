"""
Configuration module for Semantic Memory.

Loads application settings from config.yaml and secrets from environment variables.
"""

import logging
import os
import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Context variable for per-tool-call logging
request_context = contextvars.ContextVar("request_id", default=None)


class RequestLogFilter(logging.Filter):
    """Filter to inject the current tool request ID into log records."""
    def filter(self, record):
        request_id = request_context.get()
        if request_id is not None:
            record.request_info = f" [{request_id}]"
        else:
            record.request_info = ""
        return True


# Fixed storage layout
COLLECTION_GLOBAL = "memory-global"
COLLECTION_WORKSPACE = "memory-workspace"
VECTOR_SIZE = 768
GLOBAL_SCOPE = "global"

MEMORY_TYPES = (
    "decision",
    "context",
    "api",
    "error",
    "doc",
    "note",
    "memory",
    "person",
    "event",
)

# Default config file path (overridable for deployments and tests)
CONFIG_FILE = Path(
    os.getenv("SEMANTIC_MEMORY_CONFIG", Path(__file__).parent.parent / "config.yaml")
)


def _load_yaml_config() -> dict:
    """Load configuration from YAML file."""
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE) as f:
            return yaml.safe_load(f) or {}
    return {}


# Load YAML config once at module import
_yaml_config = _load_yaml_config()


def _get_yaml(section: str, key: str, default=None):
    """Get a value from the YAML config."""
    return _yaml_config.get(section, {}).get(key, default)


@dataclass
class QdrantConfig:
    """Qdrant connection settings."""
    # Secrets from .env
    url: str = field(default_factory=lambda: os.getenv("QDRANT_URL", "http://localhost:6333"))
    api_key: str = field(default_factory=lambda: os.getenv("QDRANT_API_KEY", ""))

    # Setting from YAML
    timeout: int = field(default_factory=lambda: _get_yaml("qdrant", "timeout", 30))


def _get_cache_dir() -> str:
    """Get the fastembed model cache from .env or YAML."""
    env_dir = os.getenv("FASTEMBED_CACHE_DIR", "")
    if env_dir:
        return os.path.expanduser(env_dir)
    return os.path.expanduser(
        _get_yaml("embedding", "cache_dir", str(Path.home() / ".cache" / "fastembed"))
    )


@dataclass
class EmbeddingConfig:
    """Embedding backend configuration."""
    provider: Literal["fastembed", "openai"] = field(
        default_factory=lambda: _get_yaml("embedding", "provider", "fastembed")
    )
    # Local ONNX model, must produce VECTOR_SIZE dimensions
    model: str = field(
        default_factory=lambda: _get_yaml("embedding", "model", "BAAI/bge-base-en-v1.5")
    )
    cache_dir: str = field(default_factory=_get_cache_dir)

    # Secret from .env
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    # Reduced to VECTOR_SIZE through the dimensions parameter
    openai_model: str = field(
        default_factory=lambda: _get_yaml("embedding", "openai_model", "text-embedding-3-small")
    )


@dataclass
class SearchConfig:
    """Score thresholds and limits for the two search variants."""
    # Global + workspace search
    scoped_threshold: float = field(
        default_factory=lambda: _get_yaml("search", "scoped_threshold", 0.5)
    )
    # Global-only search casts a wider net for cross-project recall
    global_threshold: float = field(
        default_factory=lambda: _get_yaml("search", "global_threshold", 0.4)
    )
    default_limit: int = field(
        default_factory=lambda: _get_yaml("search", "default_limit", 10)
    )


@dataclass
class AppConfig:
    """Application settings from YAML."""
    # Logging
    log_level: str = field(
        default_factory=lambda: _get_yaml("logging", "level", "INFO")
    )

    # Reject memory types outside MEMORY_TYPES
    strict_types: bool = field(
        default_factory=lambda: _get_yaml("app", "strict_types", True)
    )


@dataclass
class Config:
    """Main configuration container."""
    qdrant: QdrantConfig = field(default_factory=QdrantConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    app: AppConfig = field(default_factory=AppConfig)

    def setup_logging(self) -> logging.Logger:
        """Configure and return the application logger."""
        # Reset existing handlers to ensure clean configuration
        root = logging.getLogger()
        if root.handlers:
            for handler in list(root.handlers):
                root.removeHandler(handler)

        logging.basicConfig(
            level=getattr(logging, self.app.log_level.upper()),
            format="%(asctime)s - %(name)s - %(levelname)s%(request_info)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        # Add filter to the handler created by basicConfig
        for handler in logging.getLogger().handlers:
            handler.addFilter(RequestLogFilter())

        return logging.getLogger("semantic_memory")

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of missing/invalid settings.

        Returns:
            List of validation error messages, empty if all valid.
        """
        errors = []

        if self.embedding.provider not in ("fastembed", "openai"):
            errors.append(f"Unknown embedding provider: {self.embedding.provider}")
        elif self.embedding.provider == "openai" and not self.embedding.openai_api_key:
            errors.append("OPENAI_API_KEY is required when using the openai embedding provider")

        if not self.qdrant.url:
            errors.append("QDRANT_URL must not be empty")

        for name in ("scoped_threshold", "global_threshold"):
            value = getattr(self.search, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"search.{name} must be between 0 and 1 (got {value})")

        if self.search.default_limit < 1:
            errors.append("search.default_limit must be at least 1")

        return errors


# Global configuration instance
config = Config()
