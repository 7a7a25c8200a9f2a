"""
Semantic Memory - Shared and Per-Workspace Memory for Agents

This package lets automated agents store short text memories and find them
again by meaning, using local embeddings and a Qdrant vector database.
"""

__version__ = "1.0.0"
