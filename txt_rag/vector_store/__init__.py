"""
Vector store module for txt-to-rag.

This module handles embedding generation and vector similarity search
using Ollama for embeddings and Chroma for storage and retrieval.
"""

from .embeddings import EmbeddingGenerator
from .store import VectorStore

__all__ = ["EmbeddingGenerator", "VectorStore"]
