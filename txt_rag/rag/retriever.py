"""
Retrieval half of the RAG pipeline.

A question is embedded with the same Ollama model used at indexing time and
Chroma returns the closest stored chunks, which are then stitched into the
context handed to the chat model.
"""

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

from txt_rag.config.settings import settings
from txt_rag.document_processor.chunker import TextChunk
from txt_rag.vector_store import EmbeddingGenerator, VectorStore

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"


@dataclass
class RetrievalResult:
    """Chunks found for a query, best match first."""

    query: str
    relevant_chunks: list[TextChunk]
    scores: list[float]
    retrieval_time: float
    total_retrieved: int


class DocumentRetriever:
    """
    Finds the stored chunks closest to a query.

    Also fronts the vector store for ingestion (adding and clearing records)
    so the pipeline talks to a single object.
    """

    def __init__(
        self,
        vector_store: VectorStore | None = None,
        embedding_generator: EmbeddingGenerator | None = None,
    ):
        self.vector_store = vector_store or VectorStore()
        self.embedding_generator = embedding_generator or EmbeddingGenerator()

    def retrieve_relevant_documents(
        self, query: str, top_k: int | None = None
    ) -> RetrievalResult:
        """
        Embed ``query`` and fetch its nearest chunks.

        Args:
            query: Question text
            top_k: Number of chunks to fetch (``settings.top_k_retrieval`` if None)

        Raises:
            ValueError: If the query is blank or top_k is below 1
            RuntimeError: If Ollama or Chroma fail
        """
        if not query.strip():
            raise ValueError("Query cannot be empty")
        if top_k is None:
            top_k = settings.top_k_retrieval
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")

        started = time.time()
        try:
            vector = self.embedding_generator.generate_query_embedding_sync(query)
            hits = self.vector_store.search_similar(vector, top_k)
        except Exception as e:
            logger.error(f"Retrieval failed for '{query[:50]}': {e}")
            raise RuntimeError(f"Retrieval failed: {e}") from e
        elapsed = time.time() - started

        logger.info(f"{len(hits)} chunks retrieved in {elapsed:.2f}s")
        for hit in hits:
            logger.debug(
                f"#{hit.rank + 1} {hit.score:.3f} "
                f"{hit.chunk.content[:80].replace(chr(10), ' ')}"
            )

        return RetrievalResult(
            query=query,
            relevant_chunks=[hit.chunk for hit in hits],
            scores=[hit.score for hit in hits],
            retrieval_time=elapsed,
            total_retrieved=len(hits),
        )

    def get_context_text(
        self, chunks: list[TextChunk], max_length: int | None = None
    ) -> str:
        """
        Join chunks in reading order, stopping before ``max_length``.

        The first chunk is always kept, even when it alone is too long.
        """
        limit = max_length or settings.max_context_length
        ordered = sorted(chunks, key=lambda c: (c.source_file, c.start_pos))

        parts: list[str] = []
        length = 0
        for text in (chunk.content.strip() for chunk in ordered):
            if not text:
                continue
            extra = len(text) + (len(CONTEXT_SEPARATOR) if parts else 0)
            if parts and length + extra > limit:
                logger.debug(f"Context capped at {length} of {limit} characters")
                break
            parts.append(text)
            length += extra

        return CONTEXT_SEPARATOR.join(parts)

    def add_documents_to_store(
        self, chunks: list[TextChunk], embeddings: list[list[float]]
    ) -> list[str]:
        """Store chunks with their embeddings; returns the new record ids."""
        if not chunks:
            logger.warning("Nothing to add to the vector store")
            return []
        return self.vector_store.add_chunks(chunks, embeddings)

    def clear_vector_store(self) -> None:
        self.vector_store.clear_all()

    def get_source_files(self) -> list[str]:
        return self.vector_store.get_all_source_files()

    def get_retrieval_stats(self) -> dict[str, Any]:
        """Collection statistics plus embedding model status."""
        model_info = self.embedding_generator.get_model_info()
        return {
            "vector_store": asdict(self.vector_store.get_statistics()),
            "embedding_model": {
                key: model_info[key] for key in ("model_name", "is_available", "status")
            },
            "retrieval_settings": {
                "top_k_retrieval": settings.top_k_retrieval,
                "max_context_length": settings.max_context_length,
            },
        }

    def check_system_ready(self) -> tuple[bool, list[str]]:
        """
        Check Chroma, the collection and the embedding model.

        Returns:
            ``(is_ready, issues)``; ``issues`` is empty when ready
        """
        issues = []

        if not self.vector_store.health_check():
            issues.append(f"Chroma server not reachable at {self.vector_store.server_url}")
        elif self.vector_store.count() == 0:
            issues.append(
                f"Collection '{self.vector_store.collection_name}' is empty"
                " - run ingest first"
            )

        model_ok, status = self.embedding_generator.check_ollama_connection()
        if not model_ok:
            issues.append(f"Embedding model not available: {status}")

        return not issues, issues
