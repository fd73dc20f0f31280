"""
Chroma-backed chunk storage.

Each chunk becomes one record in a Chroma collection: the chunk text is the
record document, its position goes into metadata, and the vector comes from
the embedding model. Chroma does the indexing and nearest-neighbour search.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

import chromadb

from txt_rag.config.settings import settings
from txt_rag.document_processor.chunker import TextChunk

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """One nearest-neighbour hit; ``rank`` 0 is the closest."""

    chunk: TextChunk
    score: float
    rank: int
    record_id: str


@dataclass
class VectorStoreStats:
    collection_name: str
    document_count: int
    chunk_count: int
    embedding_dimension: int
    server_url: str


def distance_to_score(distance: float) -> float:
    """Map Chroma's L2 distance onto (0, 1], higher meaning closer."""
    return 1.0 / (1.0 + distance)


class VectorStore:
    """
    A single Chroma collection holding the indexed chunks.

    Records get random ids, so adding the same text twice stores it twice.
    """

    def __init__(self, collection_name: str | None = None, client: Any | None = None):
        """
        Args:
            collection_name: Collection to use (``settings.collection_name`` if None)
            client: Chroma client; an ``HttpClient`` for ``settings.chroma_url``
                is created on first use when omitted
        """
        self.collection_name = collection_name or settings.collection_name
        self.server_url = settings.chroma_url
        self._client = client
        self._collection = None

    @property
    def client(self) -> Any:
        # HttpClient contacts the server as soon as it is built
        if self._client is None:
            self._client = chromadb.HttpClient(
                host=settings.chroma_host,
                port=settings.chroma_port,
                ssl=settings.chroma_ssl,
            )
        return self._client

    @property
    def collection(self) -> Any:
        if self._collection is None:
            self._collection = self.client.get_or_create_collection(self.collection_name)
            logger.debug(f"Using collection '{self.collection_name}' at {self.server_url}")
        return self._collection

    def add_chunks(
        self, chunks: list[TextChunk], embeddings: list[list[float]]
    ) -> list[str]:
        """
        Store chunks with their vectors.

        Returns:
            The generated record ids, in chunk order

        Raises:
            ValueError: If ``chunks`` and ``embeddings`` differ in length
        """
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"Chunks ({len(chunks)}) and embeddings ({len(embeddings)}) length mismatch"
            )
        if not chunks:
            logger.warning("add_chunks called with nothing to store")
            return []

        ids = [uuid4().hex for _ in chunks]
        self.collection.add(
            ids=ids,
            embeddings=embeddings,
            documents=[chunk.content for chunk in chunks],
            metadatas=[chunk.to_record_metadata() for chunk in chunks],
        )
        logger.info(f"Stored {len(ids)} chunks in '{self.collection_name}'")
        return ids

    def search_similar(
        self, query_embedding: list[float], top_k: int = 4
    ) -> list[SearchResult]:
        """Return up to ``top_k`` chunks nearest to ``query_embedding``."""
        total = self.count()
        if total == 0:
            logger.warning(f"Collection '{self.collection_name}' is empty")
            return []

        response = self.collection.query(
            query_embeddings=[query_embedding],
            n_results=min(top_k, total),
            include=["documents", "metadatas", "distances"],
        )
        # One query was sent, so every field holds a single inner list
        rows = zip(
            response["ids"][0],
            (response.get("documents") or [[]])[0],
            (response.get("metadatas") or [[]])[0],
            (response.get("distances") or [[]])[0],
        )

        return [
            SearchResult(
                chunk=TextChunk.from_record(document or "", metadata or {}),
                score=distance_to_score(distance),
                rank=rank,
                record_id=record_id,
            )
            for rank, (record_id, document, metadata, distance) in enumerate(rows)
        ]

    def count(self) -> int:
        return self.collection.count()

    def get_chunks(self, limit: int | None = None) -> list[TextChunk]:
        """All stored chunks ordered by source file and position."""
        records = self.collection.get(include=["documents", "metadatas"])
        chunks = sorted(
            (
                TextChunk.from_record(document or "", metadata or {})
                for document, metadata in zip(
                    records.get("documents") or [], records.get("metadatas") or []
                )
            ),
            key=lambda chunk: (chunk.source_file, chunk.start_pos),
        )
        return chunks if limit is None else chunks[:limit]

    def get_all_source_files(self) -> list[str]:
        records = self.collection.get(include=["metadatas"])
        sources = {
            (metadata or {}).get("source", "unknown")
            for metadata in records.get("metadatas") or []
        }
        return sorted(sources)

    def clear_all(self) -> None:
        """Drop the collection and create it again empty."""
        self.client.delete_collection(self.collection_name)
        self._collection = self.client.get_or_create_collection(self.collection_name)
        logger.info(f"Collection '{self.collection_name}' cleared")

    def get_statistics(self) -> VectorStoreStats:
        chunk_count = self.count()
        dimension = 0
        if chunk_count:
            sample = self.collection.get(limit=1, include=["embeddings"])["embeddings"]
            if sample is not None and len(sample) > 0:
                dimension = len(sample[0])

        return VectorStoreStats(
            collection_name=self.collection_name,
            document_count=len(self.get_all_source_files()),
            chunk_count=chunk_count,
            embedding_dimension=dimension,
            server_url=self.server_url,
        )

    def health_check(self) -> bool:
        """``True`` when a Chroma client can be built and answers a heartbeat."""
        try:
            self.client.heartbeat()
        except Exception:
            logger.warning(f"No heartbeat from Chroma at {self.server_url}", exc_info=True)
            return False
        return True
