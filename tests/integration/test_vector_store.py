"""Tests for vector store functionality against an in-memory Chroma client."""

from unittest.mock import Mock
from uuid import uuid4

import chromadb
import pytest

from txt_rag.config.settings import settings
from txt_rag.document_processor.chunker import TextChunk
from txt_rag.vector_store.store import SearchResult, VectorStore, VectorStoreStats

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def chroma_client():
    """In-process Chroma client shared by the module."""
    return chromadb.EphemeralClient()


@pytest.fixture
def vector_store(chroma_client):
    """Create a VectorStore on a fresh collection."""
    store = VectorStore(collection_name=f"test_{uuid4().hex[:8]}", client=chroma_client)
    assert store.count() == 0
    yield store
    chroma_client.delete_collection(store.collection_name)


@pytest.fixture
def sample_chunks():
    """Create sample TextChunk instances for testing."""
    return [
        TextChunk(
            content="First chunk content",
            start_pos=0,
            end_pos=19,
            chunk_index=0,
            source_file="data/document.txt",
        ),
        TextChunk(
            content="Second chunk content",
            start_pos=15,
            end_pos=35,
            chunk_index=1,
            source_file="data/document.txt",
        ),
        TextChunk(
            content="Chunk from another file",
            start_pos=0,
            end_pos=23,
            chunk_index=0,
            source_file="data/notes.txt",
        ),
    ]


@pytest.fixture
def sample_embeddings():
    """Create sample embeddings for testing."""
    return [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]


# VectorStoreStats tests


def test_vector_store_stats_creation():
    """Test VectorStoreStats dataclass creation."""
    stats = VectorStoreStats(
        collection_name="my_documents",
        document_count=1,
        chunk_count=10,
        embedding_dimension=384,
        server_url="http://localhost:8000",
    )

    assert stats.chunk_count == 10
    assert stats.embedding_dimension == 384


# VectorStore tests


def test_new_collection_is_empty(vector_store):
    """Test a fresh collection has no records."""
    assert vector_store.count() == 0
    assert vector_store.search_similar([1.0, 0.0, 0.0]) == []
    assert vector_store.get_all_source_files() == []


def test_add_chunks_assigns_unique_ids(vector_store, sample_chunks, sample_embeddings):
    """Test every added chunk gets its own identifier."""
    ids = vector_store.add_chunks(sample_chunks, sample_embeddings)

    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert vector_store.count() == 3


def test_add_chunks_appends(vector_store, sample_chunks, sample_embeddings):
    """Test adding the same chunks twice keeps both copies."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    assert vector_store.count() == 6


def test_add_chunks_with_nothing(vector_store):
    """Test empty input is a no-op."""
    assert vector_store.add_chunks([], []) == []
    assert vector_store.count() == 0


def test_add_chunks_length_mismatch(vector_store, sample_chunks):
    """Test chunks and embeddings must pair up."""
    with pytest.raises(ValueError, match="length mismatch"):
        vector_store.add_chunks(sample_chunks, [[1.0, 0.0, 0.0]])


def test_search_similar_ranks_nearest_first(vector_store, sample_chunks, sample_embeddings):
    """Test the closest vector is returned first with the best score."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    results = vector_store.search_similar([0.1, 0.9, 0.0], top_k=2)

    assert len(results) == 2
    assert all(isinstance(result, SearchResult) for result in results)
    assert results[0].chunk.content == "Second chunk content"
    assert results[0].chunk.start_pos == 15
    assert results[0].chunk.source_file == "data/document.txt"
    assert results[0].score > results[1].score
    assert [result.rank for result in results] == [0, 1]


def test_search_similar_exact_match_scores_one(vector_store, sample_chunks, sample_embeddings):
    """Test an identical vector has distance zero."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    results = vector_store.search_similar([1.0, 0.0, 0.0], top_k=1)

    assert results[0].score == pytest.approx(1.0)


def test_search_similar_caps_top_k(vector_store, sample_chunks, sample_embeddings):
    """Test asking for more results than records returns them all."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    assert len(vector_store.search_similar([1.0, 0.0, 0.0], top_k=10)) == 3


def test_get_chunks_in_document_order(vector_store, sample_chunks, sample_embeddings):
    """Test stored chunks come back sorted by source and position."""
    vector_store.add_chunks(list(reversed(sample_chunks)), list(reversed(sample_embeddings)))

    chunks = vector_store.get_chunks()

    assert [(c.source_file, c.start_pos) for c in chunks] == [
        ("data/document.txt", 0),
        ("data/document.txt", 15),
        ("data/notes.txt", 0),
    ]
    assert len(vector_store.get_chunks(limit=1)) == 1


def test_get_all_source_files(vector_store, sample_chunks, sample_embeddings):
    """Test unique source files are listed."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    assert vector_store.get_all_source_files() == ["data/document.txt", "data/notes.txt"]


def test_clear_all(vector_store, sample_chunks, sample_embeddings):
    """Test clearing removes every record but keeps the collection usable."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    vector_store.clear_all()

    assert vector_store.count() == 0
    vector_store.add_chunks(sample_chunks[:1], sample_embeddings[:1])
    assert vector_store.count() == 1


def test_get_statistics(vector_store, sample_chunks, sample_embeddings):
    """Test statistics reflect stored records."""
    vector_store.add_chunks(sample_chunks, sample_embeddings)

    stats = vector_store.get_statistics()

    assert stats.collection_name == vector_store.collection_name
    assert stats.chunk_count == 3
    assert stats.document_count == 2
    assert stats.embedding_dimension == 3


def test_health_check(vector_store):
    """Test the in-process client answers heartbeats."""
    assert vector_store.health_check() is True


def test_health_check_server_down():
    """Test an unreachable server is reported as unhealthy."""
    client = Mock()
    client.heartbeat.side_effect = ConnectionError("connection refused")

    store = VectorStore(collection_name="my_documents", client=client)

    assert store.health_check() is False


def test_store_is_built_without_contacting_chroma():
    """Test the client and collection wait until first use."""
    client = Mock()

    store = VectorStore(collection_name="my_documents", client=client)

    client.get_or_create_collection.assert_not_called()
    store.count()
    client.get_or_create_collection.assert_called_once_with("my_documents")


def test_health_check_with_nothing_listening(monkeypatch):
    """Test a closed Chroma port is reported instead of raised."""
    monkeypatch.setattr(settings, "chroma_url", "http://127.0.0.1:1")

    store = VectorStore(collection_name="my_documents")

    assert store.health_check() is False
