"""
Basic integration tests for txt-to-rag functionality.

These tests run the bundled sample text through loading, chunking and
storage. Ollama is replaced by a deterministic fake embedder.
"""

from pathlib import Path
from uuid import uuid4

import chromadb
import pytest

from txt_rag.config.settings import Settings
from txt_rag.document_processor import TextChunker, TextFileLoader
from txt_rag.rag.retriever import DocumentRetriever
from txt_rag.vector_store.embeddings import EmbeddingResult
from txt_rag.vector_store.store import VectorStore

pytestmark = pytest.mark.integration

SAMPLE_FILE = Path(__file__).parent.parent.parent / "data" / "document.txt"


class FakeEmbedder:
    """Bag-of-letters embeddings so similar words land close together."""

    model_name = "fake-embedder"

    @staticmethod
    def _embed(text: str) -> list[float]:
        counts = [0.0] * 26
        for char in text.lower():
            if "a" <= char <= "z":
                counts[ord(char) - ord("a")] += 1.0
        total = sum(counts) or 1.0
        return [value / total for value in counts]

    def generate_embeddings_sync(self, texts: list[str]) -> EmbeddingResult:
        return EmbeddingResult(
            embeddings=[self._embed(text) for text in texts],
            texts=texts,
            model_used=self.model_name,
            generation_time=0.0,
            total_tokens=sum(len(text.split()) for text in texts),
        )

    def generate_query_embedding_sync(self, query: str) -> list[float]:
        return self._embed(query)

    def check_ollama_connection(self) -> tuple[bool, str]:
        return True, "fake"

    def get_model_info(self) -> dict:
        return {"model_name": self.model_name, "is_available": True, "status": "fake"}


@pytest.fixture
def settings():
    """Create a Settings instance for testing."""
    return Settings.load()


@pytest.fixture
def sample_document():
    return TextFileLoader().load(SAMPLE_FILE)


@pytest.fixture
def retriever():
    store = VectorStore(
        collection_name=f"test_{uuid4().hex[:8]}", client=chromadb.EphemeralClient()
    )
    assert store.count() == 0
    yield DocumentRetriever(vector_store=store, embedding_generator=FakeEmbedder())
    store.client.delete_collection(store.collection_name)


def test_default_settings_are_valid(settings):
    """Test the default configuration passes validation."""
    is_valid, errors = settings.is_valid()

    assert is_valid, errors


def test_sample_file_loads(sample_document):
    """Test the bundled sample text loads."""
    assert sample_document["plain_text"].strip()
    assert sample_document["metadata"]["line_count"] > 1


def test_sample_file_chunks_cover_text(sample_document):
    """Test every chunk is a slice of the source at its recorded position."""
    chunks = TextChunker(chunk_size=300, overlap=50).chunk_document(sample_document)
    text = sample_document["plain_text"]

    assert len(chunks) > 1
    for chunk in chunks:
        assert len(chunk.content) <= 300
        assert text[chunk.start_pos : chunk.end_pos] == chunk.content


def test_index_and_retrieve_sample(retriever, sample_document):
    """Test chunks stored from the sample file can be retrieved again."""
    chunks = TextChunker(chunk_size=300, overlap=50).chunk_document(sample_document)
    embeddings = retriever.embedding_generator.generate_embeddings_sync(
        [chunk.content for chunk in chunks]
    ).embeddings

    ids = retriever.add_documents_to_store(chunks, embeddings)
    result = retriever.retrieve_relevant_documents(chunks[0].content, top_k=2)

    assert len(ids) == len(chunks)
    assert result.total_retrieved == 2
    assert result.relevant_chunks[0].content == chunks[0].content
    assert result.scores[0] == pytest.approx(1.0)

    is_ready, issues = retriever.check_system_ready()
    assert is_ready, issues
