"""
End-to-end RAG operations.

``RAGPipeline.ingest_file`` indexes the source text (load, chunk, embed,
store) and ``RAGPipeline.ask`` answers a question from the indexed chunks.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from txt_rag.config.settings import settings
from txt_rag.document_processor import TextChunker, TextFileLoader
from txt_rag.rag.generator import AnswerGenerator
from txt_rag.rag.retriever import DocumentRetriever, RetrievalResult

logger = logging.getLogger(__name__)


@dataclass
class RAGResult:
    """Answer to one question with timing and provenance."""

    question: str
    answer: str
    source_documents: list[str]
    relevance_scores: list[float]
    retrieval_time: float
    generation_time: float
    total_time: float
    context_length: int
    chunks_retrieved: int
    model_used: str


class RAGPipeline:
    """Ties the loader, chunker, retriever and generator together."""

    def __init__(
        self,
        retriever: DocumentRetriever | None = None,
        generator: AnswerGenerator | None = None,
    ):
        self.retriever = retriever or DocumentRetriever()
        self.generator = generator or AnswerGenerator()
        logger.debug("RAGPipeline ready")

    def ingest_file(
        self, file_path: str | Path | None = None, reset: bool = False
    ) -> dict[str, Any]:
        """
        Index a text file into the vector store.

        Chunks are appended to whatever the collection already holds unless
        ``reset`` is set, in which case the collection is emptied first.

        Args:
            file_path: File to index (``settings.source_path`` if None)
            reset: Empty the collection before adding the new chunks

        Returns:
            Dictionary with ``success`` and, on success, ``chunks_created``,
            ``chunking_stats``, ``embedding_time``, ``total_time`` and
            ``system_stats``

        Raises:
            FileNotFoundError: If the file does not exist
            RuntimeError: If embedding fails
        """
        path = Path(file_path) if file_path else settings.source_path
        started = time.time()

        chunker = TextChunker()
        chunks = chunker.chunk_document(TextFileLoader().load(path))
        if not chunks:
            logger.warning(f"{path} produced no chunks")
            return {
                "success": False,
                "source_file": str(path),
                "message": "No chunks created from document",
            }

        embedded = self.retriever.embedding_generator.generate_embeddings_sync(
            [chunk.content for chunk in chunks]
        )

        if reset:
            logger.info("Emptying collection before indexing")
            self.retriever.clear_vector_store()
        self.retriever.add_documents_to_store(chunks, embedded.embeddings)

        logger.info(f"Indexed {len(chunks)} chunks from {path.name}")
        return {
            "success": True,
            "source_file": str(path),
            "chunks_created": len(chunks),
            "chunking_stats": chunker.get_chunking_stats(chunks),
            "embedding_time": embedded.generation_time,
            "total_time": time.time() - started,
            "system_stats": {
                "vector_store": {"chunk_count": self.retriever.vector_store.count()}
            },
        }

    def ask(self, question: str | None = None, top_k: int | None = None) -> RAGResult:
        """
        Answer a question from the indexed chunks.

        A missing or blank question is replaced by ``settings.default_question``.
        """
        question, retrieval, context, generation, elapsed = self._answer(
            question, top_k
        )
        return RAGResult(
            question=question,
            answer=generation.answer,
            source_documents=sorted(
                {chunk.source_file for chunk in retrieval.relevant_chunks}
            ),
            relevance_scores=retrieval.scores,
            retrieval_time=retrieval.retrieval_time,
            generation_time=generation.generation_time,
            total_time=elapsed,
            context_length=len(context),
            chunks_retrieved=len(retrieval.relevant_chunks),
            model_used=generation.model_used,
        )

    def ask_with_sources(
        self, question: str | None = None, top_k: int | None = None
    ) -> dict[str, Any]:
        """Like :meth:`ask`, but also describe every chunk that was used."""
        question, retrieval, context, generation, elapsed = self._answer(
            question, top_k
        )
        return {
            "answer": generation.answer,
            "question": question,
            "chunks_used": self._describe_chunks(retrieval),
            "performance": {
                "total_time": elapsed,
                "retrieval_time": retrieval.retrieval_time,
                "generation_time": generation.generation_time,
                "chunks_retrieved": len(retrieval.relevant_chunks),
                "context_length": len(context),
            },
            "model_info": {
                "chat_model": generation.model_used,
                "embedding_model": self.retriever.embedding_generator.model_name,
            },
        }

    def clear_knowledge_base(self) -> None:
        logger.info("Clearing knowledge base")
        self.retriever.clear_vector_store()

    def get_system_stats(self) -> dict[str, Any]:
        """Store, model and configuration details for the ``stats`` command."""
        retrieval_stats = self.retriever.get_retrieval_stats()
        return {
            "vector_store": retrieval_stats["vector_store"],
            "models": {
                "embedding": retrieval_stats["embedding_model"],
                "generation": self.generator.get_model_info(),
            },
            "settings": {
                "source_file": str(settings.source_path),
                "chunk_size": settings.chunk_size,
                "chunk_overlap": settings.chunk_overlap,
                "top_k_retrieval": settings.top_k_retrieval,
                "temperature": settings.temperature,
                "max_tokens": settings.max_tokens_response,
            },
        }

    def check_readiness(self) -> dict[str, Any]:
        """
        Check every external dependency.

        Returns:
            Dictionary with ``is_ready``, a flat ``issues`` list and a
            per-component breakdown
        """
        retriever_ready, retriever_issues = self.retriever.check_system_ready()
        model_ok, model_status = self.generator.check_model_availability()

        issues = list(retriever_issues)
        if not model_ok:
            issues.append(f"Generator model issue: {model_status}")

        return {
            "is_ready": retriever_ready and model_ok,
            "issues": issues,
            "components": {
                "retriever": {"ready": retriever_ready, "issues": retriever_issues},
                "generator": {"available": model_ok, "status": model_status},
            },
        }

    def _answer(self, question: str | None, top_k: int | None):
        if not question or not question.strip():
            question = settings.default_question
        logger.info(f"Question: {question[:80]}")

        started = time.time()
        retrieval = self.retriever.retrieve_relevant_documents(
            query=question, top_k=top_k
        )
        context = self.retriever.get_context_text(retrieval.relevant_chunks)
        generation = self.generator.generate_answer(question, context)
        elapsed = time.time() - started

        logger.info(f"Answered in {elapsed:.2f}s")
        return question, retrieval, context, generation, elapsed

    @staticmethod
    def _describe_chunks(retrieval: RetrievalResult) -> list[dict[str, Any]]:
        described = []
        for rank, (chunk, score) in enumerate(
            zip(retrieval.relevant_chunks, retrieval.scores), start=1
        ):
            preview = chunk.content[:200] + ("..." if len(chunk.content) > 200 else "")
            described.append(
                {
                    "rank": rank,
                    "source_file": chunk.source_file,
                    "chunk_index": chunk.chunk_index,
                    "content_preview": preview,
                    "relevance_score": score,
                    "position": (chunk.start_pos, chunk.end_pos),
                }
            )
        return described
