"""
Ollama embeddings.

Chunks and queries are turned into vectors by an Ollama embedding model
(``all-minilm`` by default) through ``langchain-ollama``. The helpers at the
top of the module ask the Ollama server which models have been pulled.
"""

import asyncio
import logging
import time
from collections.abc import Coroutine, Iterator
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from langchain_ollama import OllamaEmbeddings

from txt_rag.config.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class EmbeddingResult:
    """Vectors for a batch of texts, in input order."""

    embeddings: list[list[float]]
    texts: list[str]
    model_used: str
    generation_time: float
    total_tokens: int

    @property
    def dimension(self) -> int:
        return len(self.embeddings[0]) if self.embeddings else 0


def model_is_listed(model_name: str, available_models: list[str]) -> bool:
    """True if ``model_name`` is pulled; an untagged name also matches ``:latest``."""
    if model_name in available_models:
        return True
    return ":" not in model_name and f"{model_name}:latest" in available_models


def list_ollama_models(base_url: str, timeout: float = 10.0) -> list[str]:
    """Names of the models an Ollama server reports on ``/api/tags``."""
    with httpx.Client(timeout=timeout) as client:
        response = client.get(f"{base_url}/api/tags")
        response.raise_for_status()
        payload = response.json()
    return [entry["name"] for entry in payload.get("models", [])]


def check_ollama_model(base_url: str, model_name: str) -> tuple[bool, str]:
    """
    Check that Ollama answers at ``base_url`` and has ``model_name`` pulled.

    Returns:
        ``(available, message)``; the message explains what is missing
    """
    try:
        pulled = list_ollama_models(base_url)
    except httpx.ConnectError:
        return False, f"Cannot connect to Ollama at {base_url}"
    except httpx.HTTPStatusError as e:
        return False, f"Ollama answered HTTP {e.response.status_code}"
    except httpx.HTTPError as e:
        return False, f"Ollama request failed: {e}"

    if model_is_listed(model_name, pulled):
        return True, f"{model_name} available at {base_url}"
    return False, f"Model {model_name} not found. Available: {', '.join(pulled) or 'none'}"


class EmbeddingGenerator:
    """
    Embeds texts with an Ollama model.

    Documents are sent in batches of ``batch_size``. The async methods are
    the real implementation; the ``_sync`` variants run them to completion
    on one event loop the generator keeps for its lifetime, so repeated
    calls can reuse the Ollama client's pooled connections.
    """

    def __init__(self, model_name: str | None = None, batch_size: int | None = None):
        self.model_name = model_name or settings.embedding_model
        self.base_url = settings.ollama_base_url
        self.timeout = settings.ollama_timeout
        self.batch_size = batch_size or settings.embedding_batch_size

        self.embeddings = OllamaEmbeddings(model=self.model_name, base_url=self.base_url)
        # The async httpx client keeps connections bound to the loop that opened them
        self._loop: asyncio.AbstractEventLoop | None = None
        logger.debug(f"Embedding model {self.model_name} at {self.base_url}")

    def _batches(self, texts: list[str]) -> Iterator[list[str]]:
        for offset in range(0, len(texts), self.batch_size):
            yield texts[offset : offset + self.batch_size]

    async def generate_embeddings(self, texts: list[str]) -> EmbeddingResult:
        """
        Embed document texts.

        Args:
            texts: Texts to embed; an empty list yields an empty result

        Returns:
            EmbeddingResult with one vector per text

        Raises:
            RuntimeError: If any Ollama request fails
        """
        if not texts:
            return EmbeddingResult([], [], self.model_name, 0.0, 0)

        started = time.time()
        vectors: list[list[float]] = []
        try:
            for batch in self._batches(texts):
                vectors.extend(await self.embeddings.aembed_documents(batch))
        except Exception as e:
            logger.error(f"Embedding {len(texts)} texts with {self.model_name} failed: {e}")
            raise RuntimeError(f"Embedding generation failed: {e}") from e
        elapsed = time.time() - started

        logger.info(f"Embedded {len(vectors)} texts in {elapsed:.2f}s")
        return EmbeddingResult(
            embeddings=vectors,
            texts=texts,
            model_used=self.model_name,
            generation_time=elapsed,
            # Word count stands in for tokens
            total_tokens=sum(len(text.split()) for text in texts),
        )

    def _run(self, coroutine: Coroutine[Any, Any, T]) -> T:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(coroutine)

    def generate_embeddings_sync(self, texts: list[str]) -> EmbeddingResult:
        return self._run(self.generate_embeddings(texts))

    async def generate_query_embedding(self, query: str) -> list[float]:
        """
        Embed a single question.

        Raises:
            ValueError: If the query is blank
            RuntimeError: If the Ollama request fails
        """
        if not query.strip():
            raise ValueError("Query cannot be empty")
        try:
            return await self.embeddings.aembed_query(query)
        except Exception as e:
            logger.error(f"Embedding query with {self.model_name} failed: {e}")
            raise RuntimeError(f"Query embedding generation failed: {e}") from e

    def generate_query_embedding_sync(self, query: str) -> list[float]:
        return self._run(self.generate_query_embedding(query))

    def check_ollama_connection(self) -> tuple[bool, str]:
        return check_ollama_model(self.base_url, self.model_name)

    def get_model_info(self) -> dict[str, Any]:
        is_available, status = self.check_ollama_connection()
        return {
            "model_name": self.model_name,
            "base_url": self.base_url,
            "timeout": self.timeout,
            "batch_size": self.batch_size,
            "is_available": is_available,
            "status": status,
        }
