"""
Generation half of the RAG pipeline.

The retrieved context and the question are sent to an Ollama chat model
through ``langchain-ollama``.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama import ChatOllama

from txt_rag.config.settings import settings
from txt_rag.vector_store.embeddings import check_ollama_model

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You answer questions about a single text document. "
    "Use only the excerpts you are given. "
    "If they do not contain the answer, say that the document does not cover it. "
    "Keep answers short and do not invent facts."
)

RAG_PROMPT_TEMPLATE = """Use the excerpts below to answer the question.

Context:
{context}

Question: {question}

Answer:"""

NO_CONTEXT_PROMPT_TEMPLATE = """No relevant context was found in the document for this question.

Question: {question}

Reply that the document does not provide enough information to answer it."""


@dataclass
class GenerationResult:
    """Model answer and what it was generated from."""

    query: str
    answer: str
    context_used: str
    model_used: str
    generation_time: float
    token_count: int


class AnswerGenerator:
    """Wraps a ``ChatOllama`` client configured from settings."""

    def __init__(
        self,
        model_name: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ):
        """
        Args:
            model_name: Ollama chat model (``settings.chat_model`` if None)
            temperature: Sampling temperature, 0.0-2.0
            top_p: Nucleus sampling cutoff, 0.0-1.0
        """
        self.model_name = model_name or settings.chat_model
        self.base_url = settings.ollama_base_url
        self.temperature = settings.temperature if temperature is None else temperature
        self.top_p = settings.top_p if top_p is None else top_p
        self.max_tokens = settings.max_tokens_response

        self.llm = ChatOllama(
            model=self.model_name,
            base_url=self.base_url,
            temperature=self.temperature,
            num_predict=self.max_tokens,
            top_p=self.top_p,
        )
        logger.debug(f"Chat model {self.model_name} at {self.base_url}")

    def generate_answer(self, query: str, context: str) -> GenerationResult:
        """
        Ask the chat model to answer ``query`` from ``context``.

        Raises:
            ValueError: If the query is blank
            RuntimeError: If the Ollama call fails
        """
        if not query.strip():
            raise ValueError("Query cannot be empty")

        messages = [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=self.build_prompt(query, context)),
        ]

        started = time.time()
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            logger.error(f"{self.model_name} failed to answer: {e}")
            raise RuntimeError(f"Generation failed: {e}") from e
        elapsed = time.time() - started

        answer = str(response.content).strip()
        # Word count stands in for tokens
        token_count = len(answer.split())
        logger.info(f"{self.model_name} answered in {elapsed:.2f}s")

        return GenerationResult(
            query=query,
            answer=answer,
            context_used=context,
            model_used=self.model_name,
            generation_time=elapsed,
            token_count=token_count,
        )

    @staticmethod
    def build_prompt(query: str, context: str) -> str:
        """Fill the prompt template, or the fallback one when context is blank."""
        if context.strip():
            return RAG_PROMPT_TEMPLATE.format(context=context, question=query)
        return NO_CONTEXT_PROMPT_TEMPLATE.format(question=query)

    def check_model_availability(self) -> tuple[bool, str]:
        return check_ollama_model(self.base_url, self.model_name)

    def get_model_info(self) -> dict[str, Any]:
        is_available, status = self.check_model_availability()
        return {
            "model_name": self.model_name,
            "base_url": self.base_url,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "is_available": is_available,
            "status": status,
        }
