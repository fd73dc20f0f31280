"""
Configuration for txt-to-rag.

Defaults live on the ``Settings`` dataclass. Environment variables, including
those from a ``.env`` file found by python-dotenv, override them.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

# Environment variable -> (field, converter)
ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "OLLAMA_BASE_URL": ("ollama_base_url", str),
    "EMBEDDING_MODEL": ("embedding_model", str),
    "CHAT_MODEL": ("chat_model", str),
    "CHROMA_URL": ("chroma_url", str),
    "COLLECTION_NAME": ("collection_name", str),
    "CHUNK_SIZE": ("chunk_size", int),
    "CHUNK_OVERLAP": ("chunk_overlap", int),
    "TOP_K_RETRIEVAL": ("top_k_retrieval", int),
    "SOURCE_FILE": ("source_file", str),
    "DEFAULT_QUESTION": ("default_question", str),
    "LOG_LEVEL": ("log_level", str),
}

DEFAULT_CHROMA_PORT = 8000


@dataclass
class Settings:
    """All tunable parameters of the pipeline."""

    # Ollama
    ollama_base_url: str = "http://localhost:11434"
    ollama_timeout: int = 120
    embedding_model: str = "all-minilm"
    chat_model: str = "llama3.2:3b"

    # Chroma
    chroma_url: str = "http://localhost:8000"
    collection_name: str = "my_documents"

    # Chunking (characters)
    chunk_size: int = 1000
    chunk_overlap: int = 200
    embedding_batch_size: int = 64

    # Retrieval and generation
    top_k_retrieval: int = 4
    max_context_length: int = 6000
    temperature: float = 0.1
    top_p: float = 0.9
    max_tokens_response: int = 512

    # Inputs
    source_file: str = "data/document.txt"
    default_question: str = "What is this document about?"
    project_root: Path | None = None

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.project_root is None:
            self.project_root = Path.cwd()
        self._apply_env_overrides()

    def _apply_env_overrides(self) -> None:
        for variable, (field_name, convert) in ENV_OVERRIDES.items():
            value = os.getenv(variable)
            if value:
                setattr(self, field_name, convert(value))

    @classmethod
    def load(cls) -> "Settings":
        """Read ``.env`` into the environment, then build settings from it."""
        load_dotenv()
        return cls()

    @property
    def source_path(self) -> Path:
        """The file ``ingest`` indexes; relative paths hang off ``project_root``."""
        path = Path(self.source_file)
        return path if path.is_absolute() else self.project_root / path

    @property
    def chroma_host(self) -> str:
        return urlparse(self.chroma_url).hostname or "localhost"

    @property
    def chroma_port(self) -> int:
        return urlparse(self.chroma_url).port or DEFAULT_CHROMA_PORT

    @property
    def chroma_ssl(self) -> bool:
        return urlparse(self.chroma_url).scheme == "https"

    def is_valid(self) -> tuple[bool, list[str]]:
        """
        Check the settings for values the pipeline cannot work with.

        Returns:
            ``(is_valid, errors)``
        """
        checks = [
            (self.chunk_size > 0, "chunk_size must be positive"),
            (
                self.chunk_overlap < self.chunk_size,
                "chunk_overlap must be less than chunk_size",
            ),
            (self.embedding_batch_size > 0, "embedding_batch_size must be positive"),
            (self.top_k_retrieval > 0, "top_k_retrieval must be positive"),
            (0 <= self.temperature <= 2, "temperature must be between 0 and 2"),
            (0 <= self.top_p <= 1, "top_p must be between 0 and 1"),
            (bool(self.collection_name), "collection_name cannot be empty"),
            (
                urlparse(self.chroma_url).scheme in ("http", "https"),
                "chroma_url must be an http(s) URL",
            ),
        ]
        errors = [message for ok, message in checks if not ok]
        return not errors, errors


class _LazySettings:
    """Proxy that builds ``Settings`` on first use, after ``.env`` is in place."""

    def __init__(self) -> None:
        self._settings: Settings | None = None

    def _ensure_loaded(self) -> Settings:
        if self._settings is None:
            self._settings = Settings.load()
        return self._settings

    def __getattr__(self, name: str) -> Any:
        return getattr(self._ensure_loaded(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "_settings":
            super().__setattr__(name, value)
        else:
            setattr(self._ensure_loaded(), name, value)


settings = _LazySettings()
