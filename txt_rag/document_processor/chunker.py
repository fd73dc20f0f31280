"""
Text chunking for breaking documents into overlapping pieces.

Splitting is delegated to LangChain's ``RecursiveCharacterTextSplitter``;
this module only carries positions and metadata along with each chunk.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

from txt_rag.config.settings import settings

# Set up logging
logger = logging.getLogger(__name__)


@dataclass
class TextChunk:
    """A slice of the source text and where it came from."""

    content: str
    start_pos: int
    end_pos: int
    chunk_index: int
    source_file: str
    file_type: str = "text"
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_record_metadata(self) -> dict[str, Any]:
        """Flatten the chunk into scalar metadata accepted by Chroma."""
        return {
            "source": self.source_file,
            "chunk_index": self.chunk_index,
            "start_index": self.start_pos,
            "end_index": self.end_pos,
            "file_type": self.file_type,
        }

    @classmethod
    def from_record(cls, content: str, metadata: dict[str, Any]) -> "TextChunk":
        """Rebuild a chunk from a stored vector database record."""
        start_pos = int(metadata.get("start_index", 0))
        return cls(
            content=content,
            start_pos=start_pos,
            end_pos=int(metadata.get("end_index", start_pos + len(content))),
            chunk_index=int(metadata.get("chunk_index", 0)),
            source_file=metadata.get("source", "unknown"),
            file_type=metadata.get("file_type", "text"),
            metadata=dict(metadata),
        )


class TextChunker:
    """
    Splits document text into overlapping chunks of at most ``chunk_size``
    characters.

    The actual splitting is done by ``RecursiveCharacterTextSplitter``, which
    cuts on paragraph, line and word boundaries before raw characters.
    """

    def __init__(self, chunk_size: int | None = None, overlap: int | None = None):
        self.chunk_size = chunk_size or settings.chunk_size
        self.overlap = settings.chunk_overlap if overlap is None else overlap
        if self.overlap >= self.chunk_size:
            raise ValueError("Overlap must be smaller than chunk size")

        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.chunk_size,
            chunk_overlap=self.overlap,
            length_function=len,
            add_start_index=True,
        )

    def chunk_document(self, document: dict[str, Any]) -> list[TextChunk]:
        """
        Split a loaded document.

        Args:
            document: Dictionary produced by ``TextFileLoader.load``

        Returns:
            Chunks in document order; empty when the text is blank
        """
        text = document.get("plain_text", "")
        source = document.get("source_file", "unknown")
        if not text.strip():
            logger.warning(f"{source} has no text to chunk")
            return []

        chunks = []
        for index, piece in enumerate(self.splitter.create_documents([text])):
            content = piece.page_content
            start = piece.metadata.get("start_index", -1)
            if start < 0:
                start = text.find(content)
            chunks.append(
                TextChunk(
                    content=content,
                    start_pos=start,
                    end_pos=start + len(content),
                    chunk_index=index,
                    source_file=source,
                    file_type=document.get("file_type", "text"),
                    metadata={"char_count": len(content)},
                )
            )

        logger.info(
            f"{source}: {len(chunks)} chunks "
            f"(size {self.chunk_size}, overlap {self.overlap})"
        )
        return chunks

    def get_chunking_stats(self, chunks: list[TextChunk]) -> dict[str, Any]:
        """Count and size summary for a list of chunks."""
        if not chunks:
            return {"total_chunks": 0}

        sizes = [len(chunk.content) for chunk in chunks]
        return {
            "total_chunks": len(sizes),
            "avg_chunk_size": sum(sizes) / len(sizes),
            "min_chunk_size": min(sizes),
            "max_chunk_size": max(sizes),
            "total_characters": sum(sizes),
            "files_processed": len({chunk.source_file for chunk in chunks}),
        }
