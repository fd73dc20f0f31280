"""
Document processing module for txt-to-rag.

This module handles loading the source text file and splitting it into
overlapping chunks ready for embedding.
"""

from .chunker import TextChunk, TextChunker
from .loader import TextFileLoader

__all__ = ["TextChunk", "TextChunker", "TextFileLoader"]
