"""
txt-to-rag: Minimal RAG pipeline over a single text file.

Indexes a plain text file into a Chroma vector database using Ollama
embeddings, then answers questions by retrieving relevant chunks and
prompting a local Ollama chat model.
"""

__version__ = "0.1.0"
