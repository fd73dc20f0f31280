"""
Plain text document loading.

This module reads the source text file from disk and wraps it in the
document dictionary consumed by the chunker.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

# Set up logging
logger = logging.getLogger(__name__)


class TextFileLoader:
    """
    Loader for plain text documents.

    Produces a document dictionary with the raw text and basic
    file metadata.
    """

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize the loader.

        Args:
            encoding: Text encoding used to read files
        """
        self.encoding = encoding

    def load(self, file_path: str | Path) -> dict[str, Any]:
        """
        Load a text file into a document dictionary.

        Args:
            file_path: Path to the text file

        Returns:
            Document dictionary with ``plain_text`` and metadata
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if not path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        logger.info(f"📄 Loading text from {path.name}")
        text = path.read_text(encoding=self.encoding)

        if not text.strip():
            logger.warning(f"File {path.name} contains no text")

        document = {
            "plain_text": text,
            "source_file": str(path),
            "file_type": "text",
            "metadata": {
                "char_count": len(text),
                "line_count": len(text.splitlines()),
                "file_size": path.stat().st_size,
            },
            "extracted_at": datetime.now().isoformat(),
        }

        logger.info(f"Loaded {len(text)} characters from {path.name}")
        return document
