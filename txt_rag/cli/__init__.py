"""
CLI (Command Line Interface) module for txt-to-rag.

This module provides the command-line interface for indexing the text
file and asking questions about it. ``ChatInterface`` lives in
:mod:`txt_rag.cli.chat` and is loaded only when ``chat`` runs.
"""

from .commands import main

__all__ = ["main"]
