"""
Configuration module for txt-to-rag.

Settings live in :mod:`txt_rag.config.settings`.
"""
