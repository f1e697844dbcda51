"""Thought Weaver: keeps note and file embeddings in sync and synthesizes insights across them."""

__version__ = "0.1.0"
