"""Embedding synchronization."""

from .engine import EmbeddingSyncEngine

__all__ = ["EmbeddingSyncEngine"]
