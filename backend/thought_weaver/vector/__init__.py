"""Vector store backends."""

from .types import EmbeddingRecord, VectorMatch, VectorStore
from .sqlite_store import SQLiteVectorStore

__all__ = [
    "EmbeddingRecord",
    "VectorMatch",
    "VectorStore",
    "SQLiteVectorStore",
]
