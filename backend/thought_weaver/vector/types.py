"""Vector store records and the store protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence


@dataclass(slots=True)
class EmbeddingRecord:
    """One vector per content record, keyed by ``tenant_user_record``."""

    document_id: str
    user_id: str
    app_id: str
    document_type: str
    content: str
    title: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "user_id": self.user_id,
            "app_id": self.app_id,
            "document_type": self.document_type,
            "content": self.content,
            "title": self.title,
            "metadata": self.metadata,
        }


@dataclass(slots=True)
class VectorMatch:
    document_id: str
    title: str
    content: str
    document_type: str
    similarity: float
    metadata: dict[str, Any] = field(default_factory=dict)


class VectorStore(Protocol):
    """Upsert-by-key and thresholded nearest-neighbour search, scoped per user."""

    def upsert(self, record: EmbeddingRecord) -> None:
        ...

    def match_documents(
        self,
        query_embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        user_id_filter: str,
    ) -> list[VectorMatch]:
        """Matches with cosine similarity >= threshold, best first."""
        ...

    def get(self, document_id: str) -> EmbeddingRecord | None:
        ...


__all__ = ["EmbeddingRecord", "VectorMatch", "VectorStore"]
