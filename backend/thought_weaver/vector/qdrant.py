"""Qdrant-backed vector store."""

from __future__ import annotations

from typing import Sequence

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from thought_weaver.core.errors import VectorStoreError
from thought_weaver.core.logging import get_logger
from thought_weaver.utils.ids import point_id
from thought_weaver.vector.types import EmbeddingRecord, VectorMatch

logger = get_logger(__name__)


class QdrantVectorStore:
    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection_name: str = "document_embeddings",
        dim: int = 768,
        api_key: str | None = None,
        timeout_s: float = 10.0,
        client: QdrantClient | None = None,
    ) -> None:
        """
        Initialize the Qdrant store.

        Args:
            url: Qdrant endpoint
            collection_name: Collection holding one point per content record
            dim: Vector size used when the collection has to be created
            api_key: Optional Qdrant API key
            timeout_s: Per-request timeout
            client: Pre-built client (tests, embedded mode)
        """
        self.client = client or QdrantClient(url=url, api_key=api_key, timeout=timeout_s)
        self.collection_name = collection_name
        self.dim = dim
        self._init_collection()

    def _init_collection(self) -> None:
        if self.client.collection_exists(self.collection_name):
            return
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=self.dim, distance=Distance.COSINE),
        )
        self.client.create_payload_index(
            collection_name=self.collection_name,
            field_name="user_id",
            field_schema=PayloadSchemaType.KEYWORD,
        )
        logger.info("Created Qdrant collection %s (dim=%s)", self.collection_name, self.dim)

    def upsert(self, record: EmbeddingRecord) -> None:
        try:
            self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    PointStruct(
                        id=point_id(record.document_id),
                        vector=list(record.embedding),
                        payload=record.payload(),
                    )
                ],
            )
        except Exception as exc:
            raise VectorStoreError(f"Failed to upsert {record.document_id}: {exc}") from exc
        logger.debug("Upserted %s into %s", record.document_id, self.collection_name)

    def match_documents(
        self,
        query_embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        user_id_filter: str,
    ) -> list[VectorMatch]:
        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=list(query_embedding),
                query_filter=Filter(
                    must=[FieldCondition(key="user_id", match=MatchValue(value=user_id_filter))]
                ),
                limit=match_count,
                score_threshold=match_threshold,
                with_payload=True,
            )
        except Exception as exc:
            raise VectorStoreError(f"Vector search failed: {exc}") from exc

        matches = []
        for point in response.points:
            payload = point.payload or {}
            matches.append(
                VectorMatch(
                    document_id=payload.get("document_id", str(point.id)),
                    title=payload.get("title", ""),
                    content=payload.get("content", ""),
                    document_type=payload.get("document_type", ""),
                    similarity=float(point.score),
                    metadata=payload.get("metadata") or {},
                )
            )
        matches.sort(key=lambda item: item.similarity, reverse=True)
        return matches

    def get(self, document_id: str) -> EmbeddingRecord | None:
        points = self.client.retrieve(
            collection_name=self.collection_name,
            ids=[point_id(document_id)],
            with_payload=True,
            with_vectors=True,
        )
        if not points:
            return None
        point = points[0]
        payload = point.payload or {}
        return EmbeddingRecord(
            document_id=payload["document_id"],
            user_id=payload["user_id"],
            app_id=payload["app_id"],
            document_type=payload["document_type"],
            content=payload["content"],
            title=payload["title"],
            embedding=list(point.vector or []),
            metadata=payload.get("metadata") or {},
        )


__all__ = ["QdrantVectorStore"]
