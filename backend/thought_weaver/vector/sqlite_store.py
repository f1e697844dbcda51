"""Vector store persisted in SQLite with brute-force cosine search."""

from __future__ import annotations

import math
import sqlite3
from array import array
from typing import Sequence

import orjson

from thought_weaver.core.errors import VectorStoreError
from thought_weaver.db.sqlite import SQLiteDatabase
from thought_weaver.vector.types import EmbeddingRecord, VectorMatch
from thought_weaver.utils.time import now_ms


class SQLiteVectorStore:
    """Stores one float32 vector per document and scans a user's rows on search.

    Suitable for a single user's notes (thousands of rows); use the Qdrant
    backend for anything larger.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def upsert(self, record: EmbeddingRecord) -> None:
        if not record.embedding:
            raise VectorStoreError(f"Refusing to store an empty vector for {record.document_id}")
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO document_embeddings (
                      document_id, user_id, app_id, document_type, content, title,
                      dim, embedding, meta_json, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(document_id) DO UPDATE SET
                      user_id = excluded.user_id,
                      app_id = excluded.app_id,
                      document_type = excluded.document_type,
                      content = excluded.content,
                      title = excluded.title,
                      dim = excluded.dim,
                      embedding = excluded.embedding,
                      meta_json = excluded.meta_json,
                      updated_at = excluded.updated_at
                    """,
                    [
                        record.document_id,
                        record.user_id,
                        record.app_id,
                        record.document_type,
                        record.content,
                        record.title,
                        len(record.embedding),
                        _as_bytes(record.embedding),
                        orjson.dumps(record.metadata, default=str).decode("utf-8"),
                        now_ms(),
                    ],
                )
        except sqlite3.Error as exc:
            raise VectorStoreError(f"Failed to upsert {record.document_id}: {exc}") from exc

    def match_documents(
        self,
        query_embedding: Sequence[float],
        match_threshold: float,
        match_count: int,
        user_id_filter: str,
    ) -> list[VectorMatch]:
        try:
            rows = self.db.query(
                """
                SELECT document_id, document_type, content, title, dim, embedding, meta_json
                FROM document_embeddings
                WHERE user_id = ?
                """,
                [user_id_filter],
            )
        except sqlite3.Error as exc:
            raise VectorStoreError(f"Vector search failed: {exc}") from exc

        query_norm = _norm(query_embedding)
        if query_norm == 0:
            return []
        matches: list[VectorMatch] = []
        for row in rows:
            if row["dim"] != len(query_embedding):
                continue
            vector = _from_bytes(row["embedding"])
            similarity = _cosine(query_embedding, query_norm, vector)
            if similarity < match_threshold:
                continue
            matches.append(
                VectorMatch(
                    document_id=row["document_id"],
                    title=row["title"],
                    content=row["content"],
                    document_type=row["document_type"],
                    similarity=similarity,
                    metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
                )
            )
        matches.sort(key=lambda item: item.similarity, reverse=True)
        return matches[:match_count]

    def get(self, document_id: str) -> EmbeddingRecord | None:
        row = self.db.query_one(
            """
            SELECT document_id, user_id, app_id, document_type, content, title, embedding, meta_json
            FROM document_embeddings WHERE document_id = ?
            """,
            [document_id],
        )
        if row is None:
            return None
        return EmbeddingRecord(
            document_id=row["document_id"],
            user_id=row["user_id"],
            app_id=row["app_id"],
            document_type=row["document_type"],
            content=row["content"],
            title=row["title"],
            embedding=_from_bytes(row["embedding"]),
            metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
        )

    @property
    def size(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS count FROM document_embeddings")
        return int(row["count"]) if row else 0


def _as_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def _from_bytes(payload: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(payload)
    return list(floats)


def _norm(vector: Sequence[float]) -> float:
    return math.sqrt(sum(value * value for value in vector))


def _cosine(query: Sequence[float], query_norm: float, other: Sequence[float]) -> float:
    other_norm = _norm(other)
    if other_norm == 0:
        return 0.0
    return sum(x * y for x, y in zip(query, other)) / (query_norm * other_norm)


__all__ = ["SQLiteVectorStore"]
