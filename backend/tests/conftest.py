"""Test fixtures for Thought Weaver."""

from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from thought_weaver.core.errors import VectorStoreError  # noqa: E402
from thought_weaver.db.sqlite import SQLiteDatabase  # noqa: E402
from thought_weaver.store.content_store import ContentStore  # noqa: E402
from thought_weaver.vector.sqlite_store import SQLiteVectorStore  # noqa: E402
from thought_weaver.vector.types import EmbeddingRecord, VectorMatch  # noqa: E402


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("TW_DB_PATH", str(tmp_path / "tw.db"))
    monkeypatch.setenv("TW_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.setenv("TW_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("TW_GENERATION_BACKEND", "template")
    monkeypatch.setenv("TW_VECTOR_BACKEND", "sqlite")

    from thought_weaver.api import dependencies as deps
    from thought_weaver.services.embeddings import HashedEmbeddingService

    HashedEmbeddingService._instances.clear()
    deps.reset_dependencies()
    yield
    HashedEmbeddingService._instances.clear()
    deps.reset_dependencies()


@pytest.fixture
def database(tmp_path: Path) -> SQLiteDatabase:
    db = SQLiteDatabase(tmp_path / "store.db")
    db.ensure_schema()
    yield db
    db.close()


@pytest.fixture
def content_store(database: SQLiteDatabase) -> ContentStore:
    return ContentStore(database)


@pytest.fixture
def vector_store(database: SQLiteDatabase) -> SQLiteVectorStore:
    return SQLiteVectorStore(database)


class FakeEmbeddingService:
    """Returns canned vectors per text; records every call."""

    model_name = "fake"

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: Sequence[float] = (1.0, 0.0),
        error: Exception | None = None,
    ) -> None:
        self.vectors = vectors or {}
        self.default = list(default)
        self.error = error
        self.calls: list[str] = []

    @property
    def dim(self) -> int:
        return len(self.default)

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))


class FakeGenerativeService:
    model_name = "fake"

    def __init__(self, reply: str = "Both documents are about Paris.", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []
        self.params = []

    def generate(self, prompt: str, params) -> str:
        self.prompts.append(prompt)
        self.params.append(params)
        if self.error is not None:
            raise self.error
        return self.reply


class RecordingVectorStore:
    """Vector store double that records upserts and can be told to fail."""

    def __init__(self, matches: list[VectorMatch] | None = None, error: Exception | None = None) -> None:
        self.records: dict[str, EmbeddingRecord] = {}
        self.upserts: list[EmbeddingRecord] = []
        self.searches: list[dict] = []
        self.matches = matches or []
        self.error = error

    def upsert(self, record: EmbeddingRecord) -> None:
        if self.error is not None:
            raise self.error
        self.upserts.append(record)
        self.records[record.document_id] = record

    def match_documents(self, query_embedding, match_threshold, match_count, user_id_filter):
        self.searches.append(
            {
                "query_embedding": list(query_embedding),
                "match_threshold": match_threshold,
                "match_count": match_count,
                "user_id_filter": user_id_filter,
            }
        )
        if self.error is not None:
            raise self.error
        return list(self.matches)

    def get(self, document_id: str) -> EmbeddingRecord | None:
        return self.records.get(document_id)


def unit_vector_with_similarity(similarity: float) -> list[float]:
    """2-d unit vector whose cosine with (1, 0) equals ``similarity``."""
    return [similarity, math.sqrt(1.0 - similarity * similarity)]


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def fake_generator() -> FakeGenerativeService:
    return FakeGenerativeService()


@pytest.fixture
def failing_vector_store() -> RecordingVectorStore:
    return RecordingVectorStore(error=VectorStoreError("duplicate key value violates unique constraint"))
