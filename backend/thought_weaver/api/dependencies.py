"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from thought_weaver.core.config import Settings, get_settings
from thought_weaver.db.sqlite import SQLiteDatabase
from thought_weaver.insights.rate_limit import RateLimiter
from thought_weaver.insights.service import InsightService
from thought_weaver.services.embeddings import (
    EmbeddingService,
    GeminiEmbeddingService,
    HashedEmbeddingService,
)
from thought_weaver.services.generation import (
    GeminiGenerativeService,
    GenerativeService,
    TemplateGenerativeService,
)
from thought_weaver.store.content_store import ContentStore
from thought_weaver.sync.engine import EmbeddingSyncEngine
from thought_weaver.vector.qdrant import QdrantVectorStore
from thought_weaver.vector.sqlite_store import SQLiteVectorStore
from thought_weaver.vector.types import VectorStore

_DB: SQLiteDatabase | None = None
_EMBEDDING_SERVICE: EmbeddingService | None = None
_GENERATIVE_SERVICE: GenerativeService | None = None
_VECTOR_STORE: VectorStore | None = None
_CONTENT_STORE: ContentStore | None = None
_SYNC_ENGINE: EmbeddingSyncEngine | None = None
_RATE_LIMITER: RateLimiter | None = None
_INSIGHT_SERVICE: InsightService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path, busy_timeout_s=settings.db_busy_timeout_s)
        db.ensure_schema()
        _DB = db
    return _DB


def get_embedding_service() -> EmbeddingService:
    global _EMBEDDING_SERVICE
    if _EMBEDDING_SERVICE is None:
        settings = get_app_settings()
        if settings.embedding_backend == "gemini":
            _EMBEDDING_SERVICE = GeminiEmbeddingService(
                model=settings.embedding_model,
                api_key=settings.gemini_api_key,
                dim=settings.embedding_dim,
                timeout_s=settings.embedding_timeout_s,
            )
        else:
            _EMBEDDING_SERVICE = HashedEmbeddingService.get("hashed", dim=settings.embedding_dim)
    return _EMBEDDING_SERVICE


def get_generative_service() -> GenerativeService:
    global _GENERATIVE_SERVICE
    if _GENERATIVE_SERVICE is None:
        settings = get_app_settings()
        if settings.generation_backend == "gemini":
            _GENERATIVE_SERVICE = GeminiGenerativeService(
                model=settings.generation_model,
                api_key=settings.gemini_api_key,
                timeout_s=settings.generation_timeout_s,
            )
        else:
            _GENERATIVE_SERVICE = TemplateGenerativeService()
    return _GENERATIVE_SERVICE


def get_vector_store() -> VectorStore:
    global _VECTOR_STORE
    if _VECTOR_STORE is None:
        settings = get_app_settings()
        if settings.vector_backend == "qdrant":
            _VECTOR_STORE = QdrantVectorStore(
                url=settings.qdrant_url,
                collection_name=settings.qdrant_collection,
                dim=get_embedding_service().dim,
                api_key=settings.qdrant_api_key,
                timeout_s=settings.vector_timeout_s,
            )
        else:
            _VECTOR_STORE = SQLiteVectorStore(get_database())
    return _VECTOR_STORE


def get_content_store() -> ContentStore:
    global _CONTENT_STORE
    if _CONTENT_STORE is None:
        _CONTENT_STORE = ContentStore(get_database())
    return _CONTENT_STORE


def get_sync_engine() -> EmbeddingSyncEngine:
    global _SYNC_ENGINE
    if _SYNC_ENGINE is None:
        _SYNC_ENGINE = EmbeddingSyncEngine(
            content_store=get_content_store(),
            embedding_service=get_embedding_service(),
            vector_store=get_vector_store(),
        )
    return _SYNC_ENGINE


def get_rate_limiter() -> RateLimiter:
    global _RATE_LIMITER
    if _RATE_LIMITER is None:
        settings = get_app_settings()
        _RATE_LIMITER = RateLimiter(
            min_interval_ms=settings.rate_limit_interval_ms,
            max_users=settings.rate_limit_max_users,
        )
    return _RATE_LIMITER


def get_insight_service() -> InsightService:
    global _INSIGHT_SERVICE
    if _INSIGHT_SERVICE is None:
        _INSIGHT_SERVICE = InsightService(
            settings=get_app_settings(),
            embedding_service=get_embedding_service(),
            vector_store=get_vector_store(),
            generative_service=get_generative_service(),
            rate_limiter=get_rate_limiter(),
        )
    return _INSIGHT_SERVICE


def reset_dependencies() -> None:
    """Drop every cached singleton (tests, settings reload)."""
    global _DB, _EMBEDDING_SERVICE, _GENERATIVE_SERVICE, _VECTOR_STORE
    global _CONTENT_STORE, _SYNC_ENGINE, _RATE_LIMITER, _INSIGHT_SERVICE
    if _DB is not None:
        _DB.close()
    get_app_settings.cache_clear()
    get_settings.cache_clear()
    _DB = None
    _EMBEDDING_SERVICE = None
    _GENERATIVE_SERVICE = None
    _VECTOR_STORE = None
    _CONTENT_STORE = None
    _SYNC_ENGINE = None
    _RATE_LIMITER = None
    _INSIGHT_SERVICE = None


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedding_service",
    "get_generative_service",
    "get_vector_store",
    "get_content_store",
    "get_sync_engine",
    "get_rate_limiter",
    "get_insight_service",
    "reset_dependencies",
]
