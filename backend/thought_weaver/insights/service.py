"""Find related records for a document and synthesize insights from them."""

from __future__ import annotations

import time
from typing import Any

from thought_weaver.core.config import Settings
from thought_weaver.core.errors import (
    EmbeddingServiceError,
    GenerationServiceError,
    MissingFieldsError,
    RateLimitedError,
    ThoughtWeaverError,
    VectorStoreError,
)
from thought_weaver.core.logging import get_logger
from thought_weaver.core.metrics import INSIGHT_REQUESTS, UPSTREAM_LATENCY
from thought_weaver.insights.markup import html_to_text
from thought_weaver.insights.prompts import NO_RELATED_DOCUMENTS, PREVIEW_LIMIT, build_insight_prompt
from thought_weaver.insights.rate_limit import RateLimiter
from thought_weaver.services.embeddings import EmbeddingService
from thought_weaver.services.generation import GenerativeService, SamplingParams
from thought_weaver.utils.text import truncate
from thought_weaver.utils.time import utc_now
from thought_weaver.vector.types import VectorMatch, VectorStore

logger = get_logger(__name__)

REQUIRED_FIELDS = ("userId", "appId", "content")


class InsightService:
    """Synchronous retrieval-augmented generation over one user's records."""

    def __init__(
        self,
        settings: Settings,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        generative_service: GenerativeService,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.settings = settings
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.generative_service = generative_service
        if rate_limiter is None:
            rate_limiter = RateLimiter(
                min_interval_ms=settings.rate_limit_interval_ms,
                max_users=settings.rate_limit_max_users,
            )
        self.rate_limiter = rate_limiter
        self.sampling = SamplingParams(
            temperature=settings.generation_temperature,
            top_k=settings.generation_top_k,
            top_p=settings.generation_top_p,
            max_output_tokens=settings.generation_max_output_tokens,
        )

    def find_connections(
        self,
        user_id: str | None,
        app_id: str | None,
        content: str | None,
        title: str | None = None,
    ) -> dict[str, Any]:
        try:
            payload = self._find_connections(user_id, app_id, content, title)
        except ThoughtWeaverError as exc:
            INSIGHT_REQUESTS.labels(outcome=type(exc).__name__).inc()
            raise
        INSIGHT_REQUESTS.labels(outcome="ok" if payload["connections"] else "no_matches").inc()
        return payload

    def _find_connections(
        self,
        user_id: str | None,
        app_id: str | None,
        content: str | None,
        title: str | None,
    ) -> dict[str, Any]:
        provided = {"userId": user_id, "appId": app_id, "content": content}
        missing = [name for name in REQUIRED_FIELDS if not provided[name]]
        if missing:
            raise MissingFieldsError(missing, list(REQUIRED_FIELDS))

        decision = self.rate_limiter.check(user_id)
        if not decision.allowed:
            raise RateLimitedError(user_id, decision.retry_after_ms)

        plain_text = html_to_text(content)
        query_vector = self._embed(plain_text)
        matches = self._search(query_vector, user_id)

        if not matches:
            logger.info("No related documents for user %s", user_id, extra={"ctx_user": user_id})
            return {
                "connections": [],
                "insights": NO_RELATED_DOCUMENTS,
                "metadata": _metadata(0),
            }

        prompt = build_insight_prompt(title, plain_text, matches)
        insights = self._generate(prompt)
        logger.info(
            "Generated insights from %s related documents for user %s",
            len(matches),
            user_id,
            extra={"ctx_user": user_id},
        )
        return {
            "connections": [_connection(match) for match in matches],
            "insights": insights,
            "metadata": _metadata(len(matches)),
        }

    def _embed(self, text: str) -> list[float]:
        try:
            vector = self.embedding_service.embed(text)
        except EmbeddingServiceError:
            raise
        except Exception as exc:
            raise EmbeddingServiceError(f"Embedding request failed: {exc}") from exc
        if not vector:
            raise EmbeddingServiceError("Embedding service returned an empty vector")
        return vector

    def _search(self, query_vector: list[float], user_id: str) -> list[VectorMatch]:
        started = time.perf_counter()
        try:
            matches = self.vector_store.match_documents(
                query_embedding=query_vector,
                match_threshold=self.settings.match_threshold,
                match_count=self.settings.match_count,
                user_id_filter=user_id,
            )
        except VectorStoreError as exc:
            logger.error("Vector search error: %s", exc)
            raise
        except Exception as exc:
            logger.error("Vector search error: %s", exc)
            raise VectorStoreError(f"Vector search failed: {exc}") from exc
        finally:
            UPSTREAM_LATENCY.labels(service="vector_store", operation="search").observe(time.perf_counter() - started)
        return matches[: self.settings.match_count]

    def _generate(self, prompt: str) -> str:
        try:
            return self.generative_service.generate(prompt, self.sampling)
        except GenerationServiceError:
            raise
        except Exception as exc:
            raise GenerationServiceError(f"Generation request failed: {exc}") from exc


def _connection(match: VectorMatch) -> dict[str, Any]:
    return {
        "title": match.title,
        "similarity": match.similarity,
        "documentType": match.document_type,
        "preview": truncate(match.content, PREVIEW_LIMIT),
    }


def _metadata(documents_analyzed: int) -> dict[str, Any]:
    return {
        "queryProcessedAt": utc_now().isoformat(),
        "documentsAnalyzed": documents_analyzed,
    }


__all__ = ["InsightService", "REQUIRED_FIELDS"]
