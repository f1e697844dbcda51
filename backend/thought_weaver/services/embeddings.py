"""Embedding service clients."""

from __future__ import annotations

import hashlib
import math
import re
import time
from typing import Protocol

from google import genai
from google.genai import types

from thought_weaver.core.errors import EmbeddingServiceError
from thought_weaver.core.logging import get_logger
from thought_weaver.core.metrics import UPSTREAM_LATENCY

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")


class EmbeddingService(Protocol):
    model_name: str

    @property
    def dim(self) -> int:
        ...

    def embed(self, text: str) -> list[float]:
        """Return one vector for ``text``; raise EmbeddingServiceError on failure."""
        ...


class GeminiEmbeddingService:
    """
    Embeddings from Google's Gemini API (``text-embedding-004`` by default).

    The API key comes from settings (``TW_GEMINI_API_KEY`` / ``GEMINI_API_KEY``).
    Every call carries the configured HTTP timeout.
    """

    def __init__(
        self,
        model: str = "text-embedding-004",
        api_key: str | None = None,
        dim: int = 768,
        timeout_s: float = 30.0,
        client: genai.Client | None = None,
    ) -> None:
        self.model_name = model
        self._dim = dim
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        started = time.perf_counter()
        try:
            result = self._client.models.embed_content(model=self.model_name, contents=text)
        except Exception as exc:
            raise EmbeddingServiceError(f"Embedding request failed: {exc}") from exc
        finally:
            UPSTREAM_LATENCY.labels(service="gemini", operation="embed").observe(time.perf_counter() - started)
        values = result.embeddings[0].values if result.embeddings else None
        if not values:
            raise EmbeddingServiceError(f"Embedding model {self.model_name} returned an empty vector")
        logger.debug("Embedded %s characters with %s", len(text), self.model_name)
        return list(values)


class HashedEmbeddingService:
    """Lightweight hashed embedding model with deterministic output.

    Needs no network access; used for local development and as the default
    backend so the service starts without credentials.
    """

    _instances: dict[tuple[str, int], "HashedEmbeddingService"] = {}

    def __init__(self, model_name: str = "hashed", dim: int = 384) -> None:
        self.model_name = model_name
        self._dim = dim

    @classmethod
    def get(cls, model_name: str, dim: int = 384) -> "HashedEmbeddingService":
        key = (model_name or "hashed", dim)
        if key not in cls._instances:
            cls._instances[key] = HashedEmbeddingService(model_name=key[0], dim=dim)
        return cls._instances[key]

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        tokens = _tokenize(text)
        if not tokens:
            raise EmbeddingServiceError("Text has no tokens to embed")
        vector = [0.0] * self._dim
        for token in tokens:
            vector[_hash_token(token, self._dim)] += 1.0
        _normalize(vector)
        return vector


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = ["EmbeddingService", "GeminiEmbeddingService", "HashedEmbeddingService"]
