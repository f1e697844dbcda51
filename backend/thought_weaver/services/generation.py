"""Generative model clients used for insight synthesis."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

from google import genai
from google.genai import types

from thought_weaver.core.errors import GenerationServiceError
from thought_weaver.core.logging import get_logger
from thought_weaver.core.metrics import UPSTREAM_LATENCY

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SamplingParams:
    temperature: float = 0.3
    top_k: int = 32
    top_p: float = 0.8
    max_output_tokens: int = 800


class GenerativeService(Protocol):
    model_name: str

    def generate(self, prompt: str, params: SamplingParams) -> str:
        """Return generated text; raise GenerationServiceError on failure."""
        ...


class GeminiGenerativeService:
    """Text generation through Google's Gemini API (``gemini-1.5-flash`` by default)."""

    def __init__(
        self,
        model: str = "gemini-1.5-flash",
        api_key: str | None = None,
        timeout_s: float = 60.0,
        client: genai.Client | None = None,
    ) -> None:
        self.model_name = model
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    def generate(self, prompt: str, params: SamplingParams) -> str:
        started = time.perf_counter()
        try:
            response = self._client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=params.temperature,
                    top_k=params.top_k,
                    top_p=params.top_p,
                    max_output_tokens=params.max_output_tokens,
                ),
            )
        except Exception as exc:
            raise GenerationServiceError(f"Generation request failed: {exc}") from exc
        finally:
            UPSTREAM_LATENCY.labels(service="gemini", operation="generate").observe(time.perf_counter() - started)
        text = response.text
        if not text:
            raise GenerationServiceError(f"Model {self.model_name} returned no text")
        logger.debug("Generated %s characters with %s", len(text), self.model_name)
        return text.strip()


class TemplateGenerativeService:
    """
    Offline stand-in that echoes the related-document section of the prompt.

    Useful for local development or when no generative model is configured.
    """

    model_name = "template"

    def generate(self, prompt: str, params: SamplingParams) -> str:
        marker = "Related documents found:"
        _, _, tail = prompt.partition(marker)
        related = [line[2:] for line in tail.splitlines() if line.startswith("- ")]
        if not related:
            return "No model configured; no related documents listed."
        lines = ["Related documents worth revisiting:"]
        lines.extend(f"* {item}" for item in related)
        return "\n".join(lines)


__all__ = [
    "SamplingParams",
    "GenerativeService",
    "GeminiGenerativeService",
    "TemplateGenerativeService",
]
