"""Tests for embedding utilities."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from thought_weaver.core.errors import EmbeddingServiceError, GenerationServiceError
from thought_weaver.services.embeddings import GeminiEmbeddingService, HashedEmbeddingService
from thought_weaver.services.generation import (
    GeminiGenerativeService,
    SamplingParams,
    TemplateGenerativeService,
)


def test_hashed_embedding_is_normalized_and_deterministic() -> None:
    model = HashedEmbeddingService.get("dummy-model", dim=64)
    first = model.embed("hello world")
    assert len(first) == model.dim == 64
    assert abs(sum(value * value for value in first) - 1.0) < 1e-6
    assert model.embed("hello world") == first
    assert HashedEmbeddingService.get("dummy-model", dim=64) is model


def test_hashed_embedding_rejects_empty_text() -> None:
    with pytest.raises(EmbeddingServiceError):
        HashedEmbeddingService(dim=8).embed("   ")


class _FakeModels:
    def __init__(self, embed_result=None, generate_result=None, error: Exception | None = None) -> None:
        self.embed_result = embed_result
        self.generate_result = generate_result
        self.error = error
        self.calls: list[dict] = []

    def embed_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.embed_result

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.generate_result


def _client(models: _FakeModels) -> SimpleNamespace:
    return SimpleNamespace(models=models)


def test_gemini_embedding_returns_values() -> None:
    models = _FakeModels(embed_result=SimpleNamespace(embeddings=[SimpleNamespace(values=[0.1, 0.2])]))
    service = GeminiEmbeddingService(client=_client(models))

    assert service.embed("hello") == [0.1, 0.2]
    assert models.calls == [{"model": "text-embedding-004", "contents": "hello"}]


def test_gemini_embedding_empty_result_is_an_error() -> None:
    models = _FakeModels(embed_result=SimpleNamespace(embeddings=[]))
    with pytest.raises(EmbeddingServiceError):
        GeminiEmbeddingService(client=_client(models)).embed("hello")


def test_gemini_embedding_wraps_client_errors() -> None:
    models = _FakeModels(error=RuntimeError("403 API key not valid"))
    with pytest.raises(EmbeddingServiceError, match="API key not valid"):
        GeminiEmbeddingService(client=_client(models)).embed("hello")


def test_gemini_generation_passes_sampling_parameters() -> None:
    models = _FakeModels(generate_result=SimpleNamespace(text="  insight  "))
    service = GeminiGenerativeService(client=_client(models))

    assert service.generate("prompt", SamplingParams()) == "insight"
    config = models.calls[0]["config"]
    assert models.calls[0]["model"] == "gemini-1.5-flash"
    assert (config.temperature, config.top_k, config.top_p, config.max_output_tokens) == (0.3, 32, 0.8, 800)


def test_gemini_generation_without_text_is_an_error() -> None:
    models = _FakeModels(generate_result=SimpleNamespace(text=None))
    with pytest.raises(GenerationServiceError):
        GeminiGenerativeService(client=_client(models)).generate("prompt", SamplingParams())


def test_template_generation_lists_related_documents() -> None:
    prompt = 'Related documents found:\n- "Eiffel" (similarity: 0.85)\nI loved it\n\nPlease provide:'
    reply = TemplateGenerativeService().generate(prompt, SamplingParams())
    assert '"Eiffel" (similarity: 0.85)' in reply
