"""Clients for the external embedding and generative models."""

from .embeddings import EmbeddingService, GeminiEmbeddingService, HashedEmbeddingService
from .generation import (
    GeminiGenerativeService,
    GenerativeService,
    SamplingParams,
    TemplateGenerativeService,
)

__all__ = [
    "EmbeddingService",
    "GeminiEmbeddingService",
    "HashedEmbeddingService",
    "GenerativeService",
    "GeminiGenerativeService",
    "SamplingParams",
    "TemplateGenerativeService",
]
