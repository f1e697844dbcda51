"""Prompt assembly for connection and insight synthesis."""

from __future__ import annotations

from typing import Sequence

from thought_weaver.utils.text import truncate
from thought_weaver.vector.types import VectorMatch

QUERY_CONTENT_LIMIT = 1000
RELATED_CONTENT_LIMIT = 500
PREVIEW_LIMIT = 200

NO_RELATED_DOCUMENTS = "No related documents found to generate insights from."

INSIGHT_PROMPT = """You are an intelligent writing assistant that helps identify connections and generate insights.

Current document:
Title: {title}
Content: {content}

Related documents found:
{related}

Please provide:
1. Key themes and connections between the current document and related ones
2. Insights or patterns you notice across these documents
3. Questions or ideas that emerge from these connections

Keep your response concise and actionable. Focus on meaningful connections rather than surface-level similarities."""


def build_insight_prompt(title: str | None, content: str, related: Sequence[VectorMatch]) -> str:
    """Prompt with the query document (first 1000 chars) and each match (first 500 chars)."""
    entries = [
        f'- "{doc.title}" (similarity: {doc.similarity:.2f})\n{truncate(doc.content, RELATED_CONTENT_LIMIT)}'
        for doc in related
    ]
    return INSIGHT_PROMPT.format(
        title=title or "Untitled",
        content=truncate(content, QUERY_CONTENT_LIMIT),
        related="\n".join(entries),
    )


__all__ = [
    "INSIGHT_PROMPT",
    "NO_RELATED_DOCUMENTS",
    "PREVIEW_LIMIT",
    "QUERY_CONTENT_LIMIT",
    "RELATED_CONTENT_LIMIT",
    "build_insight_prompt",
]
