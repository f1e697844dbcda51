"""Text processing helpers."""

from __future__ import annotations


def truncate(text: str | None, limit: int) -> str:
    """First ``limit`` characters of ``text``; no word-boundary adjustment."""
    if not text:
        return ""
    return text[:limit]
