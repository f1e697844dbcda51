"""Retrieval and insight synthesis."""

from .markup import html_to_text
from .rate_limit import RateLimiter
from .service import InsightService

__all__ = ["InsightService", "RateLimiter", "html_to_text"]
