"""ID helpers."""

from __future__ import annotations

import uuid


def document_key(tenant_id: str, user_id: str, record_id: str) -> str:
    """Vector store key for a content record."""
    return f"{tenant_id}_{user_id}_{record_id}"


def point_id(document_id: str) -> str:
    """Stable UUID for stores that only accept UUID point identifiers."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, document_id))
