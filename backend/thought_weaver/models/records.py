"""Content records and the change events the sync engine consumes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from thought_weaver.utils.ids import document_key


class RecordType(str, Enum):
    NOTE = "note"
    FILE = "file"


class EmbeddingStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_TITLES = {
    RecordType.NOTE: "Untitled Note",
    RecordType.FILE: "Untitled File",
}


@dataclass(frozen=True, slots=True)
class RecordKey:
    tenant_id: str
    user_id: str
    record_id: str
    record_type: RecordType

    @property
    def document_id(self) -> str:
        return document_key(self.tenant_id, self.user_id, self.record_id)

    def __str__(self) -> str:
        return f"{self.record_type.value}:{self.document_id}"


@dataclass(slots=True)
class ContentRecord:
    """A note or file whose text must be mirrored in the vector store.

    ``text`` is the note body or the extracted file text. ``metadata`` holds
    the type-specific attributes (note timestamps, file name/type/size and
    upload/extraction times) that travel with the embedding.
    """

    key: RecordKey
    text: str | None = None
    title: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    embedding_status: EmbeddingStatus = EmbeddingStatus.IDLE
    embedding_error: str | None = None
    embedding_last_updated: int | None = None
    created_at: int | None = None
    updated_at: int | None = None

    @property
    def display_title(self) -> str:
        return self.title or DEFAULT_TITLES[self.key.record_type]

    def has_text(self) -> bool:
        return bool(self.text)

    def with_changes(self, **changes: Any) -> "ContentRecord":
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class Created:
    new: ContentRecord

    @property
    def key(self) -> RecordKey:
        return self.new.key


@dataclass(frozen=True, slots=True)
class Updated:
    old: ContentRecord
    new: ContentRecord

    @property
    def key(self) -> RecordKey:
        return self.new.key


@dataclass(frozen=True, slots=True)
class Deleted:
    old: ContentRecord

    @property
    def key(self) -> RecordKey:
        return self.old.key


ChangeEvent = Union[Created, Updated, Deleted]


def change_event(previous: ContentRecord | None, current: ContentRecord | None) -> ChangeEvent:
    """Build the tagged event for a before/after snapshot pair."""
    if previous is None and current is None:
        raise ValueError("A change event needs at least one snapshot")
    if previous is None:
        return Created(new=current)
    if current is None:
        return Deleted(old=previous)
    return Updated(old=previous, new=current)


__all__ = [
    "RecordType",
    "EmbeddingStatus",
    "RecordKey",
    "ContentRecord",
    "Created",
    "Updated",
    "Deleted",
    "ChangeEvent",
    "change_event",
    "DEFAULT_TITLES",
]
