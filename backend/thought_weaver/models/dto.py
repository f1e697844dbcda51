"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from thought_weaver.models.records import ContentRecord


class InsightRequest(BaseModel):
    """Required fields are validated by the service so a missing one maps to 400."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str | None = Field(default=None, alias="userId")
    app_id: str | None = Field(default=None, alias="appId")
    title: str | None = None
    content: str | None = None


class Connection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    similarity: float
    document_type: str = Field(alias="documentType")
    preview: str


class InsightMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query_processed_at: str = Field(alias="queryProcessedAt")
    documents_analyzed: int = Field(alias="documentsAnalyzed")


class InsightResponse(BaseModel):
    connections: list[Connection]
    insights: str
    metadata: InsightMetadata


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class RecordWriteRequest(BaseModel):
    text: str | None = Field(default=None, description="Note body or extracted file text")
    title: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RecordResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_id: str = Field(alias="appId")
    user_id: str = Field(alias="userId")
    record_id: str = Field(alias="recordId")
    record_type: Literal["note", "file"] = Field(alias="recordType")
    document_id: str = Field(alias="documentId")
    title: str | None = None
    text: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding_status: Literal["idle", "processing", "completed", "failed"] = Field(alias="embeddingStatus")
    embedding_error: str | None = Field(default=None, alias="embeddingError")
    embedding_last_updated: int | None = Field(default=None, alias="embeddingLastUpdated")
    updated_at: int | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_record(cls, record: ContentRecord) -> "RecordResponse":
        key = record.key
        return cls(
            app_id=key.tenant_id,
            user_id=key.user_id,
            record_id=key.record_id,
            record_type=key.record_type.value,
            document_id=key.document_id,
            title=record.title,
            text=record.text,
            metadata=record.metadata,
            embedding_status=record.embedding_status.value,
            embedding_error=record.embedding_error,
            embedding_last_updated=record.embedding_last_updated,
            updated_at=record.updated_at,
        )


class ReprocessResponse(BaseModel):
    document_id: str = Field(serialization_alias="documentId")
    outcome: str


__all__ = [
    "InsightRequest",
    "InsightResponse",
    "Connection",
    "InsightMetadata",
    "ErrorResponse",
    "RecordWriteRequest",
    "RecordResponse",
    "ReprocessResponse",
]
