"""Keeps each content record's vector in step with its text."""

from __future__ import annotations

import time
from typing import Any

from thought_weaver.core.logging import get_logger
from thought_weaver.core.metrics import EMBEDDING_SYNC_DURATION, EMBEDDING_SYNC_TOTAL
from thought_weaver.models.records import (
    ChangeEvent,
    ContentRecord,
    Deleted,
    EmbeddingStatus,
    RecordKey,
    RecordType,
    Updated,
    change_event,
)
from thought_weaver.services.embeddings import EmbeddingService
from thought_weaver.store.content_store import ContentStore
from thought_weaver.utils.time import iso_from_ms
from thought_weaver.vector.types import EmbeddingRecord, VectorStore

logger = get_logger(__name__)

MAX_ERROR_LENGTH = 500


class EmbeddingSyncEngine:
    """Reacts to content writes: embed changed text and upsert the vector.

    Status transitions on the record::

        idle/completed/failed --(claim)--> processing --> completed | failed

    The claim is a compare-and-swap in the content store, so two concurrent
    events for the same record cannot both run the pipeline. Nothing is
    retried; a failed record is recovered by the next content write or by
    :meth:`reprocess`.
    """

    def __init__(
        self,
        content_store: ContentStore,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
    ) -> None:
        self.content_store = content_store
        self.embedding_service = embedding_service
        self.vector_store = vector_store

    def handle(self, event: ChangeEvent) -> str:
        """Process one change event and return the outcome label. Never raises."""
        if isinstance(event, Deleted):
            logger.debug("Record %s deleted; nothing to embed", event.key)
            return self._count(event.key, "deleted")

        record = event.new
        if not record.has_text() or record.embedding_status is EmbeddingStatus.PROCESSING:
            logger.info("Record %s has no content or is already processing", record.key)
            return self._count(record.key, "skipped_empty_or_busy")

        if isinstance(event, Updated) and _unchanged(event.old, record):
            logger.info("Record %s content unchanged, skipping", record.key)
            return self._count(record.key, "skipped_unchanged")

        return self._run(record)

    def handle_write(
        self,
        tenant_id: str,
        user_id: str,
        record_id: str,
        record_type: RecordType | str,
        previous: ContentRecord | None,
        current: ContentRecord | None,
    ) -> str:
        """Trigger entrypoint taking the raw before/after snapshots of a write.

        Malformed input (unknown record type, no snapshots, snapshots of
        another record) is logged and reported as ``invalid_event``.
        """
        try:
            key = RecordKey(tenant_id, user_id, record_id, RecordType(record_type))
            for snapshot in (previous, current):
                if snapshot is not None and snapshot.key != key:
                    raise ValueError(f"Snapshot {snapshot.key} does not belong to {key}")
            event = change_event(previous, current)
        except ValueError as exc:
            logger.error("Ignoring invalid write event for %s/%s/%s: %s", tenant_id, user_id, record_id, exc)
            document_type = str(getattr(record_type, "value", record_type))
            EMBEDDING_SYNC_TOTAL.labels(document_type=document_type, outcome="invalid_event").inc()
            return "invalid_event"
        return self.handle(event)

    def reprocess(self, key: RecordKey, *, force: bool = False) -> str:
        """Embed the stored record again regardless of the unchanged-content guard.

        ``force`` also takes records left in ``processing`` by an attempt that
        never finished.
        """
        record = self.content_store.get(key)
        if record is None:
            raise LookupError(f"Record {key} not found")
        if not record.has_text():
            logger.info("Record %s has no content; not reprocessing", key)
            return self._count(key, "skipped_empty_or_busy")
        return self._run(record, force=force)

    # ------------------------------------------------------------------

    def _run(self, record: ContentRecord, force: bool = False) -> str:
        key = record.key
        try:
            claimed = self.content_store.try_mark_processing(key, force=force)
        except Exception as exc:
            logger.exception("Failed to mark %s as processing: %s", key, exc)
            return self._count(key, "claim_failed")
        if not claimed:
            logger.info("Record %s is already being processed elsewhere", key)
            return self._count(key, "skipped_empty_or_busy")

        started = time.perf_counter()
        try:
            vector = self.embedding_service.embed(record.text or "")
            if not vector:
                raise ValueError("Embedding service returned an empty vector")
            self.vector_store.upsert(_embedding_record(record, vector))
            self.content_store.mark_completed(key)
        except Exception as exc:
            logger.error("Error generating embedding for %s: %s", key, exc, extra={"ctx_record": str(key)})
            try:
                self.content_store.mark_failed(key, _short_error(exc))
            except Exception as update_exc:
                # Left in "processing"; needs an explicit reprocess with force.
                logger.exception("Failed to update error status for %s: %s", key, update_exc)
                return self._count(key, "stuck")
            return self._count(key, "failed")
        finally:
            EMBEDDING_SYNC_DURATION.labels(document_type=key.record_type.value).observe(time.perf_counter() - started)

        logger.info("Generated embedding for %s", key, extra={"ctx_record": str(key)})
        return self._count(key, "completed")

    @staticmethod
    def _count(key: RecordKey, outcome: str) -> str:
        EMBEDDING_SYNC_TOTAL.labels(document_type=key.record_type.value, outcome=outcome).inc()
        return outcome


def _unchanged(previous: ContentRecord, current: ContentRecord) -> bool:
    return previous.text == current.text and previous.embedding_status is EmbeddingStatus.COMPLETED


def _short_error(exc: BaseException) -> str:
    message = str(exc) or exc.__class__.__name__
    return message[:MAX_ERROR_LENGTH]


def _embedding_record(record: ContentRecord, vector: list[float]) -> EmbeddingRecord:
    key = record.key
    return EmbeddingRecord(
        document_id=key.document_id,
        user_id=key.user_id,
        app_id=key.tenant_id,
        document_type=key.record_type.value,
        content=record.text or "",
        title=record.display_title,
        embedding=vector,
        metadata=_metadata_for(record),
    )


def _metadata_for(record: ContentRecord) -> dict[str, Any]:
    meta = record.metadata
    if record.key.record_type is RecordType.FILE:
        return {
            "file_id": record.key.record_id,
            "file_name": meta.get("name") or record.title,
            "file_type": meta.get("type"),
            "file_size": meta.get("size"),
            "uploaded_at": meta.get("uploadedAt"),
            "extracted_at": meta.get("extractedAt"),
        }
    return {
        "note_id": record.key.record_id,
        "created_at": meta.get("createdAt") or iso_from_ms(record.created_at),
        "updated_at": meta.get("updatedAt") or iso_from_ms(record.updated_at),
    }


__all__ = ["EmbeddingSyncEngine"]
