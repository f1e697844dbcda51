"""SQLite-backed content store for notes and extracted file text."""

from __future__ import annotations

import sqlite3
from typing import Any, Sequence

import orjson

from thought_weaver.core.errors import PersistenceError
from thought_weaver.core.logging import get_logger
from thought_weaver.db.sqlite import SQLiteDatabase
from thought_weaver.models.records import (
    ChangeEvent,
    ContentRecord,
    Deleted,
    EmbeddingStatus,
    RecordKey,
    RecordType,
    change_event,
)
from thought_weaver.utils.time import now_ms

logger = get_logger(__name__)

_KEY_CLAUSE = "tenant_id = ? AND user_id = ? AND record_type = ? AND record_id = ?"
_COLUMNS = (
    "tenant_id, user_id, record_type, record_id, title, text, meta_json, embedding_status, "
    "embedding_error, embedding_last_updated, created_at, updated_at"
)


class ContentStore:
    """Durable per-user collection of content records.

    Content writes (:meth:`write`, :meth:`delete`) return the change event the
    sync engine consumes. Embedding status annotations are written through the
    ``mark_*`` methods and never produce change events.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def get(self, key: RecordKey) -> ContentRecord | None:
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM content_records WHERE {_KEY_CLAUSE}", _key_params(key))
        return _row_to_record(row) if row else None

    def write(
        self,
        key: RecordKey,
        *,
        text: str | None,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChangeEvent:
        """Create or replace the user-authored fields of a record."""
        now = now_ms()
        meta_json = orjson.dumps(metadata or {}).decode("utf-8")
        try:
            with self.db.transaction() as cursor:
                previous_row = cursor.execute(
                    f"SELECT {_COLUMNS} FROM content_records WHERE {_KEY_CLAUSE}", _key_params(key)
                ).fetchone()
                previous = _row_to_record(previous_row) if previous_row else None
                if previous is None:
                    cursor.execute(
                        """
                        INSERT INTO content_records (
                          tenant_id, user_id, record_type, record_id, title, text, meta_json,
                          embedding_status, created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        [*_key_params(key), title, text, meta_json, EmbeddingStatus.IDLE.value, now, now],
                    )
                else:
                    cursor.execute(
                        f"UPDATE content_records SET title = ?, text = ?, meta_json = ?, updated_at = ? WHERE {_KEY_CLAUSE}",
                        [title, text, meta_json, now, *_key_params(key)],
                    )
                current_row = cursor.execute(
                    f"SELECT {_COLUMNS} FROM content_records WHERE {_KEY_CLAUSE}", _key_params(key)
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to write {key}: {exc}") from exc
        logger.debug("Stored %s (%s)", key, "created" if previous is None else "updated")
        return change_event(previous, _row_to_record(current_row))

    def delete(self, key: RecordKey) -> Deleted | None:
        previous = self.get(key)
        if previous is None:
            return None
        try:
            with self.db.transaction() as cursor:
                cursor.execute(f"DELETE FROM content_records WHERE {_KEY_CLAUSE}", _key_params(key))
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to delete {key}: {exc}") from exc
        return Deleted(old=previous)

    # Embedding status annotations -------------------------------------

    def try_mark_processing(self, key: RecordKey, *, force: bool = False) -> bool:
        """Swap the status to ``processing`` unless an attempt is already in flight.

        Returns ``False`` when another attempt holds the record. ``force``
        takes the record even if it is already marked ``processing``.
        """
        condition = "" if force else " AND embedding_status != ?"
        params: list[Any] = [EmbeddingStatus.PROCESSING.value, now_ms(), *_key_params(key)]
        if not force:
            params.append(EmbeddingStatus.PROCESSING.value)
        updated = self._annotate(
            "embedding_status = ?, embedding_error = NULL, status_changed_at = ?",
            params,
            key,
            condition=condition,
        )
        return updated == 1

    def mark_completed(self, key: RecordKey, *, timestamp: int | None = None) -> None:
        ts = timestamp or now_ms()
        updated = self._annotate(
            "embedding_status = ?, embedding_error = NULL, embedding_last_updated = ?, status_changed_at = ?",
            [EmbeddingStatus.COMPLETED.value, ts, ts, *_key_params(key)],
            key,
        )
        _require_row(updated, key)

    def mark_failed(self, key: RecordKey, error: str, *, timestamp: int | None = None) -> None:
        ts = timestamp or now_ms()
        updated = self._annotate(
            "embedding_status = ?, embedding_error = ?, embedding_last_updated = ?, status_changed_at = ?",
            [EmbeddingStatus.FAILED.value, error, ts, ts, *_key_params(key)],
            key,
        )
        _require_row(updated, key)

    def list_stuck(self, older_than_ms: int, limit: int = 100) -> list[ContentRecord]:
        """Records left in ``processing`` for longer than ``older_than_ms``."""
        cutoff = now_ms() - older_than_ms
        rows = self.db.query(
            f"""
            SELECT {_COLUMNS} FROM content_records
            WHERE embedding_status = ? AND COALESCE(status_changed_at, updated_at) <= ?
            ORDER BY status_changed_at ASC
            LIMIT ?
            """,
            [EmbeddingStatus.PROCESSING.value, cutoff, limit],
        )
        return [_row_to_record(row) for row in rows]

    def _annotate(
        self,
        assignments: str,
        params: Sequence[Any],
        key: RecordKey,
        condition: str = "",
    ) -> int:
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    f"UPDATE content_records SET {assignments} WHERE {_KEY_CLAUSE}{condition}",
                    list(params),
                )
                updated = cursor.rowcount
            return updated
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to update embedding status for {key}: {exc}") from exc


def _require_row(updated: int, key: RecordKey) -> None:
    if updated != 1:
        raise PersistenceError(f"Record {key} no longer exists")


def _key_params(key: RecordKey) -> list[str]:
    return [key.tenant_id, key.user_id, key.record_type.value, key.record_id]


def _row_to_record(row: sqlite3.Row) -> ContentRecord:
    return ContentRecord(
        key=RecordKey(
            tenant_id=row["tenant_id"],
            user_id=row["user_id"],
            record_id=row["record_id"],
            record_type=RecordType(row["record_type"]),
        ),
        text=row["text"],
        title=row["title"],
        metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
        embedding_status=EmbeddingStatus(row["embedding_status"]),
        embedding_error=row["embedding_error"],
        embedding_last_updated=row["embedding_last_updated"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


__all__ = ["ContentStore"]
