"""Content record routes standing in for the editor's writes."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from thought_weaver.api.dependencies import get_content_store, get_sync_engine
from thought_weaver.models.dto import RecordResponse, RecordWriteRequest, ReprocessResponse
from thought_weaver.models.records import RecordKey, RecordType
from thought_weaver.store.content_store import ContentStore
from thought_weaver.sync.engine import EmbeddingSyncEngine

router = APIRouter()


@router.get("/records/stuck", response_model=list[RecordResponse], summary="Records left in processing")
def list_stuck_records(
    older_than_s: int = Query(default=600, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    store: ContentStore = Depends(get_content_store),
) -> list[RecordResponse]:
    return [RecordResponse.from_record(record) for record in store.list_stuck(older_than_s * 1000, limit=limit)]


@router.put(
    "/records/{app_id}/{user_id}/{record_type}/{record_id}",
    response_model=RecordResponse,
    summary="Create or update a note or file record",
)
def write_record(
    app_id: str,
    user_id: str,
    record_type: RecordType,
    record_id: str,
    request: RecordWriteRequest,
    background_tasks: BackgroundTasks,
    store: ContentStore = Depends(get_content_store),
    engine: EmbeddingSyncEngine = Depends(get_sync_engine),
) -> RecordResponse:
    key = RecordKey(app_id, user_id, record_id, record_type)
    event = store.write(key, text=request.text, title=request.title, metadata=request.metadata)
    background_tasks.add_task(engine.handle, event)
    return RecordResponse.from_record(event.new)


@router.get(
    "/records/{app_id}/{user_id}/{record_type}/{record_id}",
    response_model=RecordResponse,
    summary="Fetch a record with its embedding status",
)
def get_record(
    app_id: str,
    user_id: str,
    record_type: RecordType,
    record_id: str,
    store: ContentStore = Depends(get_content_store),
) -> RecordResponse:
    record = store.get(RecordKey(app_id, user_id, record_id, record_type))
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return RecordResponse.from_record(record)


@router.delete(
    "/records/{app_id}/{user_id}/{record_type}/{record_id}",
    summary="Delete a record",
    status_code=204,
)
def delete_record(
    app_id: str,
    user_id: str,
    record_type: RecordType,
    record_id: str,
    background_tasks: BackgroundTasks,
    store: ContentStore = Depends(get_content_store),
    engine: EmbeddingSyncEngine = Depends(get_sync_engine),
) -> None:
    event = store.delete(RecordKey(app_id, user_id, record_id, record_type))
    if event is None:
        raise HTTPException(status_code=404, detail="Record not found")
    background_tasks.add_task(engine.handle, event)


@router.post(
    "/records/{app_id}/{user_id}/{record_type}/{record_id}/reprocess",
    response_model=ReprocessResponse,
    summary="Re-embed a record on demand",
)
def reprocess_record(
    app_id: str,
    user_id: str,
    record_type: RecordType,
    record_id: str,
    force: bool = Query(default=False, description="Also take records stuck in processing"),
    engine: EmbeddingSyncEngine = Depends(get_sync_engine),
) -> ReprocessResponse:
    key = RecordKey(app_id, user_id, record_id, record_type)
    try:
        outcome = engine.reprocess(key, force=force)
    except LookupError:
        raise HTTPException(status_code=404, detail="Record not found")
    return ReprocessResponse(document_id=key.document_id, outcome=outcome)
