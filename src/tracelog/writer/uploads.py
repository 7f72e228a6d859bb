# src/tracelog/writer/uploads.py
"""Attachment uploads and large-payload offload.

Both pipelines drain their queue, upload each entry through a signed URL,
and only then enqueue the small record that references the uploaded object
onto the main queue. The collector therefore never sees a reference before
the data behind it exists in storage.

A failed upload is re-queued as PendingRecord(record, attempt + 1) until it
has failed MAX_UPLOAD_RETRIES times in a row; then it is logged and dropped.
Uploads are best effort: nothing here raises to the flush cycle.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from pathlib import Path

import structlog

from tracelog.apis.attachments import AttachmentAPI
from tracelog.config import MAX_UPLOAD_RETRIES
from tracelog.errors import TraceLogError
from tracelog.writer.attachments import (
    DEFAULT_MIME_TYPE,
    Attachment,
    FileAttachment,
    FileDataAttachment,
    UrlAttachment,
    attachment_from_payload,
    populate_attachment_fields,
)
from tracelog.writer.records import Action, CommitLog, Entity, PendingRecord
from tracelog.writer.state import WriterState

logger = structlog.get_logger(__name__)

LARGE_LOG_MIME_TYPE = "text/plain"


def attachment_key(repository_id: str, record: CommitLog, attachment_id: str) -> str:
    """Storage key of an attachment: ``{repo}/{entity}/{entity_id}/files/original/{id}``."""
    return f"{repository_id}/{record.entity.value}/{record.entity_id}/files/original/{attachment_id}"


def large_log_key(repository_id: str, storage_id: str) -> str:
    return f"{repository_id}/large-logs/{storage_id}"


def _retry_or_drop(
    requeue: Callable[[PendingRecord], None],
    pending: PendingRecord,
    error: Exception,
    *,
    kind: str,
) -> None:
    failures = pending.attempt + 1
    if failures < MAX_UPLOAD_RETRIES:
        logger.debug(
            "Upload failed - will retry next flush",
            kind=kind,
            entity=pending.record.entity.value,
            entity_id=pending.record.entity_id,
            failures=failures,
            error=str(error),
        )
        requeue(pending.retry())
        return
    logger.error(
        "Upload failed permanently - dropping",
        kind=kind,
        entity=pending.record.entity.value,
        entity_id=pending.record.entity_id,
        failures=failures,
        error=str(error),
        error_type=type(error).__name__,
    )


# =============================================================================
# Large-payload offload
# =============================================================================


def process_storage_queue(state: WriterState, api: AttachmentAPI) -> None:
    """Offload every queued oversized record."""
    for pending in state.drain_storage():
        upload_storage_log(state, api, pending)


def upload_storage_log(state: WriterState, api: AttachmentAPI, pending: PendingRecord) -> None:
    """Upload one oversized record and enqueue its process-large-log pointer."""
    content = pending.record.data.get("logContent")
    if not content:
        logger.error(
            "Large log has no content - skipping upload",
            entity=pending.record.entity.value,
            entity_id=pending.record.entity_id,
        )
        return

    storage_id = str(uuid.uuid4())
    key = large_log_key(state.repository_id, storage_id)
    body = str(content).encode("utf-8")
    try:
        url = api.get_upload_url(key, LARGE_LOG_MIME_TYPE, len(body))
        api.upload_to_signed_url(url, body, LARGE_LOG_MIME_TYPE)
    except TraceLogError as e:
        _retry_or_drop(state.enqueue_storage, pending, e, kind="large-log")
        return

    state.enqueue(CommitLog(Entity.STORAGE, storage_id, Action.PROCESS_LARGE_LOG, {"key": key}))
    if state.debug:
        logger.debug("Large log uploaded to storage", key=key, size=len(body))


# =============================================================================
# Attachments
# =============================================================================


def process_attachment_queue(state: WriterState, api: AttachmentAPI) -> None:
    """Upload every queued attachment."""
    for pending in state.drain_attachments():
        upload_attachment(state, api, pending)


def _read_content(attachment: FileAttachment | FileDataAttachment) -> bytes:
    match attachment:
        case FileAttachment():
            return Path(attachment.path).read_bytes()
        case FileDataAttachment():
            return attachment.data


def _reference_payload(attachment: Attachment, key: str, size: int | None) -> dict[str, object]:
    """Payload of the add-attachment record: the descriptor without its bytes or local path."""
    payload = attachment.to_payload()
    payload.pop("path", None)
    payload.pop("data", None)
    payload["key"] = key
    if size is not None:
        payload["size"] = size
    return payload


def upload_attachment(state: WriterState, api: AttachmentAPI, pending: PendingRecord) -> None:
    """Upload one attachment, then enqueue its add-attachment record.

    URL attachments reference external data and are never uploaded; their
    add-attachment record is enqueued directly.
    """
    record = pending.record
    try:
        attachment = populate_attachment_fields(attachment_from_payload(record.data))
    except ValueError as e:
        logger.error(
            "Invalid attachment - skipping upload",
            entity=record.entity.value,
            entity_id=record.entity_id,
            error=str(e),
        )
        return

    key = record.data.get("key") or attachment_key(state.repository_id, record, attachment.id)
    if isinstance(attachment, UrlAttachment):
        payload = _reference_payload(attachment, key, None)
    else:
        mime_type = attachment.mime_type or DEFAULT_MIME_TYPE
        try:
            content = _read_content(attachment)
            url = api.get_upload_url(key, mime_type, len(content))
            api.upload_to_signed_url(url, content, mime_type)
        except (TraceLogError, OSError) as e:
            _retry_or_drop(state.enqueue_attachment, pending, e, kind="attachment")
            return
        payload = _reference_payload(attachment, key, len(content))
        if state.debug:
            logger.debug("Attachment uploaded", key=key, mime_type=mime_type, size=len(content))

    state.enqueue(CommitLog(record.entity, record.entity_id, Action.ADD_ATTACHMENT, payload))
