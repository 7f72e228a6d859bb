# src/tracelog/writer/writer.py
"""LogWriter: the delivery engine behind every logger.

commit() validates and routes a record into one of three bounded queues and
returns immediately; flush() is the only place network I/O happens:

1. Offload oversized records to object storage (storage queue)
2. Upload attachments (attachment queue)
3. Drain the main queue, re-push batches persisted by earlier failed cycles,
   then push the drained records in chunks of at most 5 MiB
4. On push failure, persist the undelivered records to the fallback store,
   or re-queue them in memory when local disk is unavailable

Delivery degrades rather than fails: flush() logs delivery errors instead
of raising them, and nothing the collector does can surface in commit().

Thread Safety:
    commit() is safe from any thread and never blocks on the network.
    Flush cycles are serialized per writer by its Mutex, with a deadline
    (mutex_timeout_seconds) after which the waiting caller gives up. The
    periodic flush runs on a daemon timer thread; backpressure flushes run
    on short-lived daemon threads.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from tracelog.apis.attachments import AttachmentAPI
from tracelog.apis.logs import LogsAPI
from tracelog.config import MAX_CHUNK_BYTES, STORAGE_LOG_THRESHOLD, WriterSettings
from tracelog.core.identifiers import is_valid_entity_id, unique_id
from tracelog.errors import InvalidIdentifierError, LockTimeoutError, TraceLogError
from tracelog.writer.fallback import FallbackStore, is_restricted_environment
from tracelog.writer.records import Action, CommitLog, PendingRecord
from tracelog.writer.state import WriterState
from tracelog.writer.uploads import attachment_key, process_attachment_queue, process_storage_queue

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class Chunk:
    """One push request body and the records it carries."""

    records: list[CommitLog] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    size: int = 0  # UTF-8 bytes

    @property
    def body(self) -> str:
        return "".join(self.lines)


def chunk_records(records: Iterable[CommitLog], max_bytes: int = MAX_CHUNK_BYTES) -> list[Chunk]:
    """Split records into push bodies of at most max_bytes.

    Each record contributes its serialized line plus a newline. A chunk is
    closed before a line that would push it over max_bytes; a single line
    larger than max_bytes forms a chunk on its own. Record order is kept.
    """
    chunks: list[Chunk] = []
    current = Chunk()
    for record in records:
        line = record.serialize() + "\n"
        line_size = len(line.encode("utf-8"))
        if current.lines and current.size + line_size > max_bytes:
            chunks.append(current)
            current = Chunk()
        current.records.append(record)
        current.lines.append(line)
        current.size += line_size
    if current.lines:
        chunks.append(current)
    return chunks


class LogWriter:
    """Buffers mutation records and delivers them to the collector.

    Example:
        writer = LogWriter(settings)
        writer.commit(CommitLog(Entity.TRACE, "t1", Action.CREATE, {"name": "chat"}))
        writer.flush()
        writer.cleanup()
    """

    def __init__(
        self,
        settings: WriterSettings,
        *,
        logs_api: LogsAPI | None = None,
        attachment_api: AttachmentAPI | None = None,
    ) -> None:
        """Initialize the writer and start the periodic flush timer.

        Args:
            settings: Writer configuration
            logs_api: Push client (default: built from settings)
            attachment_api: Signed-URL client (default: built from settings)
        """
        self._settings = settings
        self._id = unique_id()
        self._logs_api = logs_api or LogsAPI(settings.base_url, settings.api_key)
        self._attachment_api = attachment_api or AttachmentAPI(settings.base_url, settings.api_key)
        self._state = WriterState.create(
            self._id,
            settings.repository_id,
            FallbackStore.for_writer(self._id, settings.fallback_dir),
            queue_max_size=settings.queue_max_size,
            debug=settings.debug,
        )

        self._closed = False
        self._close_lock = threading.Lock()
        self._stop_event = threading.Event()

        # At most one backpressure flush waiting or running at a time
        self._backpressure_lock = threading.Lock()
        self._backpressure_pending = False

        self._timer: threading.Thread | None = None
        if settings.auto_flush:
            self._timer = threading.Thread(
                target=self._flush_loop,
                name=f"tracelog-flush-{self._id}",
                daemon=True,
            )
            self._timer.start()

    @property
    def id(self) -> str:
        return self._id

    @property
    def settings(self) -> WriterSettings:
        return self._settings

    @property
    def raise_exceptions(self) -> bool:
        return self._settings.raise_exceptions

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def pending_count(self) -> int:
        """Records waiting in any of the three queues."""
        return self._state.pending_count()

    # =========================================================================
    # commit
    # =========================================================================

    def commit(self, record: CommitLog) -> None:
        """Validate and route one record. Never performs network I/O.

        Raises:
            InvalidIdentifierError: If the entity id is invalid and
                raise_exceptions is set (otherwise logged and dropped)
        """
        if self._closed:
            logger.warning(
                "Writer closed - record dropped",
                entity=record.entity.value,
                entity_id=record.entity_id,
                action=record.action,
            )
            return
        try:
            self._route(record)
        except InvalidIdentifierError:
            if self.raise_exceptions:
                raise
            logger.error("Invalid entity id - record dropped", entity_id=record.entity_id, entity=record.entity.value)
            return
        except Exception as e:
            if self.raise_exceptions:
                raise
            logger.error("Failed to commit record", error=str(e), error_type=type(e).__name__)
            return

        if self._state.pending_count() > self._settings.max_in_memory_logs:
            self._start_backpressure_flush()

    def _route(self, record: CommitLog) -> None:
        if not is_valid_entity_id(record.entity_id):
            raise InvalidIdentifierError(record.entity_id)

        if record.action == Action.UPLOAD_ATTACHMENT:
            if not record.data:
                logger.error(
                    "Attachment record has no payload - skipping upload",
                    entity=record.entity.value,
                    entity_id=record.entity_id,
                )
                return
            attachment_id = record.data.get("id") or unique_id()
            keyed = record.with_data(id=attachment_id, key=attachment_key(self._state.repository_id, record, attachment_id))
            self._state.enqueue_attachment(PendingRecord(keyed))
            return

        serialized = record.serialize()
        if self._state.debug:
            logger.debug("Committing record", line=serialized)

        if len(serialized.encode("utf-8")) > STORAGE_LOG_THRESHOLD:
            offload = CommitLog(record.entity, record.entity_id, Action.UPLOAD_STORAGE_LOG, {"logContent": serialized})
            self._state.enqueue_storage(PendingRecord(offload))
            return

        self._state.enqueue(record)

    def _start_backpressure_flush(self) -> None:
        with self._backpressure_lock:
            if self._backpressure_pending:
                return
            self._backpressure_pending = True
        logger.debug("In-memory record ceiling exceeded - flushing", max_in_memory_logs=self._settings.max_in_memory_logs)
        threading.Thread(
            target=self._backpressure_flush,
            name=f"tracelog-backpressure-{self._id}",
            daemon=True,
        ).start()

    def _backpressure_flush(self) -> None:
        try:
            self.flush()
        except Exception as e:
            # Strict mode re-raises from flush(); nobody can catch it on this thread
            logger.error("Backpressure flush failed", error=str(e), error_type=type(e).__name__)
        finally:
            with self._backpressure_lock:
                self._backpressure_pending = False

    # =========================================================================
    # flush
    # =========================================================================

    def flush(self) -> None:
        """Run one delivery cycle under the writer's mutex.

        Delivery and upload errors are logged, never raised. A mutex timeout
        is logged and the call returns; the stalled cycle keeps running.

        Raises:
            Exception: Unexpected errors escaping the cycle, only when
                raise_exceptions is set
        """
        try:
            self._state.mutex.with_lock(self._flush_cycle, timeout=self._settings.mutex_timeout_seconds)
        except LockTimeoutError as e:
            logger.warning("Flush skipped - previous cycle still running", mutex=e.name, timeout_seconds=e.timeout)
        except Exception as e:
            if self.raise_exceptions:
                raise
            logger.error("Flush cycle failed", error=str(e), error_type=type(e).__name__)

    def _flush_cycle(self) -> None:
        process_storage_queue(self._state, self._attachment_api)
        process_attachment_queue(self._state, self._attachment_api)

        records = self._state.drain_main()
        restricted = is_restricted_environment(self._settings.fallback_dir)
        if not restricted:
            self._state.fallback.replay(self._push)
        if not records:
            if self._state.debug:
                logger.debug("No records to flush")
            return
        self._deliver(records, restricted=restricted)

    def _push(self, body: str) -> None:
        self._logs_api.push_logs(self._state.repository_id, body)

    def _deliver(self, records: list[CommitLog], *, restricted: bool) -> None:
        chunks = chunk_records(records)
        for index, chunk in enumerate(chunks):
            try:
                self._push(chunk.body)
            except TraceLogError as e:
                logger.error(
                    "Failed to push logs",
                    error=str(e),
                    undelivered=sum(len(pending.records) for pending in chunks[index:]),
                    chunk=index + 1,
                    chunks=len(chunks),
                )
                self._handle_undelivered(chunks[index:], restricted=restricted)
                return
            if self._state.debug:
                logger.debug("Pushed chunk", chunk=index + 1, chunks=len(chunks), size=chunk.size)

    def _handle_undelivered(self, chunks: list[Chunk], *, restricted: bool) -> None:
        """Persist each undelivered chunk as its own file, else requeue in memory.

        One file per chunk keeps every replayed body under MAX_CHUNK_BYTES.
        Requeued records go back to the head of the main queue so they stay
        ahead of anything committed while the push was in flight.
        """
        remaining = list(chunks)
        if not restricted:
            try:
                while remaining:
                    self._state.fallback.write(remaining[0].records)
                    remaining.pop(0)
                return
            except OSError as e:
                logger.error("Failed to persist undelivered logs - keeping in memory", error=str(e))
        self._state.requeue_main([record for chunk in remaining for record in chunk.records])

    def _flush_loop(self) -> None:
        interval = self._settings.flush_interval_seconds
        while not self._stop_event.wait(interval):
            try:
                self.flush()
            except Exception as e:
                # Strict-mode flush errors have no caller on the timer thread
                logger.error("Periodic flush failed", error=str(e), error_type=type(e).__name__)

    # =========================================================================
    # lifecycle
    # =========================================================================

    def cleanup(self) -> None:
        """Stop the timer, run a final flush and close the HTTP clients.

        Idempotent. In-flight cycles are awaited (up to the mutex deadline),
        never aborted.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._stop_event.set()
        if self._timer is not None:
            self._timer.join(timeout=self._settings.mutex_timeout_seconds)
            if self._timer.is_alive():
                logger.error("Flush timer did not exit cleanly within timeout")

        try:
            self.flush()
        finally:
            # A stalled cycle may still be pushing; let it finish before closing its clients
            if not self._state.mutex.wait_idle(self._settings.mutex_timeout_seconds):
                logger.error("Flush cycle still running at close - closing clients anyway")
            remaining = self._state.pending_count()
            if remaining:
                logger.warning("Writer closed with undelivered records", remaining=remaining)
            self._logs_api.close()
            self._attachment_api.close()
