# src/tracelog/writer/state.py
"""Shared state of one LogWriter, passed explicitly to the upload helpers.

Thread Safety:
    Every queue access goes through the methods below, which hold
    `lock` for the duration of the queue operation only. Network I/O is
    never performed while holding it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from tracelog.writer.fallback import FallbackStore
from tracelog.writer.mutex import Mutex
from tracelog.writer.queue import BoundedQueue
from tracelog.writer.records import CommitLog, PendingRecord


@dataclass(slots=True)
class WriterState:
    """Queues, locks and fallback store owned by one writer instance.

    Attributes:
        writer_id: Random id scoping the mutex name and fallback directory
        repository_id: Log repository the records belong to
        main: Records ready to push
        attachments: upload-attachment records awaiting upload
        storage: upload-storage-log records awaiting offload
        mutex: Serializes flush cycles
        fallback: On-disk store for undelivered batches
        debug: Emit per-record and per-chunk debug events
    """

    writer_id: str
    repository_id: str
    main: BoundedQueue[CommitLog]
    attachments: BoundedQueue[PendingRecord]
    storage: BoundedQueue[PendingRecord]
    mutex: Mutex
    fallback: FallbackStore
    debug: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock)

    @classmethod
    def create(
        cls,
        writer_id: str,
        repository_id: str,
        fallback: FallbackStore,
        *,
        queue_max_size: int = 10_000,
        debug: bool = False,
    ) -> WriterState:
        return cls(
            writer_id=writer_id,
            repository_id=repository_id,
            main=BoundedQueue(queue_max_size, name="main"),
            attachments=BoundedQueue(queue_max_size, name="attachments"),
            storage=BoundedQueue(queue_max_size, name="storage"),
            mutex=Mutex(f"tracelog-logs-{writer_id}"),
            fallback=fallback,
            debug=debug,
        )

    def enqueue(self, record: CommitLog) -> None:
        with self.lock:
            self.main.enqueue(record)

    def requeue_main(self, records: list[CommitLog]) -> None:
        """Return undelivered records to the head of the main queue."""
        with self.lock:
            self.main.requeue(records)

    def enqueue_attachment(self, pending: PendingRecord) -> None:
        with self.lock:
            self.attachments.enqueue(pending)

    def enqueue_storage(self, pending: PendingRecord) -> None:
        with self.lock:
            self.storage.enqueue(pending)

    def drain_main(self) -> list[CommitLog]:
        with self.lock:
            return self.main.dequeue_all()

    def drain_attachments(self) -> list[PendingRecord]:
        with self.lock:
            return self.attachments.dequeue_all()

    def drain_storage(self) -> list[PendingRecord]:
        with self.lock:
            return self.storage.dequeue_all()

    def pending_count(self) -> int:
        """Combined size of the three queues."""
        with self.lock:
            return len(self.main) + len(self.attachments) + len(self.storage)
