# src/tracelog/writer/capture.py
"""Writer that keeps committed records in memory instead of delivering them.

Used to render records without a collector (e.g. building log lines for
another transport) and as the sink in emitter tests.
"""

from __future__ import annotations

import threading

from tracelog.writer.records import CommitLog


class CaptureWriter:
    """Collects every committed record, in commit order.

    Example:
        writer = CaptureWriter()
        trace = create_trace(writer, TraceConfig(id="t1"))
        lines = [record.serialize() for record in writer.drain()]
    """

    def __init__(self, *, raise_exceptions: bool = False) -> None:
        self._raise_exceptions = raise_exceptions
        self._lock = threading.Lock()
        self._logs: list[CommitLog] = []

    @property
    def raise_exceptions(self) -> bool:
        return self._raise_exceptions

    def commit(self, record: CommitLog) -> None:
        with self._lock:
            self._logs.append(record)

    def drain(self) -> list[CommitLog]:
        """Return every captured record and clear the buffer."""
        with self._lock:
            logs, self._logs = self._logs, []
        return logs

    @property
    def logs(self) -> list[CommitLog]:
        """Copy of the captured records, without clearing."""
        with self._lock:
            return list(self._logs)

    def clear(self) -> None:
        with self._lock:
            self._logs = []
