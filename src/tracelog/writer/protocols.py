# src/tracelog/writer/protocols.py
"""Protocol implemented by every record sink.

Emitters depend on this protocol only, so they work the same against the
delivering LogWriter and the in-memory CaptureWriter.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracelog.writer.records import CommitLog


@runtime_checkable
class LogWriterProtocol(Protocol):
    """Sink for mutation records.

    Error handling:
        - commit() MUST NOT perform network I/O
        - commit() raises only when raise_exceptions is True
    """

    @property
    def raise_exceptions(self) -> bool:
        """Whether invalid input raises instead of being logged and dropped."""
        ...

    def commit(self, record: "CommitLog") -> None:
        """Accept one record for delivery."""
        ...
