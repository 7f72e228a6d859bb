# src/tracelog/errors.py
"""Exceptions raised by the tracelog delivery pipeline.

Only InvalidIdentifierError can reach callers of the logging API, and only
when the writer is configured with raise_exceptions=True. The others are
raised and handled inside the writer: delivery degrades to best effort.
"""


class TraceLogError(Exception):
    """Base class for all tracelog errors."""


class InvalidIdentifierError(TraceLogError):
    """Raised when an entity id contains characters outside [A-Za-z0-9_-].

    Attributes:
        entity_id: The rejected identifier
    """

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(
            f"Invalid ID: {entity_id}. ID must only contain alphanumeric characters, "
            "hyphens, and underscores. Event will not be logged."
        )


class DeliveryError(TraceLogError):
    """Raised when the collector rejects or fails to receive a push.

    Attributes:
        status_code: HTTP status of the failed call, None for transport errors
        message: Human-readable error description
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Log push failed (status={status_code}): {message}")


class UploadError(TraceLogError):
    """Raised when a signed URL cannot be obtained or an upload to it fails.

    Attributes:
        key: Storage key the upload was targeting
        message: Human-readable error description
    """

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        self.message = message
        super().__init__(f"Upload of '{key}' failed: {message}")


class LockTimeoutError(TraceLogError):
    """Raised to the waiting caller when a mutex deadline elapses first.

    The critical section itself keeps running on its worker thread.
    """

    def __init__(self, name: str, timeout: float) -> None:
        self.name = name
        self.timeout = timeout
        super().__init__(f"Mutex '{name}' acquisition timed out after {timeout}s")
