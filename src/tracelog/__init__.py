"""tracelog: client-side delivery of AI application traces.

Logging calls become immutable mutation records (CommitLog) that a
LogWriter buffers, batches and delivers to a collector, offloading large
payloads and attachments to object storage.
"""

from tracelog.config import LoggerConfig, WriterSettings, load_settings
from tracelog.core.logging import configure_logging
from tracelog.errors import (
    DeliveryError,
    InvalidIdentifierError,
    LockTimeoutError,
    TraceLogError,
    UploadError,
)
from tracelog.logger.logger import TraceLogger
from tracelog.writer import CaptureWriter, CommitLog, Entity, LogWriter

__version__ = "0.1.0"

__all__ = [
    "CaptureWriter",
    "CommitLog",
    "DeliveryError",
    "Entity",
    "InvalidIdentifierError",
    "LockTimeoutError",
    "LogWriter",
    "LoggerConfig",
    "TraceLogError",
    "TraceLogger",
    "UploadError",
    "WriterSettings",
    "configure_logging",
    "load_settings",
]
