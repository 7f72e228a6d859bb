# src/tracelog/writer/__init__.py
"""Delivery engine: records, queues, uploads and the LogWriter.

Key components:
- CommitLog: one immutable mutation of one entity
- LogWriter: routes, buffers and delivers records to the collector
- CaptureWriter: keeps records in memory instead of delivering them
"""

from tracelog.writer.attachments import (
    Attachment,
    FileAttachment,
    FileDataAttachment,
    UrlAttachment,
)
from tracelog.writer.capture import CaptureWriter
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, CommitLog, Entity, PendingRecord
from tracelog.writer.state import WriterState
from tracelog.writer.writer import LogWriter

__all__ = [
    "Action",
    "Attachment",
    "CaptureWriter",
    "CommitLog",
    "Entity",
    "FileAttachment",
    "FileDataAttachment",
    "LogWriter",
    "LogWriterProtocol",
    "PendingRecord",
    "UrlAttachment",
    "WriterState",
]
