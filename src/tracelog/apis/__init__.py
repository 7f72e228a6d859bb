# src/tracelog/apis/__init__.py
"""HTTP clients for the collector service.

- LogsAPI: pushes serialized record chunks
- AttachmentAPI: signed upload URLs and raw uploads
"""

from tracelog.apis.attachments import AttachmentAPI
from tracelog.apis.base import BaseAPIClient, RetryConfig
from tracelog.apis.logs import LogsAPI

__all__ = [
    "AttachmentAPI",
    "BaseAPIClient",
    "LogsAPI",
    "RetryConfig",
]
