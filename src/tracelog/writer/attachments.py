# src/tracelog/writer/attachments.py
"""Attachment descriptors and their wire payloads.

Three kinds of attachment can be added to an entity:

- FileAttachment: a path on local disk, uploaded by the writer
- FileDataAttachment: an in-memory buffer, uploaded by the writer
- UrlAttachment: an external URL, referenced but never uploaded

Attachments travel through the writer inside `upload-attachment` records
as plain payload dicts (camelCase keys, as the collector expects);
to_payload() and attachment_from_payload() convert between the two forms.
"""

from __future__ import annotations

import json
import mimetypes
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Any, Literal
from urllib.parse import urlparse

from tracelog.core.identifiers import unique_id

DEFAULT_MIME_TYPE = "application/octet-stream"

AttachmentType = Literal["file", "fileData", "url"]

# Leading bytes of common binary formats
_MAGIC_NUMBERS: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"%PDF", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
)

_TEXT_BYTES = frozenset({9, 10, 13, *range(32, 127)})


@dataclass(frozen=True, slots=True, kw_only=True)
class _AttachmentBase:
    id: str = field(default_factory=unique_id)
    name: str | None = None
    mime_type: str | None = None
    size: int | None = None
    tags: Mapping[str, str] | None = None
    metadata: Mapping[str, str] | None = None

    def _common_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id}
        optional = {
            "name": self.name,
            "mimeType": self.mime_type,
            "size": self.size,
            "tags": dict(self.tags) if self.tags is not None else None,
            "metadata": dict(self.metadata) if self.metadata is not None else None,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass(frozen=True, slots=True, kw_only=True)
class FileAttachment(_AttachmentBase):
    """Attachment read from a local file at upload time."""

    path: str | os.PathLike[str]
    type: Literal["file"] = "file"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, **self._common_payload(), "path": os.fspath(self.path)}


@dataclass(frozen=True, slots=True, kw_only=True)
class FileDataAttachment(_AttachmentBase):
    """Attachment uploaded from an in-memory buffer."""

    data: bytes
    type: Literal["fileData"] = "fileData"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, **self._common_payload(), "data": self.data}


@dataclass(frozen=True, slots=True, kw_only=True)
class UrlAttachment(_AttachmentBase):
    """Attachment that already lives at an external URL."""

    url: str
    type: Literal["url"] = "url"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, **self._common_payload(), "url": self.url}


Attachment = FileAttachment | FileDataAttachment | UrlAttachment


def attachment_from_payload(payload: Mapping[str, Any]) -> Attachment:
    """Rebuild an attachment descriptor from an `upload-attachment` payload.

    Raises:
        ValueError: If the payload's type is unknown or its source field
            (path, data or url) is missing
    """
    common: dict[str, Any] = {
        "name": payload.get("name"),
        "mime_type": payload.get("mimeType"),
        "size": payload.get("size"),
        "tags": payload.get("tags"),
        "metadata": payload.get("metadata"),
    }
    if payload.get("id"):
        common["id"] = payload["id"]

    attachment_type = payload.get("type")
    match attachment_type:
        case "file":
            if not payload.get("path"):
                raise ValueError("Path is not set for file attachment")
            return FileAttachment(path=payload["path"], **common)
        case "fileData":
            if not payload.get("data"):
                raise ValueError("Data is not set for file data attachment")
            return FileDataAttachment(data=bytes(payload["data"]), **common)
        case "url":
            if not payload.get("url"):
                raise ValueError("URL is not set for url attachment")
            return UrlAttachment(url=payload["url"], **common)
        case _:
            raise ValueError(f"Unknown attachment type: {attachment_type!r}")


def sniff_mime_type(data: bytes) -> str:
    """Guess a MIME type from a buffer's leading bytes.

    Recognizes PNG, JPEG, GIF, PDF and ZIP signatures; otherwise inspects
    up to 512 bytes to tell JSON, HTML and plain text from binary.
    """
    for signature, mime_type in _MAGIC_NUMBERS:
        if data.startswith(signature):
            return mime_type

    sample = data[:512]
    if not all(byte in _TEXT_BYTES for byte in sample):
        return DEFAULT_MIME_TYPE

    text = data.decode("utf-8", errors="replace").strip()
    try:
        json.loads(text)
    except ValueError:
        lowered = text.lower()
        if "<html" in lowered or "<!doctype html" in lowered:
            return "text/html"
        return "text/plain"
    return "application/json"


def guess_mime_type(path: str) -> str | None:
    mime_type, _ = mimetypes.guess_type(path)
    return mime_type


def populate_attachment_fields(attachment: Attachment) -> Attachment:
    """Fill in name, MIME type and size where they can be inferred.

    Never mutates the input; returns a new descriptor. Declared values
    always win over inferred ones.
    """
    match attachment:
        case FileAttachment():
            path = Path(attachment.path)
            updates: dict[str, Any] = {}
            if not attachment.name:
                updates["name"] = path.name
            if not attachment.mime_type:
                updates["mime_type"] = guess_mime_type(str(path)) or DEFAULT_MIME_TYPE
            if not attachment.size:
                try:
                    updates["size"] = path.stat().st_size
                except OSError:
                    pass  # size stays unknown until upload time
            return replace(attachment, **updates)

        case FileDataAttachment():
            updates = {}
            if not attachment.size:
                updates["size"] = len(attachment.data)
            if not attachment.mime_type and len(attachment.data) > 4:
                updates["mime_type"] = sniff_mime_type(attachment.data)
            return replace(attachment, **updates)

        case UrlAttachment():
            parsed = urlparse(attachment.url)
            updates = {}
            if not attachment.name:
                updates["name"] = PurePosixPath(parsed.path).name or parsed.hostname or attachment.url
            if not attachment.mime_type and PurePosixPath(parsed.path).suffix:
                mime_type = guess_mime_type(parsed.path)
                if mime_type:
                    updates["mime_type"] = mime_type
            return replace(attachment, **updates)

    raise TypeError(f"Unsupported attachment: {type(attachment).__name__}")
