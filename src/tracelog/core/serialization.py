# src/tracelog/core/serialization.py
"""JSON serialization for record payloads.

Payloads come straight from application code (LLM responses, tool
arguments, arbitrary metadata), so serialization never fails: anything the
json module cannot encode is normalized first, and whatever is left falls
back to its str() form.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any


def _normalize_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def make_serializable(obj: Any) -> Any:
    """Recursively convert a value to JSON-safe primitives.

    Args:
        obj: Any Python value

    Returns:
        A structure of dict/list/str/int/float/bool/None
    """
    if obj is None or isinstance(obj, bool | int | float | str):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return _normalize_datetime(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, bytes | bytearray | memoryview):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, PurePath):
        return str(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return make_serializable(asdict(obj))
    if isinstance(obj, Mapping):
        return {str(key): make_serializable(value) for key, value in obj.items()}
    if isinstance(obj, list | tuple | set | frozenset):
        return [make_serializable(item) for item in obj]
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return make_serializable(model_dump())
    return str(obj)


def dumps_compact(data: Any) -> str:
    """Serialize to compact single-line JSON.

    Newlines inside strings are escaped by json, so the result is always
    safe to use as one line of the newline-delimited wire format.
    """
    return json.dumps(make_serializable(data), separators=(",", ":"), ensure_ascii=False)


def stringify_metadata(metadata: Mapping[str, Any]) -> dict[str, str]:
    """JSON-encode each metadata value individually.

    The collector stores metadata as a string-to-string map.
    """
    return {key: dumps_compact(value) for key, value in metadata.items()}
