# src/tracelog/logger/components/error.py
"""Error entities: failures attached to a trace or span."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tracelog.core.serialization import stringify_metadata
from tracelog.logger.components.base import Container, EntityConfig, base_data, container_for
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Entity


@dataclass(frozen=True, slots=True, kw_only=True)
class ErrorConfig(EntityConfig):
    message: str
    code: str | None = None
    error_type: str | None = None
    metadata: Mapping[str, Any] | None = None


def build_error(writer: LogWriterProtocol, config: ErrorConfig) -> tuple[Container, dict[str, Any]]:
    """Create an error handle and its creation payload.

    Nothing is committed; the parent commits add-error with the payload.
    """
    container = container_for(Entity.ERROR, config.id, writer)
    data = base_data(
        config,
        message=config.message,
        code=config.code,
        errorType=config.error_type,
        metadata=stringify_metadata(config.metadata) if config.metadata else None,
    )
    return container, data
