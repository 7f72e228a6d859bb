# src/tracelog/logger/components/span.py
"""Spans: named units of work inside a trace, nestable to any depth."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tracelog.logger.components.base import (
    Container,
    EntityConfig,
    add_child,
    base_data,
    commit,
    container_for,
)
from tracelog.logger.components.error import ErrorConfig, build_error
from tracelog.logger.components.generation import GenerationConfig, attach_generation
from tracelog.logger.components.retrieval import RetrievalConfig, build_retrieval
from tracelog.logger.components.tool_call import ToolCallConfig, build_tool_call
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, Entity


@dataclass(frozen=True, slots=True, kw_only=True)
class SpanConfig(EntityConfig):
    pass


def open_span(writer: LogWriterProtocol, config: SpanConfig) -> tuple[Container, dict[str, Any]]:
    """Commit a span's create record; returns the handle and its creation payload."""
    span = container_for(Entity.SPAN, config.id, writer)
    data = base_data(config)
    commit(span, Action.CREATE, data)
    return span, data


def create_span(writer: LogWriterProtocol, config: SpanConfig) -> Container:
    span, _ = open_span(writer, config)
    return span


def span_span(parent: Container, config: SpanConfig) -> Container:
    """Create a child span: create on the child, then add-span on the parent."""
    child, data = open_span(parent.writer, config)
    return add_child(parent, Action.ADD_SPAN, child, data)


def span_generation(span: Container, config: GenerationConfig) -> Container:
    return attach_generation(span, config)


def span_tool_call(span: Container, config: ToolCallConfig) -> Container:
    tool_call, data = build_tool_call(span.writer, config)
    return add_child(span, Action.ADD_TOOL_CALL, tool_call, data)


def span_retrieval(span: Container, config: RetrievalConfig) -> Container:
    retrieval, data = build_retrieval(span.writer, config)
    return add_child(span, Action.ADD_RETRIEVAL, retrieval, data)


def span_error(span: Container, config: ErrorConfig) -> Container:
    error, data = build_error(span.writer, config)
    return add_child(span, Action.ADD_ERROR, error, data)
