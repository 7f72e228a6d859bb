# src/tracelog/logger/components/trace.py
"""Traces: one end-to-end request through an AI application.

A trace optionally belongs to a session and is the root of a tree of
spans, generations, tool calls, retrievals and errors.
"""

from __future__ import annotations

from dataclasses import dataclass

from tracelog.logger.components.base import (
    Container,
    EntityConfig,
    add_child,
    add_metric,
    base_data,
    commit,
    compact,
    container_for,
)
from tracelog.logger.components.error import ErrorConfig, build_error
from tracelog.logger.components.generation import GenerationConfig, attach_generation
from tracelog.logger.components.retrieval import RetrievalConfig, build_retrieval
from tracelog.logger.components.span import SpanConfig, open_span
from tracelog.logger.components.tool_call import ToolCallConfig, build_tool_call
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, Entity


@dataclass(frozen=True, slots=True, kw_only=True)
class TraceConfig(EntityConfig):
    session_id: str | None = None


def create_trace(writer: LogWriterProtocol, config: TraceConfig) -> Container:
    """Create a trace, committing its create record (with sessionId when set)."""
    trace = container_for(Entity.TRACE, config.id, writer)
    commit(trace, Action.CREATE, base_data(config, sessionId=config.session_id))
    return trace


def trace_span(trace: Container, config: SpanConfig) -> Container:
    span, data = open_span(trace.writer, config)
    return add_child(trace, Action.ADD_SPAN, span, data)


def trace_generation(trace: Container, config: GenerationConfig) -> Container:
    return attach_generation(trace, config)


def trace_tool_call(trace: Container, config: ToolCallConfig) -> Container:
    tool_call, data = build_tool_call(trace.writer, config)
    return add_child(trace, Action.ADD_TOOL_CALL, tool_call, data)


def trace_retrieval(trace: Container, config: RetrievalConfig) -> Container:
    retrieval, data = build_retrieval(trace.writer, config)
    return add_child(trace, Action.ADD_RETRIEVAL, retrieval, data)


def trace_error(trace: Container, config: ErrorConfig) -> Container:
    error, data = build_error(trace.writer, config)
    return add_child(trace, Action.ADD_ERROR, error, data)


def trace_input(trace: Container, input: str) -> None:
    commit(trace, Action.UPDATE, {"input": input})


def trace_output(trace: Container, output: str) -> None:
    commit(trace, Action.UPDATE, {"output": output})


def trace_add_to_session(trace: Container, session_id: str) -> None:
    commit(trace, Action.UPDATE, {"sessionId": session_id})


def trace_feedback(trace: Container, score: float, comment: str | None = None) -> None:
    commit(trace, Action.ADD_FEEDBACK, compact({"score": score, "comment": comment}))


def trace_add_metric(trace: Container, name: str, value: float) -> None:
    add_metric(trace, name, value)
