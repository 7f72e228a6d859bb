# src/tracelog/logger/logger.py
"""TraceLogger: id-addressed logging API over one LogWriter.

Every method is a thin wrapper that builds a Container for the given id and
calls the matching component function, so entities can be updated from
anywhere that knows their id (another thread, another request handler)
without holding a handle.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from tracelog.config import LoggerConfig, WriterSettings
from tracelog.logger.components import base, generation, retrieval, session, span, tool_call, trace
from tracelog.logger.components.base import Container, ErrorDetail
from tracelog.logger.components.error import ErrorConfig
from tracelog.logger.components.generation import GenerationConfig
from tracelog.logger.components.retrieval import RetrievalConfig
from tracelog.logger.components.session import SessionConfig
from tracelog.logger.components.span import SpanConfig
from tracelog.logger.components.tool_call import ToolCallConfig
from tracelog.logger.components.trace import TraceConfig
from tracelog.writer.attachments import Attachment
from tracelog.writer.records import Entity
from tracelog.writer.writer import LogWriter

logger = structlog.get_logger(__name__)


class TraceLogger:
    """Logs sessions, traces and their children to one log repository.

    Example:
        tl = TraceLogger.create(LoggerConfig(id="repo-123"), base_url=url, api_key=key)
        t = tl.trace(TraceConfig(id="t1", name="chat"))
        tl.trace_input("t1", "hello")
        tl.trace_end("t1")
        tl.cleanup()
    """

    def __init__(self, writer: LogWriter) -> None:
        self._writer = writer

    @classmethod
    def create(
        cls,
        config: LoggerConfig,
        *,
        base_url: str,
        api_key: str = "",
        debug: bool = False,
        raise_exceptions: bool = False,
    ) -> TraceLogger:
        """Build a logger with its own writer for repository config.id."""
        settings = WriterSettings(
            base_url=base_url,
            api_key=api_key,
            repository_id=config.id,
            auto_flush=config.auto_flush,
            flush_interval_seconds=config.flush_interval_seconds,
            debug=debug,
            raise_exceptions=raise_exceptions,
        )
        return cls(LogWriter(settings))

    @property
    def id(self) -> str:
        """Log repository id."""
        return self._writer.settings.repository_id

    @property
    def writer(self) -> LogWriter:
        return self._writer

    def _handle(self, entity: Entity, entity_id: str) -> Container:
        return Container(entity=entity, id=entity_id, writer=self._writer)

    def _evaluate(self, handle: Container, evaluators: Sequence[str], variables: Mapping[str, str] | None) -> None:
        names = base.evaluate_with_evaluators(handle, *evaluators)
        if variables:
            base.evaluate_with_variables(handle, variables, names)

    # =========================================================================
    # Sessions
    # =========================================================================

    def session(self, config: SessionConfig) -> Container:
        return session.create_session(self._writer, config)

    def session_trace(self, session_id: str, config: TraceConfig) -> Container:
        return session.session_trace(self._handle(Entity.SESSION, session_id), config)

    def session_tag(self, session_id: str, key: str, value: str) -> None:
        base.add_tag(self._handle(Entity.SESSION, session_id), key, value)

    def session_feedback(self, session_id: str, score: float, comment: str | None = None) -> None:
        session.session_feedback(self._handle(Entity.SESSION, session_id), score, comment)

    def session_add_metric(self, session_id: str, name: str, value: float) -> None:
        session.session_add_metric(self._handle(Entity.SESSION, session_id), name, value)

    def session_evaluate(
        self, session_id: str, *evaluators: str, variables: Mapping[str, str] | None = None
    ) -> None:
        self._evaluate(self._handle(Entity.SESSION, session_id), evaluators, variables)

    def session_end(self, session_id: str, data: Mapping[str, Any] | None = None) -> None:
        base.end(self._handle(Entity.SESSION, session_id), data)

    # =========================================================================
    # Traces
    # =========================================================================

    def trace(self, config: TraceConfig) -> Container:
        return trace.create_trace(self._writer, config)

    def trace_span(self, trace_id: str, config: SpanConfig) -> Container:
        return trace.trace_span(self._handle(Entity.TRACE, trace_id), config)

    def trace_generation(self, trace_id: str, config: GenerationConfig) -> Container:
        return trace.trace_generation(self._handle(Entity.TRACE, trace_id), config)

    def trace_tool_call(self, trace_id: str, config: ToolCallConfig) -> Container:
        return trace.trace_tool_call(self._handle(Entity.TRACE, trace_id), config)

    def trace_retrieval(self, trace_id: str, config: RetrievalConfig) -> Container:
        return trace.trace_retrieval(self._handle(Entity.TRACE, trace_id), config)

    def trace_error(self, trace_id: str, config: ErrorConfig) -> Container:
        return trace.trace_error(self._handle(Entity.TRACE, trace_id), config)

    def trace_input(self, trace_id: str, input: str) -> None:
        trace.trace_input(self._handle(Entity.TRACE, trace_id), input)

    def trace_output(self, trace_id: str, output: str) -> None:
        trace.trace_output(self._handle(Entity.TRACE, trace_id), output)

    def trace_add_to_session(self, trace_id: str, session_id: str) -> None:
        trace.trace_add_to_session(self._handle(Entity.TRACE, trace_id), session_id)

    def trace_feedback(self, trace_id: str, score: float, comment: str | None = None) -> None:
        trace.trace_feedback(self._handle(Entity.TRACE, trace_id), score, comment)

    def trace_add_metric(self, trace_id: str, name: str, value: float) -> None:
        trace.trace_add_metric(self._handle(Entity.TRACE, trace_id), name, value)

    def trace_tag(self, trace_id: str, key: str, value: str) -> None:
        base.add_tag(self._handle(Entity.TRACE, trace_id), key, value)

    def trace_metadata(self, trace_id: str, metadata: Mapping[str, Any]) -> None:
        base.add_metadata(self._handle(Entity.TRACE, trace_id), metadata)

    def trace_event(
        self,
        trace_id: str,
        event_id: str,
        name: str,
        tags: Mapping[str, str] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        base.add_event(self._handle(Entity.TRACE, trace_id), event_id, name, tags, metadata)

    def trace_add_attachment(self, trace_id: str, attachment: Attachment) -> None:
        base.add_attachment(self._handle(Entity.TRACE, trace_id), attachment)

    def trace_evaluate(self, trace_id: str, *evaluators: str, variables: Mapping[str, str] | None = None) -> None:
        self._evaluate(self._handle(Entity.TRACE, trace_id), evaluators, variables)

    def trace_end(self, trace_id: str, data: Mapping[str, Any] | None = None) -> None:
        base.end(self._handle(Entity.TRACE, trace_id), data)

    # =========================================================================
    # Spans
    # =========================================================================

    def span_span(self, span_id: str, config: SpanConfig) -> Container:
        return span.span_span(self._handle(Entity.SPAN, span_id), config)

    def span_generation(self, span_id: str, config: GenerationConfig) -> Container:
        return span.span_generation(self._handle(Entity.SPAN, span_id), config)

    def span_tool_call(self, span_id: str, config: ToolCallConfig) -> Container:
        return span.span_tool_call(self._handle(Entity.SPAN, span_id), config)

    def span_retrieval(self, span_id: str, config: RetrievalConfig) -> Container:
        return span.span_retrieval(self._handle(Entity.SPAN, span_id), config)

    def span_error(self, span_id: str, config: ErrorConfig) -> Container:
        return span.span_error(self._handle(Entity.SPAN, span_id), config)

    def span_tag(self, span_id: str, key: str, value: str) -> None:
        base.add_tag(self._handle(Entity.SPAN, span_id), key, value)

    def span_metadata(self, span_id: str, metadata: Mapping[str, Any]) -> None:
        base.add_metadata(self._handle(Entity.SPAN, span_id), metadata)

    def span_event(
        self,
        span_id: str,
        event_id: str,
        name: str,
        tags: Mapping[str, str] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        base.add_event(self._handle(Entity.SPAN, span_id), event_id, name, tags, metadata)

    def span_add_attachment(self, span_id: str, attachment: Attachment) -> None:
        base.add_attachment(self._handle(Entity.SPAN, span_id), attachment)

    def span_evaluate(self, span_id: str, *evaluators: str, variables: Mapping[str, str] | None = None) -> None:
        self._evaluate(self._handle(Entity.SPAN, span_id), evaluators, variables)

    def span_end(self, span_id: str, data: Mapping[str, Any] | None = None) -> None:
        base.end(self._handle(Entity.SPAN, span_id), data)

    # =========================================================================
    # Generations
    # =========================================================================

    def generation_set_model(self, generation_id: str, model: str) -> None:
        generation.generation_set_model(self._handle(Entity.GENERATION, generation_id), model)

    def generation_add_messages(self, generation_id: str, messages: Sequence[Mapping[str, Any]]) -> None:
        generation.generation_add_messages(self._handle(Entity.GENERATION, generation_id), messages)

    def generation_set_model_parameters(self, generation_id: str, model_parameters: Mapping[str, Any]) -> None:
        generation.generation_set_model_parameters(self._handle(Entity.GENERATION, generation_id), model_parameters)

    def generation_result(self, generation_id: str, result: Mapping[str, Any]) -> None:
        generation.generation_result(self._handle(Entity.GENERATION, generation_id), result)

    def generation_error(self, generation_id: str, error: ErrorDetail) -> None:
        generation.generation_error(self._handle(Entity.GENERATION, generation_id), error)

    def generation_add_metric(self, generation_id: str, name: str, value: float) -> None:
        generation.generation_add_metric(self._handle(Entity.GENERATION, generation_id), name, value)

    def generation_add_tag(self, generation_id: str, key: str, value: str) -> None:
        base.add_tag(self._handle(Entity.GENERATION, generation_id), key, value)

    def generation_metadata(self, generation_id: str, metadata: Mapping[str, Any]) -> None:
        base.add_metadata(self._handle(Entity.GENERATION, generation_id), metadata)

    def generation_add_attachment(self, generation_id: str, attachment: Attachment) -> None:
        base.add_attachment(self._handle(Entity.GENERATION, generation_id), attachment)

    def generation_evaluate(
        self, generation_id: str, *evaluators: str, variables: Mapping[str, str] | None = None
    ) -> None:
        self._evaluate(self._handle(Entity.GENERATION, generation_id), evaluators, variables)

    def generation_end(self, generation_id: str, data: Mapping[str, Any] | None = None) -> None:
        base.end(self._handle(Entity.GENERATION, generation_id), data)

    # =========================================================================
    # Retrievals
    # =========================================================================

    def retrieval_input(self, retrieval_id: str, query: str) -> None:
        retrieval.retrieval_input(self._handle(Entity.RETRIEVAL, retrieval_id), query)

    def retrieval_output(self, retrieval_id: str, docs: str | Sequence[str]) -> None:
        retrieval.retrieval_output(self._handle(Entity.RETRIEVAL, retrieval_id), docs)

    def retrieval_add_metric(self, retrieval_id: str, name: str, value: float) -> None:
        retrieval.retrieval_add_metric(self._handle(Entity.RETRIEVAL, retrieval_id), name, value)

    def retrieval_add_tag(self, retrieval_id: str, key: str, value: str) -> None:
        base.add_tag(self._handle(Entity.RETRIEVAL, retrieval_id), key, value)

    def retrieval_metadata(self, retrieval_id: str, metadata: Mapping[str, Any]) -> None:
        base.add_metadata(self._handle(Entity.RETRIEVAL, retrieval_id), metadata)

    def retrieval_evaluate(
        self, retrieval_id: str, *evaluators: str, variables: Mapping[str, str] | None = None
    ) -> None:
        self._evaluate(self._handle(Entity.RETRIEVAL, retrieval_id), evaluators, variables)

    def retrieval_end(self, retrieval_id: str) -> None:
        base.end(self._handle(Entity.RETRIEVAL, retrieval_id))

    # =========================================================================
    # Tool calls
    # =========================================================================

    def tool_call_result(self, tool_call_id: str, result: str) -> None:
        tool_call.tool_call_result(self._handle(Entity.TOOL_CALL, tool_call_id), result)

    def tool_call_error(self, tool_call_id: str, error: ErrorDetail) -> None:
        tool_call.tool_call_error(self._handle(Entity.TOOL_CALL, tool_call_id), error)

    def tool_call_add_tag(self, tool_call_id: str, key: str, value: str) -> None:
        base.add_tag(self._handle(Entity.TOOL_CALL, tool_call_id), key, value)

    def tool_call_metadata(self, tool_call_id: str, metadata: Mapping[str, Any]) -> None:
        base.add_metadata(self._handle(Entity.TOOL_CALL, tool_call_id), metadata)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def flush(self) -> None:
        self._writer.flush()

    def cleanup(self) -> None:
        """Flush what is pending and release the writer. Idempotent."""
        logger.debug("Cleaning up logger", repository_id=self.id)
        self._writer.cleanup()
